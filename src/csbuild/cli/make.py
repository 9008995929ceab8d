from __future__ import annotations

import logging
from typing import Optional

import typer

from csbuild.cli.render import abort
from csbuild.config.settings import load_config, resolve_settings
from csbuild.engine.errors import CsBuildError, InvalidArguments
from csbuild.engine.pipeline import ReleasePipeline
from csbuild.ui.progress import ConsoleReporter

logger = logging.getLogger(__name__)


def make(
    project: Optional[str] = typer.Argument(None, help="Configured project name"),
    stage: Optional[str] = typer.Argument(None, help="Release stage, e.g. development or production"),
    project_option: Optional[str] = typer.Option(None, "--project", help="Project name (alternative to PROJECT)"),
    stage_option: Optional[str] = typer.Option(None, "--stage", help="Stage (alternative to STAGE)"),
    pull: bool = typer.Option(False, "--pull/--no-pull", help="Pull the stage branch after fetching"),
    release: bool = typer.Option(False, "--release", help="Bump, commit and push versions after the build"),
) -> None:
    """Gate, test and build the client/server pair of PROJECT for STAGE."""
    reporter = ConsoleReporter()
    try:
        project_name = project_option or project
        stage_name = stage_option or stage
        if not project_name:
            raise InvalidArguments("`PROJECT-NAME` is not optional")
        if not stage_name:
            raise InvalidArguments("`STAGE` is not optional")

        config = load_config()
        project_config = config.project(project_name)
        settings = resolve_settings(config, project_config, stage_name, pull=pull, release=release)
        logger.debug("Resolved settings for %s: %s", project_name, settings)

        reporter.report_start("baking client and server...")
        pipeline = ReleasePipeline(project_name, project_config, settings, reporter)
        result = pipeline.run()
    except CsBuildError as e:
        abort(e, reporter)

    reporter.stop()
    typer.echo(f"{project_name} {stage_name}: {result.state.value}")
