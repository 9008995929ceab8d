from __future__ import annotations

from typing import Optional

import typer

from csbuild.cli.render import abort
from csbuild.config.settings import ProjectConfig, dump_config, load_config, save_config
from csbuild.engine.errors import CsBuildError, InvalidArguments, InvalidConfig


def config(
    project: Optional[str] = typer.Argument(None, help="Project name; omit to print the stored configuration"),
    client: Optional[str] = typer.Option(None, "--client", help="Path to the client repository"),
    server: Optional[str] = typer.Option(None, "--server", help="Path to the server repository"),
    protected: Optional[list[str]] = typer.Option(
        None, "--protected", help="Protected branch (repeatable); replaces the project's list"
    ),
    no_protected: bool = typer.Option(
        False, "--no-protected", help="Protect no branches for this project"
    ),
    default_protected: bool = typer.Option(
        False, "--default-protected", help="Drop the project's list and use the store defaults"
    ),
    drift_reference: Optional[str] = typer.Option(
        None, "--drift-reference", help="Branch the drift check compares against (default: the stage)"
    ),
) -> None:
    """Show the stored configuration or update one project's settings."""
    try:
        store = load_config()

        if project is None:
            typer.echo(dump_config(store), nl=False)
            return

        if sum((bool(protected), no_protected, default_protected)) > 1:
            raise InvalidArguments(
                "`--protected`, `--no-protected` and `--default-protected` are mutually exclusive"
            )
        changes = (client, server, drift_reference)
        if all(value is None for value in changes) and not (protected or no_protected or default_protected):
            raise InvalidArguments(
                "`--client /path/to/client` or `--server /path/to/server` are not optional"
            )

        settings = store.projects.get(project, ProjectConfig()).model_copy()
        if client is not None:
            settings.client = client
        if server is not None:
            settings.server = server
        if protected:
            settings.protected_branches = list(protected)
        elif no_protected:
            settings.protected_branches = []
        elif default_protected:
            settings.protected_branches = None
        if drift_reference is not None:
            settings.drift_reference = drift_reference

        if settings.client and settings.server and settings.client.lower() == settings.server.lower():
            raise InvalidConfig("Repository folders for client and server have to be different")

        store.projects[project] = settings
        save_config(store)
    except CsBuildError as e:
        abort(e)

    typer.echo(typer.style(f"{project} settings written.", fg=typer.colors.GREEN))
