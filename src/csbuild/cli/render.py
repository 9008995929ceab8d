from __future__ import annotations

from typing import NoReturn

import typer

from csbuild.engine.errors import CsBuildError
from csbuild.ui.progress import ProgressReporter


def abort(error: CsBuildError, reporter: ProgressReporter | None = None) -> NoReturn:
    """Stop progress output, render ``error`` on stderr and exit 1."""
    if reporter is not None:
        reporter.stop()
    typer.echo(typer.style(f"Error [{error.kind}]: ", fg=typer.colors.RED) + str(error), err=True)
    raise typer.Exit(code=1)
