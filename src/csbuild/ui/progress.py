from __future__ import annotations

import logging
from typing import Protocol

import typer

from csbuild.ui.spinner import Spinner

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    def report_start(self, message: str) -> None: ...

    def report_success(self, message: str) -> None: ...

    def report_failure(self, message: str) -> None: ...

    def report_info(self, message: str) -> None: ...

    def stop(self) -> None: ...


class ConsoleReporter:
    """Spinner while a step runs, one status line per finished step."""

    def __init__(self, spinner: Spinner | None = None) -> None:
        self._spinner = spinner or Spinner()

    def report_start(self, message: str) -> None:
        logger.debug("start: %s", message)
        self._spinner.start(message)

    def report_success(self, message: str) -> None:
        self._spinner.stop()
        typer.echo(typer.style("✔ ", fg=typer.colors.GREEN) + message)

    def report_failure(self, message: str) -> None:
        self._spinner.stop()
        typer.echo(typer.style("✖ ", fg=typer.colors.RED) + message, err=True)

    def report_info(self, message: str) -> None:
        self._spinner.stop()
        typer.echo(typer.style("ℹ ", fg=typer.colors.BLUE) + message)

    def stop(self) -> None:
        self._spinner.stop()


class RecordingReporter:
    def __init__(self) -> None:
        self._records: list[tuple[str, str]] = []
        self.stopped = False

    def report_start(self, message: str) -> None:
        self._records.append(("start", message))

    def report_success(self, message: str) -> None:
        self._records.append(("success", message))

    def report_failure(self, message: str) -> None:
        self._records.append(("failure", message))

    def report_info(self, message: str) -> None:
        self._records.append(("info", message))

    def stop(self) -> None:
        self.stopped = True

    @property
    def records(self) -> list[tuple[str, str]]:
        return list(self._records)

    def messages(self, level: str) -> list[str]:
        return [message for lvl, message in self._records if lvl == level]
