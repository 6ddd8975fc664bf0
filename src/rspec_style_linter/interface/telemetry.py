"""Terminal telemetry: status lines on stderr so report output on stdout stays parseable."""

import logging

import typer

from rspec_style_linter.domain.protocols import TelemetryPort


class ProjectTelemetry(TelemetryPort):
    """
    Implements TelemetryPort with typer.secho on stderr.

    Progress (`step`, `handshake`) is shown only when the telemetry logger
    is enabled for DEBUG, i.e. under --verbose. Warnings and errors are
    always shown.
    """

    def __init__(self, project_name: str, color: str = "cyan", welcome_msg: str = "") -> None:
        self.project_name = project_name
        self.color = color
        self.welcome_msg = welcome_msg
        self.logger = logging.getLogger(project_name.lower())

    @property
    def verbose(self) -> bool:
        return self.logger.isEnabledFor(logging.DEBUG)

    def _emit(self, text: str, fg: str | None = None) -> None:
        typer.secho(f"[{self.project_name}] {text}", fg=fg, err=True)

    def handshake(self) -> None:
        if self.verbose and self.welcome_msg:
            self._emit(self.welcome_msg, fg=self.color)

    def step(self, message: str) -> None:
        if self.verbose:
            self._emit(message)

    def error(self, message: str) -> None:
        self._emit(message, fg="red")

    def warning(self, message: str) -> None:
        self._emit(message, fg="yellow")

    def debug(self, message: str) -> None:
        self.logger.debug(message)
