"""Terminal telemetry: status lines on stderr so stdout stays reserved for reports."""

import logging

from rich.console import Console
from rich.markup import escape

from suite_policy_linter.domain.protocols import TelemetryPort


class ProjectTelemetry(TelemetryPort):
    """TelemetryPort implementation printing through a rich Console and mirroring to debug logging."""

    def __init__(self, name: str, color: str, welcome: str, console: Console | None = None) -> None:
        self.name = name
        self.color = color
        self.welcome = welcome
        self.console = console or Console(stderr=True, highlight=False)
        self.logger = logging.getLogger(f"suite_policy_linter.telemetry.{name.lower()}")

    def handshake(self) -> None:
        self.console.print(f"[bold {self.color}]\\[{self.name}][/] {escape(self.welcome)}")
        self.logger.debug("%s handshake", self.name)

    def step(self, message: str) -> None:
        self.console.print(f"[{self.color}]»[/] {escape(message)}")
        self.logger.debug("step: %s", message)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {escape(message)}[/]")
        self.logger.debug("warning: %s", message)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]✖[/] {escape(message)}")
        self.logger.debug("error: %s", message)
