"""Report renderers: plain text, JSON and a rich terminal table."""

import io
import json

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from suite_policy_linter.domain.entities import LintRun, Severity
from suite_policy_linter.domain.errors import ConfigurationError
from suite_policy_linter.domain.protocols import ReportRendererProtocol

SEVERITY_STYLES = {
    Severity.VIOLATION: "bold red",
    Severity.WARNING: "yellow",
}


class TextReportRenderer(ReportRendererProtocol):
    """One finding per line: `rule_id severity path:line:column message`."""

    def render(self, run: LintRun) -> str:
        return run.render_text()


class JsonReportRenderer(ReportRendererProtocol):
    def __init__(self, indent: int | None = 2) -> None:
        self._indent = indent

    def render(self, run: LintRun) -> str:
        return json.dumps(run.to_dict(), indent=self._indent, sort_keys=False)


class TableReportRenderer(ReportRendererProtocol):
    """Terminal table using rich; rendered to a string so callers decide where it goes."""

    def __init__(self, width: int = 120, color: bool = False) -> None:
        self._width = width
        self._color = color

    def render(self, run: LintRun) -> str:
        table = Table(title="Suite Policy Findings", header_style="bold #007BFF")
        table.add_column("Rule", style="#00EEFF", no_wrap=True)
        table.add_column("Severity")
        table.add_column("Location", no_wrap=True)
        table.add_column("Message")
        for finding in run.findings:
            table.add_row(
                finding.rule_id,
                f"[{SEVERITY_STYLES[finding.severity]}]{finding.severity.value}[/]",
                escape(str(finding.location)),
                escape(finding.message),
            )
        for failure in run.failures:
            table.add_row(
                "parse-error",
                f"[{SEVERITY_STYLES[Severity.VIOLATION]}]{Severity.VIOLATION.value}[/]",
                escape(f"{failure.path}:{failure.error.line}:{failure.error.column}"),
                escape(failure.error.message),
            )

        buffer = io.StringIO()
        console = Console(
            file=buffer,
            width=self._width,
            force_terminal=self._color,
            color_system="auto" if self._color else None,
        )
        if not run.findings and not run.failures:
            console.print("No findings.")
        else:
            console.print(table)
        return buffer.getvalue().rstrip("\n")


class ReportRendererFactory:
    """Select a renderer by `--format` name. No top-level functions."""

    FORMATS: tuple[str, ...] = ("text", "json", "table")

    @staticmethod
    def for_format(name: str) -> ReportRendererProtocol:
        if name == "text":
            return TextReportRenderer()
        if name == "json":
            return JsonReportRenderer()
        if name == "table":
            return TableReportRenderer()
        raise ConfigurationError(
            f"Unknown output format '{name}'. Choose one of: {', '.join(ReportRendererFactory.FORMATS)}"
        )
