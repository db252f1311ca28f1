from typing import TYPE_CHECKING, Protocol

from suite_policy_linter.domain.registry_types import RuleRegistryEntry

if TYPE_CHECKING:
    from suite_policy_linter.domain.entities import LintRun, ParsedSuite


class SuiteParserProtocol(Protocol):
    """Turns raw suite source into classified test cases."""

    def parse(self, source: str, path: str) -> "ParsedSuite":
        """Parse `source`; raises ParseError when nothing can be recovered."""
        ...


class SuiteParserRegistryProtocol(Protocol):
    def parser_for(self, path: str) -> SuiteParserProtocol:
        """Return the parser for a file name; raises UnsupportedSuiteError."""
        ...

    def supports(self, path: str) -> bool:
        ...


class FileSystemProtocol(Protocol):
    """Protocol for filesystem operations used by suite loading."""

    def read_text(self, path: str) -> str:
        """Return the suite source. Raises ParseError when it is not valid UTF-8."""
        ...

    def is_directory(self, path: str) -> bool:
        ...

    def find_suites(self, path: str, patterns: list[str]) -> list[str]:
        """Return suite files under `path` matching any pattern, sorted."""
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        ...


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def handshake(self) -> None: ...


class GuidanceServiceProtocol(Protocol):
    def get_registry(self) -> dict[str, RuleRegistryEntry]:
        ...

    def get_entry(self, rule_id: str) -> RuleRegistryEntry | None:
        ...

    def documentation_only(self) -> list[str]:
        ...

    def get_display_name(self, rule_id: str) -> str:
        ...


class ReportRendererProtocol(Protocol):
    def render(self, run: "LintRun") -> str:
        ...
