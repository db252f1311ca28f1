"""Domain entities: parsed test cases, findings and reports. Pure data, no I/O."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from suite_policy_linter.domain.errors import ParseError, UnsupportedConstructError


class HookType(Enum):
    """Structural role of a parsed block inside a suite."""
    SETUP = "setup"
    TEARDOWN = "teardown"
    TEST = "test"
    EXTRA = "extra"

    @property
    def is_hook(self) -> bool:
        return self in (HookType.SETUP, HookType.TEARDOWN)

    @property
    def is_test(self) -> bool:
        return self in (HookType.TEST, HookType.EXTRA)


class Severity(Enum):
    """Finding severity. Only VIOLATION affects the exit code."""
    VIOLATION = "violation"
    WARNING = "warning"


class ScopeKind(Enum):
    """Lexical constructs that enclose an assertion or call."""
    LOOP = "loop"      # repetition over a collection
    BRANCH = "branch"  # if / else


class SuiteLanguage(Enum):
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    PHP = "php"


@dataclass(frozen=True, order=True)
class SourceLocation:
    """Position in a suite source. Line and column are both 1-based."""
    path: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"


@dataclass(frozen=True)
class AssertionSite:
    """One assertion call site and the scopes that enclose it (outermost first)."""
    expression: str
    location: SourceLocation
    scopes: tuple[ScopeKind, ...] = ()

    def inside(self, kind: ScopeKind) -> bool:
        return kind in self.scopes


@dataclass(frozen=True)
class CallSite:
    """A call made from a test or hook body."""
    name: str
    location: SourceLocation
    numeric_argument: bool = False
    scopes: tuple[ScopeKind, ...] = ()


@dataclass(frozen=True)
class TestCase:
    """
    Parsed representation of one test or hook.

    `name` is qualified by the enclosing class or describe block; `base_name`
    is the name with the extra-test marker removed (equal to `name` for
    everything that is not an extra test).
    """
    __test__ = False  # not a pytest test class

    name: str
    hook: HookType
    location: SourceLocation
    hook_kind: str = ""
    base_name: str = ""
    assertions: tuple[AssertionSite, ...] = ()
    calls: tuple[CallSite, ...] = ()

    def __post_init__(self) -> None:
        if not self.base_name:
            object.__setattr__(self, "base_name", self.name)


@dataclass(frozen=True)
class ParsedSuite:
    """Output of a suite parser: classified test cases plus recovered skips."""
    path: str
    language: SuiteLanguage
    test_cases: tuple[TestCase, ...] = ()
    skipped: tuple["UnsupportedConstructError", ...] = ()

    def __len__(self) -> int:
        return len(self.test_cases)

    def tests(self) -> tuple[TestCase, ...]:
        return tuple(tc for tc in self.test_cases if tc.hook.is_test)

    def hooks(self) -> tuple[TestCase, ...]:
        return tuple(tc for tc in self.test_cases if tc.hook.is_hook)


@dataclass(frozen=True)
class Finding:
    """Result of applying a rule to a suite."""
    rule_id: str
    severity: Severity
    location: SourceLocation
    message: str

    def sort_key(self) -> tuple[str, str, int, int, str]:
        return (
            self.rule_id,
            self.location.path,
            self.location.line,
            self.location.column,
            self.message,
        )

    def render(self) -> str:
        """One-line text form: rule id, severity, location, message."""
        return f"{self.rule_id} {self.severity.value} {self.location} {self.message}"

    def to_dict(self) -> dict[str, str | int]:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "path": self.location.path,
            "line": self.location.line,
            "column": self.location.column,
            "message": self.message,
        }


@dataclass(frozen=True)
class Report:
    """Findings for one suite, always kept in deterministic order."""
    path: str
    findings: tuple[Finding, ...] = ()

    @classmethod
    def from_findings(cls, path: str, findings: list[Finding]) -> "Report":
        """Build a report; ordering is by rule id, then location, then message."""
        return cls(path=path, findings=tuple(sorted(findings, key=Finding.sort_key)))

    def __len__(self) -> int:
        return len(self.findings)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self.findings)

    @property
    def violations(self) -> tuple[Finding, ...]:
        return tuple(f for f in self.findings if f.severity is Severity.VIOLATION)

    def has_violations(self) -> bool:
        return bool(self.violations)

    def for_rule(self, rule_id: str) -> tuple[Finding, ...]:
        return tuple(f for f in self.findings if f.rule_id == rule_id)

    def render_text(self) -> str:
        return "\n".join(f.render() for f in self.findings)

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "violation_count": len(self.violations),
            "finding_count": len(self.findings),
            "findings": [f.to_dict() for f in self.findings],
        }


@dataclass(frozen=True)
class SuiteFailure:
    """A suite that could not be parsed at all."""
    path: str
    error: "ParseError"

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "line": self.error.line,
            "column": self.error.column,
            "message": self.error.message,
        }


@dataclass(frozen=True)
class LintRun:
    """Reports for every suite in a run, plus suites that failed to parse."""
    reports: tuple[Report, ...] = ()
    failures: tuple[SuiteFailure, ...] = field(default_factory=tuple)

    @property
    def findings(self) -> tuple[Finding, ...]:
        merged = [f for r in self.reports for f in r.findings]
        return tuple(sorted(merged, key=Finding.sort_key))

    def has_violations(self) -> bool:
        return any(r.has_violations() for r in self.reports)

    def exit_code(self) -> int:
        """2 when a suite failed to parse, 1 on violations, else 0."""
        if self.failures:
            return 2
        if self.has_violations():
            return 1
        return 0

    def render_text(self) -> str:
        lines = [f.render() for f in self.findings]
        for failure in self.failures:
            lines.append(
                f"parse-error violation {failure.path}:{failure.error.line}:"
                f"{failure.error.column} {failure.error.message}"
            )
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        return {
            "version": "1.0",
            "exit_code": self.exit_code(),
            "reports": [r.to_dict() for r in self.reports],
            "failures": [f.to_dict() for f in self.failures],
        }
