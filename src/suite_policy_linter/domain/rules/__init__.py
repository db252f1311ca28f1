"""Domain models for suite rules."""

from collections.abc import Sequence
from typing import Protocol

from suite_policy_linter.domain.entities import Finding, Severity, SourceLocation, TestCase

__all__ = [
    "Rule",
    "SKIPPED_RULE_ID",
]

SKIPPED_RULE_ID = "skipped"


# -----------------------------------------------------------------------------
# A rule is a pure function of the parsed suite. It receives an immutable
# sequence of TestCase and returns its own list of findings; rules never see
# each other's output and never mutate the suite.
# -----------------------------------------------------------------------------


class Rule(Protocol):
    """One mechanical check derived from the test-writing guidelines."""

    rule_id: str
    description: str
    severity: Severity

    def check(self, test_cases: Sequence[TestCase]) -> list[Finding]:
        """Return findings for the whole suite."""
        ...

    def finding(self, location: SourceLocation, message: str) -> Finding:
        """Build a finding carrying this rule's id and severity."""
        return Finding(
            rule_id=self.rule_id,
            severity=self.severity,
            location=location,
            message=message,
        )
