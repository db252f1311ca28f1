"""Hook rule (no-assert-in-hook): setup/teardown blocks prepare state, they do not verify it."""

from collections.abc import Sequence

from suite_policy_linter.domain.entities import Finding, Severity, TestCase
from suite_policy_linter.domain.rules import Rule


class NoAssertInHookRule(Rule):
    """Flag every assertion found inside a setup or teardown hook."""

    rule_id: str = "no-assert-in-hook"
    description: str = "Assertions belong in tests, not in setup/teardown hooks."
    severity: Severity = Severity.VIOLATION

    def __init__(self, severity: Severity | None = None) -> None:
        if severity is not None:
            self.severity = severity

    def check(self, test_cases: Sequence[TestCase]) -> list[Finding]:
        findings: list[Finding] = []
        for test_case in test_cases:
            if not test_case.hook.is_hook:
                continue
            label = test_case.hook_kind or test_case.hook.value
            for assertion in test_case.assertions:
                findings.append(
                    self.finding(
                        assertion.location,
                        f"Assertion '{assertion.expression}' in {test_case.hook.value} hook "
                        f"'{label}' ({test_case.name}); move it into a test.",
                    )
                )
        return findings
