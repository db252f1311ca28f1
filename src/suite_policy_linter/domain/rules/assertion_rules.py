"""Assertion shape rules: no-loop-generated-assert, no-conditional-assert, test-without-assertion."""

from collections.abc import Sequence

from suite_policy_linter.domain.entities import Finding, ScopeKind, Severity, TestCase
from suite_policy_linter.domain.rules import Rule


class NoLoopGeneratedAssertRule(Rule):
    """Flag assertions produced by iterating over a collection; write the literal assertions out."""

    rule_id: str = "no-loop-generated-assert"
    description: str = "Prefer repeated literal assertions over assertions generated in a loop."
    severity: Severity = Severity.WARNING

    def __init__(self, severity: Severity | None = None) -> None:
        if severity is not None:
            self.severity = severity

    def check(self, test_cases: Sequence[TestCase]) -> list[Finding]:
        findings: list[Finding] = []
        for test_case in test_cases:
            for assertion in test_case.assertions:
                if not assertion.inside(ScopeKind.LOOP):
                    continue
                findings.append(
                    self.finding(
                        assertion.location,
                        f"Assertion '{assertion.expression}' in {test_case.name} runs inside a loop; "
                        "write each expected value as its own assertion.",
                    )
                )
        return findings


class NoConditionalAssertRule(Rule):
    """Flag assertions that only run on one branch of an if/else."""

    rule_id: str = "no-conditional-assert"
    description: str = "Keep tests simple: an assertion should always execute."
    severity: Severity = Severity.WARNING

    def __init__(self, severity: Severity | None = None) -> None:
        if severity is not None:
            self.severity = severity

    def check(self, test_cases: Sequence[TestCase]) -> list[Finding]:
        findings: list[Finding] = []
        for test_case in test_cases:
            if not test_case.hook.is_test:
                continue
            for assertion in test_case.assertions:
                if not assertion.inside(ScopeKind.BRANCH):
                    continue
                findings.append(
                    self.finding(
                        assertion.location,
                        f"Assertion '{assertion.expression}' in {test_case.name} is conditional; "
                        "split the test so every assertion always runs.",
                    )
                )
        return findings


class TestWithoutAssertionRule(Rule):
    """Flag tests that never assert anything."""

    __test__ = False

    rule_id: str = "test-without-assertion"
    description: str = "A test must verify something; tests without assertions always pass."
    severity: Severity = Severity.WARNING

    def __init__(self, severity: Severity | None = None) -> None:
        if severity is not None:
            self.severity = severity

    def check(self, test_cases: Sequence[TestCase]) -> list[Finding]:
        return [
            self.finding(
                test_case.location,
                f"Test '{test_case.name}' contains no assertion.",
            )
            for test_case in test_cases
            if test_case.hook.is_test and not test_case.assertions
        ]
