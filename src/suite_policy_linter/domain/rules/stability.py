"""Stability rules: no-fixed-wait, duplicate-test-name."""

from collections.abc import Iterable, Sequence
from typing import ClassVar

from suite_policy_linter.domain.entities import Finding, Severity, TestCase
from suite_policy_linter.domain.rules import Rule


class NoFixedWaitRule(Rule):
    """Flag sleeps with a hard-coded duration; they make tests slow and flaky."""

    rule_id: str = "no-fixed-wait"
    description: str = "Wait for a condition, not for a fixed amount of time."
    severity: Severity = Severity.WARNING

    DEFAULT_CALLS: ClassVar[tuple[str, ...]] = (
        "time.sleep",
        "sleep",
        "usleep",
        "asyncio.sleep",
        "cy.wait",
        "page.waitForTimeout",
        "page.wait_for_timeout",
        "browser.pause",
    )

    def __init__(self, calls: Iterable[str] | None = None, severity: Severity | None = None) -> None:
        self._calls = frozenset(calls if calls is not None else self.DEFAULT_CALLS)
        if severity is not None:
            self.severity = severity

    def check(self, test_cases: Sequence[TestCase]) -> list[Finding]:
        findings: list[Finding] = []
        for test_case in test_cases:
            for call in test_case.calls:
                if call.name not in self._calls or not call.numeric_argument:
                    continue
                findings.append(
                    self.finding(
                        call.location,
                        f"Fixed wait '{call.name}' in {test_case.name}; "
                        "wait for the element, request or state instead.",
                    )
                )
        return findings


class DuplicateTestNameRule(Rule):
    """Flag tests that share a qualified name; the later definitions are ambiguous or shadowed."""

    rule_id: str = "duplicate-test-name"
    description: str = "Each test needs a unique name so it can be run and scored on its own."
    severity: Severity = Severity.VIOLATION

    def __init__(self, severity: Severity | None = None) -> None:
        if severity is not None:
            self.severity = severity

    def check(self, test_cases: Sequence[TestCase]) -> list[Finding]:
        first_seen: dict[str, TestCase] = {}
        findings: list[Finding] = []
        ordered = sorted(
            (tc for tc in test_cases if tc.hook.is_test),
            key=lambda tc: tc.location,
        )
        for test_case in ordered:
            original = first_seen.get(test_case.name)
            if original is None:
                first_seen[test_case.name] = test_case
                continue
            findings.append(
                self.finding(
                    test_case.location,
                    f"Test name '{test_case.name}' already defined at line "
                    f"{original.location.line}.",
                )
            )
        return findings
