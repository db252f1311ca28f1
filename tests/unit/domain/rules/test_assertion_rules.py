"""Unit tests for loop, conditional and missing assertion rules."""

from suite_policy_linter.domain.entities import HookType, ScopeKind, Severity
from suite_policy_linter.domain.rules.assertion_rules import (
    NoConditionalAssertRule,
    NoLoopGeneratedAssertRule,
    TestWithoutAssertionRule,
)
from tests.unit.suite_test_utils import assertion, make_case


class TestNoLoopGeneratedAssertRule:
    """Assertions inside a repetition construct are warnings."""

    def test_assertion_in_loop_is_reported(self) -> None:
        case = make_case(
            "lists items",
            assertions=(
                assertion(3, "expect(item).to.exist", ScopeKind.LOOP),
                assertion(5, "expect(list).to.have.length(3)"),
            ),
        )
        findings = NoLoopGeneratedAssertRule().check([case])
        assert len(findings) == 1
        assert findings[0].location.line == 3
        assert findings[0].severity is Severity.WARNING

    def test_loop_nested_in_branch_still_counts(self) -> None:
        case = make_case("x", assertions=(assertion(3, "e", ScopeKind.BRANCH, ScopeKind.LOOP),))
        assert len(NoLoopGeneratedAssertRule().check([case])) == 1

    def test_applies_to_hooks_too(self) -> None:
        hook = make_case("beforeEach", HookType.SETUP, assertions=(assertion(3, "e", ScopeKind.LOOP),))
        assert len(NoLoopGeneratedAssertRule().check([hook])) == 1


class TestNoConditionalAssertRule:
    """Assertions behind if/else in tests are warnings."""

    def test_branch_assertion_in_test_is_reported(self) -> None:
        case = make_case("x", assertions=(assertion(4, "assert ok", ScopeKind.BRANCH),))
        findings = NoConditionalAssertRule().check([case])
        assert [f.rule_id for f in findings] == ["no-conditional-assert"]

    def test_unconditional_assertion_is_fine(self) -> None:
        case = make_case("x", assertions=(assertion(4, "assert ok"),))
        assert NoConditionalAssertRule().check([case]) == []

    def test_hooks_are_left_to_no_assert_in_hook(self) -> None:
        hook = make_case("setUp", HookType.SETUP, assertions=(assertion(3, "e", ScopeKind.BRANCH),))
        assert NoConditionalAssertRule().check([hook]) == []


class TestTestWithoutAssertionRule:
    """Tests without any assertion are warnings."""

    def test_empty_test_is_reported(self) -> None:
        findings = TestWithoutAssertionRule().check([make_case("does nothing", line=12)])
        assert len(findings) == 1
        assert findings[0].location.line == 12
        assert "does nothing" in findings[0].message

    def test_extra_tests_are_checked(self) -> None:
        extra = make_case("a_extra", HookType.EXTRA, base_name="a")
        assert len(TestWithoutAssertionRule().check([extra])) == 1

    def test_hooks_are_not_checked(self) -> None:
        assert TestWithoutAssertionRule().check([make_case("setUp", HookType.SETUP)]) == []

    def test_test_with_assertion_is_fine(self) -> None:
        assert TestWithoutAssertionRule().check([make_case("a", assertions=(assertion(2),))]) == []
