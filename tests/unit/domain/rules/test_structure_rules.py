"""Unit tests for no-assert-in-hook and extra-test-parity."""

import unittest

from suite_policy_linter.domain.entities import HookType, Severity
from suite_policy_linter.domain.rules.extra_tests import ExtraTestParityRule
from suite_policy_linter.domain.rules.hook_rules import NoAssertInHookRule
from tests.unit.suite_test_utils import assertion, make_case


class TestNoAssertInHookRule(unittest.TestCase):
    """Tests for NoAssertInHookRule."""

    def test_one_finding_per_assertion_in_hook(self) -> None:
        """Every assertion in a setup/teardown hook is reported at the assertion."""
        hook = make_case(
            "beforeEach",
            HookType.SETUP,
            line=2,
            assertions=(assertion(3, "assert(user.loggedIn)"), assertion(4)),
            hook_kind="beforeEach",
        )
        teardown = make_case("afterEach", HookType.TEARDOWN, line=8, assertions=(assertion(9),))

        findings = NoAssertInHookRule().check([hook, teardown])

        self.assertEqual([f.location.line for f in findings], [3, 4, 9])
        self.assertTrue(all(f.rule_id == "no-assert-in-hook" for f in findings))
        self.assertTrue(all(f.severity is Severity.VIOLATION for f in findings))
        self.assertIn("assert(user.loggedIn)", findings[0].message)
        self.assertIn("beforeEach", findings[0].message)

    def test_assertions_in_tests_are_fine(self) -> None:
        """Assertions inside tests are not reported."""
        test = make_case("login", assertions=(assertion(3, "assert(true)"),))
        self.assertEqual(NoAssertInHookRule().check([test]), [])

    def test_hook_without_assertion_is_fine(self) -> None:
        """A hook that only arranges state produces nothing."""
        self.assertEqual(NoAssertInHookRule().check([make_case("setUp", HookType.SETUP)]), [])

    def test_severity_override(self) -> None:
        """The configured severity replaces the default."""
        hook = make_case("setUp", HookType.SETUP, assertions=(assertion(2),))
        findings = NoAssertInHookRule(severity=Severity.WARNING).check([hook])
        self.assertEqual(findings[0].severity, Severity.WARNING)


class TestExtraTestParityRule(unittest.TestCase):
    """Tests for ExtraTestParityRule."""

    def test_orphaned_extra_test_is_reported(self) -> None:
        """An extra test without its normal counterpart produces one finding."""
        extra = make_case("checkout_extra", HookType.EXTRA, line=7, base_name="checkout")
        findings = ExtraTestParityRule().check([make_case("login"), extra])

        self.assertEqual(len(findings), 1)
        self.assertEqual(findings[0].location.line, 7)
        self.assertIn("'checkout'", findings[0].message)

    def test_paired_extra_test_is_fine(self) -> None:
        """X_extra next to X produces nothing."""
        extra = make_case("login_extra", HookType.EXTRA, base_name="login")
        self.assertEqual(ExtraTestParityRule().check([make_case("login"), extra]), [])

    def test_hook_with_base_name_does_not_count_as_counterpart(self) -> None:
        """Only normal tests satisfy parity."""
        extra = make_case("login_extra", HookType.EXTRA, base_name="login")
        hook = make_case("login", HookType.SETUP)
        self.assertEqual(len(ExtraTestParityRule().check([hook, extra])), 1)

    def test_each_orphan_reported_once(self) -> None:
        """Two orphans give two findings."""
        first = make_case("a_extra", HookType.EXTRA, line=1, base_name="a")
        second = make_case("b_extra", HookType.EXTRA, line=5, base_name="b")
        self.assertEqual(len(ExtraTestParityRule().check([first, second])), 2)

    def test_marker_extra_without_a_named_pair_asks_for_one(self) -> None:
        """A marked extra whose base is itself says how to name the normal test."""
        extra = make_case("discount", HookType.EXTRA, line=3, base_name="discount")
        findings = ExtraTestParityRule().check([make_case("total"), extra])

        self.assertEqual(len(findings), 1)
        self.assertIn("does not name its normal test", findings[0].message)
