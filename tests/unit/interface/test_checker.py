"""Unit tests for the pylint plugin (SuitePolicyChecker and register)."""

import textwrap
from unittest.mock import MagicMock, patch

import astroid

from suite_policy_linter.domain.config import ConfigurationLoader
from suite_policy_linter.infrastructure.checker import SuitePolicyChecker, register
from suite_policy_linter.infrastructure.services.guidance_service import GuidanceService

HOOK_ASSERT_MODULE = textwrap.dedent(
    """\
    import unittest

    class CartTests(unittest.TestCase):
        def setUp(self):
            self.cart = Cart()
            self.assertTrue(self.cart.empty)

        def test_add(self):
            self.cart.add(1)
            self.assertEqual(len(self.cart), 1)
    """
)


def _checker(config: dict[str, object] | None = None) -> tuple[SuitePolicyChecker, MagicMock]:
    linter = MagicMock()
    checker = SuitePolicyChecker(
        linter,
        registry=GuidanceService().get_registry(),
        config_loader=ConfigurationLoader(config),
    )
    return checker, linter


class TestSuitePolicyChecker:
    """Test message definitions and visit_module reporting."""

    def test_msgs_cover_every_rule(self) -> None:
        checker, _ = _checker()
        assert set(checker.msgs) == {f"W970{n}" for n in range(1, 9)}
        assert checker.msgs["W9701"][1] == "suite-policy-no-assert-in-hook"

    def test_hook_assertion_is_reported_at_its_location(self) -> None:
        checker, linter = _checker()
        module = astroid.parse(HOOK_ASSERT_MODULE, path="tests/test_cart.py")

        checker.visit_module(module)

        linter.add_message.assert_called_once()
        args = linter.add_message.call_args.args
        assert args[0] == "W9701"
        assert args[1] == 6
        assert args[2] is module
        assert args[3] == (
            "Assertion 'self.assertTrue(self.cart.empty)' in setup hook 'setUp' "
            "(CartTests.setUp); move it into a test.",
        )
        assert args[5] == 8

    def test_message_ends_on_the_finding_line(self) -> None:
        checker, linter = _checker()
        module = astroid.parse(HOOK_ASSERT_MODULE, path="tests/test_cart.py")

        checker.visit_module(module)

        args = linter.add_message.call_args.args
        # not the module's end position
        assert (args[6], args[7]) == (6, 9)
        assert module.end_lineno != 6

    def test_disabled_rule_is_not_reported(self) -> None:
        checker, linter = _checker({"disabled_rules": ["no-assert-in-hook"]})
        checker.visit_module(astroid.parse(HOOK_ASSERT_MODULE, path="tests/test_cart.py"))
        linter.add_message.assert_not_called()

    def test_non_suite_modules_are_ignored(self) -> None:
        checker, linter = _checker()
        checker.visit_module(astroid.parse(HOOK_ASSERT_MODULE, path="src/cart.py"))
        checker.visit_module(astroid.parse(HOOK_ASSERT_MODULE))
        linter.add_message.assert_not_called()

    def test_only_python_patterns_are_used(self) -> None:
        checker, _ = _checker({"suite_patterns": ["*.cy.js", "check_*.py"]})
        assert checker.is_suite_module(astroid.parse("", path="tests/check_cart.py"))
        assert not checker.is_suite_module(astroid.parse("", path="tests/test_cart.py"))


class TestCheckerRegister:
    """Test register(linter) entry point."""

    def test_register_adds_the_checker(self) -> None:
        linter = MagicMock()
        with patch(
            "suite_policy_linter.infrastructure.checker.SuitePolicyContainer.get_instance"
        ) as get_instance:
            container = MagicMock()
            container.get_guidance_service.return_value = GuidanceService()
            container.get_config_loader.return_value = ConfigurationLoader()
            get_instance.return_value = container

            register(linter)

            get_instance.assert_called_once()
            linter.register_checker.assert_called_once()
            assert isinstance(linter.register_checker.call_args.args[0], SuitePolicyChecker)
