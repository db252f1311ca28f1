"""Unit tests for PythonSuiteParser classification and assertion extraction."""

import textwrap
import unittest

import astroid

from suite_policy_linter.domain.entities import HookType, ScopeKind, SuiteLanguage
from suite_policy_linter.domain.errors import ParseError
from suite_policy_linter.infrastructure.parsers.python_suite import PythonSuiteParser


def _parse(source: str, extra_suffix: str = "_extra"):
    return PythonSuiteParser(extra_suffix).parse(textwrap.dedent(source), "test_sample.py")


def _by_name(suite):
    return {(tc.name, tc.hook): tc for tc in suite.test_cases}


class TestUnittestClassification(unittest.TestCase):
    def test_hooks_and_tests_in_testcase_class(self) -> None:
        suite = _parse(
            """
            import unittest

            class LoginTests(unittest.TestCase):
                def setUp(self):
                    self.user = make_user()
                    self.assertTrue(self.user.active)

                def tearDown(self):
                    self.user.delete()

                def test_login(self):
                    self.assertEqual(login(self.user), True)

                def helper(self):
                    self.assertTrue(True)
            """
        )
        cases = _by_name(suite)
        self.assertEqual(suite.language, SuiteLanguage.PYTHON)
        self.assertEqual(
            sorted(cases),
            sorted([
                ("LoginTests.setUp", HookType.SETUP),
                ("LoginTests.tearDown", HookType.TEARDOWN),
                ("LoginTests.test_login", HookType.TEST),
            ]),
        )
        setup = cases[("LoginTests.setUp", HookType.SETUP)]
        self.assertEqual(setup.hook_kind, "setUp")
        self.assertEqual([a.expression for a in setup.assertions], ["self.assertTrue(self.user.active)"])
        self.assertEqual(setup.assertions[0].location.line, 7)
        self.assertEqual(setup.assertions[0].location.column, 9)

    def test_non_test_class_is_ignored(self) -> None:
        suite = _parse(
            """
            class Helpers:
                def test_like(self):
                    assert True
            """
        )
        self.assertEqual(suite.test_cases, ())


class TestPytestClassification(unittest.TestCase):
    def test_fixture_splits_at_yield(self) -> None:
        suite = _parse(
            """
            import pytest

            @pytest.fixture
            def db():
                conn = connect()
                assert conn.ok
                yield conn
                assert conn.closed is False
                conn.close()

            def test_query(db):
                assert db.query(1) == 1
            """
        )
        cases = _by_name(suite)
        setup = cases[("db", HookType.SETUP)]
        teardown = cases[("db", HookType.TEARDOWN)]
        self.assertEqual(setup.hook_kind, "fixture")
        self.assertEqual([a.location.line for a in setup.assertions], [7])
        self.assertEqual([a.location.line for a in teardown.assertions], [9])
        self.assertEqual(teardown.location.line, 8)
        self.assertEqual(len(cases[("test_query", HookType.TEST)].assertions), 1)

    def test_fixture_without_yield_is_setup_only(self) -> None:
        suite = _parse(
            """
            import pytest

            @pytest.fixture()
            def user():
                return {"name": "x"}
            """
        )
        self.assertEqual([(tc.name, tc.hook) for tc in suite.test_cases], [("user", HookType.SETUP)])

    def test_extra_by_suffix_and_marker(self) -> None:
        suite = _parse(
            """
            import pytest

            class TestCart:
                def test_total(self):
                    assert total([1]) == 1

                def test_total_extra(self):
                    assert total([2, 3]) == 5

                @pytest.mark.extra
                def test_discount(self):
                    assert discount(10) == 9
            """
        )
        cases = _by_name(suite)
        suffixed = cases[("TestCart.test_total_extra", HookType.EXTRA)]
        self.assertEqual(suffixed.base_name, "TestCart.test_total")
        marked = cases[("TestCart.test_discount", HookType.EXTRA)]
        self.assertEqual(marked.base_name, "TestCart.test_discount")

    def test_extra_marker_names_its_normal_test(self) -> None:
        suite = _parse(
            """
            import pytest

            class TestCart:
                def test_total(self):
                    assert total([1]) == 1

                @pytest.mark.extra("test_total")
                def test_total_hidden(self):
                    assert total([2, 3]) == 5

                @pytest.mark.extra("test_total")
                def test_rounding_extra(self):
                    assert total([0.1, 0.2]) == 0.3
            """
        )
        cases = _by_name(suite)
        self.assertEqual(cases[("TestCart.test_total_hidden", HookType.EXTRA)].base_name, "TestCart.test_total")
        # the marker argument wins over the suffix
        self.assertEqual(cases[("TestCart.test_rounding_extra", HookType.EXTRA)].base_name, "TestCart.test_total")

    def test_xunit_module_hooks(self) -> None:
        suite = _parse(
            """
            def setup_module(module):
                pass

            def teardown_function(function):
                pass
            """
        )
        self.assertEqual(
            [(tc.name, tc.hook) for tc in suite.test_cases],
            [("setup_module", HookType.SETUP), ("teardown_function", HookType.TEARDOWN)],
        )


class TestAssertionScopes(unittest.TestCase):
    def test_loop_branch_and_comprehension_scopes(self) -> None:
        suite = _parse(
            """
            def test_values():
                for value in [1, 2]:
                    assert value > 0
                if flag:
                    assert flag
                else:
                    assert not flag
                [check(x) for x in items]
                assert done
                while running:
                    assert running
            """
        )
        test = suite.test_cases[0]
        scopes = {a.location.line: a.scopes for a in test.assertions}
        self.assertEqual(scopes[4], (ScopeKind.LOOP,))
        self.assertEqual(scopes[6], (ScopeKind.BRANCH,))
        self.assertEqual(scopes[8], (ScopeKind.BRANCH,))
        self.assertEqual(scopes[10], ())
        # while loops are not repetition over a collection
        self.assertEqual(scopes[12], ())

    def test_pytest_raises_counts_as_assertion(self) -> None:
        suite = _parse(
            """
            import pytest

            def test_rejects():
                with pytest.raises(ValueError):
                    parse("x")
            """
        )
        self.assertEqual(len(suite.test_cases[0].assertions), 1)

    def test_calls_record_numeric_first_argument(self) -> None:
        suite = _parse(
            """
            import time

            def test_waits(page):
                time.sleep(2)
                page.wait_for_timeout(-1)
                time.sleep(delay)
                assert True
            """
        )
        calls = {(c.name, c.location.line): c.numeric_argument for c in suite.test_cases[0].calls}
        self.assertTrue(calls[("time.sleep", 5)])
        self.assertTrue(calls[("page.wait_for_timeout", 6)])
        self.assertFalse(calls[("time.sleep", 7)])


class TestUnsupportedConstructs(unittest.TestCase):
    def test_lambda_and_alias_bound_tests_are_skipped(self) -> None:
        suite = _parse(
            """
            def _check():
                assert True

            def test_real():
                assert True

            test_lambda = lambda: None
            test_alias = test_real
            test_made = make_test("login")
            test_data = [1, 2, 3]
            """
        )
        self.assertEqual([tc.name for tc in suite.test_cases], ["test_real"])
        self.assertEqual([e.name for e in suite.skipped], ["test_lambda", "test_alias", "test_made"])
        self.assertEqual(suite.skipped[0].line, 8)
        self.assertIn("make_test", suite.skipped[2].message)

    def test_setattr_generated_test_is_skipped(self) -> None:
        suite = _parse(
            """
            class TestGenerated:
                pass

            setattr(TestGenerated, "test_dynamic", lambda self: None)
            setattr(TestGenerated, "helper", None)
            """
        )
        self.assertEqual([e.name for e in suite.skipped], ["test_dynamic"])

    def test_syntax_error_raises_parse_error_with_location(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            PythonSuiteParser().parse("def test_x(:\n    pass\n", "test_bad.py")
        self.assertEqual(ctx.exception.path, "test_bad.py")
        self.assertEqual(ctx.exception.line, 1)


class TestParseModule(unittest.TestCase):
    def test_parse_module_uses_given_path(self) -> None:
        module = astroid.parse("def test_a():\n    assert True\n", module_name="test_a")
        suite = PythonSuiteParser().parse_module(module, "tests/test_a.py")
        self.assertEqual(suite.path, "tests/test_a.py")
        self.assertEqual(suite.test_cases[0].location.path, "tests/test_a.py")
