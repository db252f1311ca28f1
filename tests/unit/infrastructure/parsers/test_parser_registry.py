"""Unit tests for SuiteParserRegistry dispatch."""

import pytest

from suite_policy_linter.domain.entities import HookType
from suite_policy_linter.domain.errors import UnsupportedSuiteError
from suite_policy_linter.infrastructure.parsers.javascript_suite import JavaScriptSuiteParser
from suite_policy_linter.infrastructure.parsers.phpunit_suite import PhpUnitSuiteParser
from suite_policy_linter.infrastructure.parsers.python_suite import PythonSuiteParser
from suite_policy_linter.infrastructure.parsers.registry import SuiteParserRegistry


class TestSuiteParserRegistry:
    @pytest.mark.parametrize(
        ("path", "parser_type"),
        [
            ("tests/test_login.py", PythonSuiteParser),
            ("tests/LoginTest.php", PhpUnitSuiteParser),
            ("cypress/e2e/login.cy.js", JavaScriptSuiteParser),
            ("e2e/login.spec.TS", JavaScriptSuiteParser),
            ("src/Login.test.tsx", JavaScriptSuiteParser),
        ],
    )
    def test_dispatch_by_suffix(self, path: str, parser_type: type) -> None:
        assert isinstance(SuiteParserRegistry().parser_for(path), parser_type)

    def test_javascript_suffixes_share_one_parser(self) -> None:
        registry = SuiteParserRegistry()
        assert registry.parser_for("a.js") is registry.parser_for("b.ts")

    def test_supports(self) -> None:
        registry = SuiteParserRegistry()
        assert registry.supports("login.cy.js")
        assert not registry.supports("README.md")
        assert not registry.supports("Makefile")

    def test_supported_suffixes_are_sorted(self) -> None:
        suffixes = SuiteParserRegistry().supported_suffixes()
        assert suffixes == sorted(suffixes)
        assert {".py", ".php", ".js", ".ts"} <= set(suffixes)

    def test_unknown_suffix_raises(self) -> None:
        with pytest.raises(UnsupportedSuiteError, match=r"login_spec\.rb: no suite parser for '\.rb' files"):
            SuiteParserRegistry().parser_for("login_spec.rb")

    def test_extra_suffix_reaches_the_parsers(self) -> None:
        parser = SuiteParserRegistry(extra_suffix="Extra").parser_for("test_cart.py")
        suite = parser.parse("def test_totalExtra():\n    assert True\n", "test_cart.py")
        assert suite.test_cases[0].hook is HookType.EXTRA
        assert suite.test_cases[0].base_name == "test_total"
