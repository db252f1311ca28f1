"""Python suite parser: classify pytest and unittest tests and hooks with astroid."""

import logging

import astroid
from astroid import nodes
from astroid.exceptions import AstroidSyntaxError

from suite_policy_linter.domain.config import DEFAULT_EXTRA_SUFFIX
from suite_policy_linter.domain.entities import (
    AssertionSite,
    CallSite,
    HookType,
    ParsedSuite,
    ScopeKind,
    SourceLocation,
    SuiteLanguage,
    TestCase,
)
from suite_policy_linter.domain.errors import ParseError, UnsupportedConstructError

logger = logging.getLogger(__name__)

HOOK_NAMES: dict[str, HookType] = {
    # unittest
    "setUp": HookType.SETUP,
    "setUpClass": HookType.SETUP,
    "setUpModule": HookType.SETUP,
    "asyncSetUp": HookType.SETUP,
    "tearDown": HookType.TEARDOWN,
    "tearDownClass": HookType.TEARDOWN,
    "tearDownModule": HookType.TEARDOWN,
    "asyncTearDown": HookType.TEARDOWN,
    # pytest xunit-style
    "setup_method": HookType.SETUP,
    "setup_class": HookType.SETUP,
    "setup_function": HookType.SETUP,
    "setup_module": HookType.SETUP,
    "teardown_method": HookType.TEARDOWN,
    "teardown_class": HookType.TEARDOWN,
    "teardown_function": HookType.TEARDOWN,
    "teardown_module": HookType.TEARDOWN,
}

FIXTURE_DECORATORS = frozenset({"pytest.fixture", "fixture", "pytest_asyncio.fixture"})
EXTRA_MARKERS = ("pytest.mark.extra", "mark.extra")
# pytest.raises / pytest.warns verify behaviour as context managers
PYTEST_CHECKS = frozenset({"raises", "warns", "fail"})

_MAX_EXPRESSION = 80


class PythonSuiteParser:
    """
    Parse a Python test module into TestCase objects.

    Test classes are `Test*` classes or subclasses of `*TestCase`; their
    `test*` methods are tests and their xunit/unittest hook methods are hooks.
    Module-level `test*` functions are tests. `@pytest.fixture` functions are
    setup hooks; code after their `yield` is a teardown hook.
    """

    def __init__(self, extra_suffix: str = DEFAULT_EXTRA_SUFFIX) -> None:
        self._extra_suffix = extra_suffix

    def parse(self, source: str, path: str) -> ParsedSuite:
        try:
            module = astroid.parse(source, path=path)
        except AstroidSyntaxError as exc:
            error = getattr(exc, "error", None)
            line = getattr(error, "lineno", None) or 1
            column = getattr(error, "offset", None) or 1
            message = getattr(error, "msg", None) or str(exc)
            raise ParseError(f"invalid Python syntax: {message}", path, line, column) from exc
        except ValueError as exc:
            raise ParseError(f"cannot read Python source: {exc}", path) from exc
        return self.parse_module(module, path)

    def parse_module(self, module: nodes.Module, path: str | None = None) -> ParsedSuite:
        """Classify an already-parsed module (used by the pylint plugin)."""
        suite_path = path or module.file or module.name or "<string>"
        cases: list[TestCase] = []
        skipped: list[UnsupportedConstructError] = []
        self._walk_body(module.body, "", suite_path, cases, skipped)
        return ParsedSuite(
            path=suite_path,
            language=SuiteLanguage.PYTHON,
            test_cases=tuple(cases),
            skipped=tuple(skipped),
        )

    # -- structure -------------------------------------------------------

    def _walk_body(
        self,
        body: list[nodes.NodeNG],
        prefix: str,
        path: str,
        cases: list[TestCase],
        skipped: list[UnsupportedConstructError],
    ) -> None:
        defined: set[str] = set()
        for stmt in body:
            if isinstance(stmt, nodes.FunctionDef):
                defined.add(stmt.name)
                cases.extend(self._classify_function(stmt, prefix, path))
            elif isinstance(stmt, nodes.ClassDef):
                if self._is_test_class(stmt):
                    self._walk_body(stmt.body, self._qualify(prefix, stmt.name), path, cases, skipped)
            elif isinstance(stmt, (nodes.Assign, nodes.AnnAssign)):
                error = self._check_bound_test(stmt, prefix, path, defined)
                if error is not None:
                    skipped.append(error)
            elif isinstance(stmt, nodes.Expr) and isinstance(stmt.value, nodes.Call):
                error = self._check_setattr_test(stmt.value, path)
                if error is not None:
                    skipped.append(error)

    def _classify_function(self, fn: nodes.FunctionDef, prefix: str, path: str) -> list[TestCase]:
        name = fn.name
        qualified = self._qualify(prefix, name)
        if self._is_fixture(fn):
            return self._fixture_cases(fn, qualified, path)
        if name in HOOK_NAMES:
            return [self._build_case(fn, qualified, HOOK_NAMES[name], name, path)]
        if not name.startswith("test"):
            return []
        if self._is_extra(fn):
            base = self._extra_pair(fn)
            if base is None:
                base = name[: -len(self._extra_suffix)] if name.endswith(self._extra_suffix) else name
            return [
                self._build_case(
                    fn, qualified, HookType.EXTRA, "test", path, base_name=self._qualify(prefix, base)
                )
            ]
        return [self._build_case(fn, qualified, HookType.TEST, "test", path)]

    def _fixture_cases(self, fn: nodes.FunctionDef, qualified: str, path: str) -> list[TestCase]:
        yields = [y for y in fn.nodes_of_class(nodes.Yield, skip_klass=nodes.FunctionDef)]
        if not yields:
            return [self._build_case(fn, qualified, HookType.SETUP, "fixture", path)]
        split_line = yields[0].lineno or 0
        assertions, calls = self._collect(fn, path)
        setup = TestCase(
            name=qualified,
            hook=HookType.SETUP,
            hook_kind="fixture",
            location=self._location(fn, path),
            assertions=tuple(a for a in assertions if a.location.line <= split_line),
            calls=tuple(c for c in calls if c.location.line <= split_line),
        )
        teardown = TestCase(
            name=qualified,
            hook=HookType.TEARDOWN,
            hook_kind="fixture",
            location=self._location(yields[0], path),
            assertions=tuple(a for a in assertions if a.location.line > split_line),
            calls=tuple(c for c in calls if c.location.line > split_line),
        )
        return [setup, teardown]

    def _build_case(
        self,
        fn: nodes.FunctionDef,
        qualified: str,
        hook: HookType,
        hook_kind: str,
        path: str,
        base_name: str = "",
    ) -> TestCase:
        assertions, calls = self._collect(fn, path)
        return TestCase(
            name=qualified,
            hook=hook,
            hook_kind=hook_kind,
            location=self._location(fn, path),
            base_name=base_name,
            assertions=tuple(assertions),
            calls=tuple(calls),
        )

    # -- unsupported constructs -----------------------------------------

    def _check_bound_test(
        self,
        stmt: nodes.Assign | nodes.AnnAssign,
        prefix: str,
        path: str,
        defined: set[str],
    ) -> UnsupportedConstructError | None:
        """Tests created by assignment (lambda, factory call, alias) have no body to inspect."""
        value = stmt.value
        if value is None:
            return None
        targets = stmt.targets if isinstance(stmt, nodes.Assign) else [stmt.target]
        for target in targets:
            name = getattr(target, "name", None)
            if not name or not (name.startswith("test") or name in HOOK_NAMES):
                continue
            if isinstance(value, nodes.Lambda):
                reason = "is a lambda"
            elif isinstance(value, nodes.Call):
                reason = f"is built by calling '{value.func.as_string()}'"
            elif isinstance(value, nodes.Name) and value.name in defined:
                reason = f"aliases '{value.name}'"
            else:
                continue
            return UnsupportedConstructError(
                f"'{name}' {reason}; cannot classify a test bound by assignment",
                path,
                stmt.lineno or 1,
                (stmt.col_offset or 0) + 1,
                name=self._qualify(prefix, name),
            )
        return None

    def _check_setattr_test(self, call: nodes.Call, path: str) -> UnsupportedConstructError | None:
        """setattr(SomeTest, "test_x", fn) generates a test at import time."""
        if not isinstance(call.func, nodes.Name) or call.func.name != "setattr" or len(call.args) < 2:
            return None
        attr = call.args[1]
        if isinstance(attr, nodes.Const) and isinstance(attr.value, str) and attr.value.startswith("test"):
            label = attr.value
        elif isinstance(attr, nodes.JoinedStr) and attr.as_string()[2:].startswith("test"):
            label = attr.as_string()
        else:
            return None
        return UnsupportedConstructError(
            f"test '{label}' is generated with setattr(); cannot classify",
            path,
            call.lineno or 1,
            (call.col_offset or 0) + 1,
            name=str(label),
        )

    # -- classification helpers -------------------------------------------

    @staticmethod
    def _qualify(prefix: str, name: str) -> str:
        return f"{prefix}.{name}" if prefix else name

    @staticmethod
    def _is_test_class(cls: nodes.ClassDef) -> bool:
        if cls.name.startswith("Test"):
            return True
        return any(base.as_string().endswith("TestCase") for base in cls.bases)

    @staticmethod
    def _decorator_names(fn: nodes.FunctionDef) -> list[str]:
        if not fn.decorators:
            return []
        names: list[str] = []
        for dec in fn.decorators.nodes:
            target = dec.func if isinstance(dec, nodes.Call) else dec
            names.append(target.as_string())
        return names

    def _is_fixture(self, fn: nodes.FunctionDef) -> bool:
        return any(name in FIXTURE_DECORATORS for name in self._decorator_names(fn))

    def _is_extra(self, fn: nodes.FunctionDef) -> bool:
        if fn.name.endswith(self._extra_suffix):
            return True
        return any(name.endswith(EXTRA_MARKERS) for name in self._decorator_names(fn))

    @staticmethod
    def _extra_pair(fn: nodes.FunctionDef) -> str | None:
        """The normal test named by `@pytest.mark.extra("test_x")`, if any."""
        if not fn.decorators:
            return None
        for dec in fn.decorators.nodes:
            if not isinstance(dec, nodes.Call) or not dec.func.as_string().endswith(EXTRA_MARKERS):
                continue
            first = dec.args[0] if dec.args else None
            if isinstance(first, nodes.Const) and isinstance(first.value, str) and first.value:
                return first.value
        return None

    # -- body extraction ----------------------------------------------------

    def _collect(self, fn: nodes.FunctionDef, path: str) -> tuple[list[AssertionSite], list[CallSite]]:
        assertions: list[AssertionSite] = []
        calls: list[CallSite] = []
        for stmt in fn.body:
            for node in stmt.nodes_of_class((nodes.Assert, nodes.Call)):
                scopes = self._scopes(node, fn)
                if isinstance(node, nodes.Assert):
                    assertions.append(
                        AssertionSite(self._shorten(node.as_string()), self._location(node, path), scopes)
                    )
                    continue
                name = self._call_name(node)
                if self._is_assertion_call(node):
                    assertions.append(
                        AssertionSite(self._shorten(node.as_string()), self._location(node, path), scopes)
                    )
                calls.append(
                    CallSite(
                        name=name,
                        location=self._location(node, path),
                        numeric_argument=self._first_arg_is_number(node),
                        scopes=scopes,
                    )
                )
        return assertions, calls

    @staticmethod
    def _is_assertion_call(call: nodes.Call) -> bool:
        func = call.func
        if isinstance(func, nodes.Attribute):
            if func.attrname.startswith("assert") or func.attrname == "fail":
                return True
            owner = func.expr
            return (
                isinstance(owner, nodes.Name)
                and owner.name == "pytest"
                and func.attrname in PYTEST_CHECKS
            )
        if isinstance(func, nodes.Name):
            return func.name.startswith("assert")
        return False

    @staticmethod
    def _call_name(call: nodes.Call) -> str:
        func = call.func
        if isinstance(func, (nodes.Name, nodes.Attribute)):
            name = func.as_string()
            return name[len("self."):] if name.startswith("self.") else name
        return ""

    @staticmethod
    def _first_arg_is_number(call: nodes.Call) -> bool:
        if not call.args:
            return False
        first = call.args[0]
        if isinstance(first, nodes.UnaryOp):
            first = first.operand
        return (
            isinstance(first, nodes.Const)
            and isinstance(first.value, (int, float))
            and not isinstance(first.value, bool)
        )

    @staticmethod
    def _scopes(node: nodes.NodeNG, stop: nodes.NodeNG) -> tuple[ScopeKind, ...]:
        """Loop/branch constructs between `node` and `stop`, outermost first."""
        kinds: list[ScopeKind] = []
        child = node
        parent = node.parent
        while parent is not None and parent is not stop:
            if isinstance(parent, nodes.For) and any(child is s for s in parent.body):
                kinds.append(ScopeKind.LOOP)
            elif isinstance(parent, (nodes.ListComp, nodes.SetComp, nodes.GeneratorExp)) and child is parent.elt:
                kinds.append(ScopeKind.LOOP)
            elif isinstance(parent, nodes.DictComp) and (child is parent.key or child is parent.value):
                kinds.append(ScopeKind.LOOP)
            elif isinstance(parent, nodes.If) and any(child is s for s in (*parent.body, *parent.orelse)):
                kinds.append(ScopeKind.BRANCH)
            elif isinstance(parent, nodes.IfExp) and (child is parent.body or child is parent.orelse):
                kinds.append(ScopeKind.BRANCH)
            child, parent = parent, parent.parent
        return tuple(reversed(kinds))

    @staticmethod
    def _location(node: nodes.NodeNG, path: str) -> SourceLocation:
        return SourceLocation(path, node.lineno or 1, (node.col_offset or 0) + 1)

    @staticmethod
    def _shorten(text: str) -> str:
        text = " ".join(text.split())
        if len(text) <= _MAX_EXPRESSION:
            return text
        return text[: _MAX_EXPRESSION - 3] + "..."
