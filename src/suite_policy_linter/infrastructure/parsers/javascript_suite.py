"""JavaScript/TypeScript suite parser for Mocha, Jest, Cypress and Playwright style suites."""

import logging

from suite_policy_linter.domain.config import DEFAULT_EXTRA_SUFFIX
from suite_policy_linter.domain.entities import HookType, ParsedSuite, SourceLocation, SuiteLanguage, TestCase
from suite_policy_linter.domain.errors import UnsupportedConstructError
from suite_policy_linter.infrastructure.parsers.clike import BlockAnalyzer, BracketMap, CLikeLexer, TokenKind

logger = logging.getLogger(__name__)

SUITE_CALLS = frozenset({"describe", "context", "suite"})
HOOK_CALLS: dict[str, HookType] = {
    "before": HookType.SETUP,
    "beforeEach": HookType.SETUP,
    "beforeAll": HookType.SETUP,
    "suiteSetup": HookType.SETUP,
    "setup": HookType.SETUP,
    "after": HookType.TEARDOWN,
    "afterEach": HookType.TEARDOWN,
    "afterAll": HookType.TEARDOWN,
    "suiteTeardown": HookType.TEARDOWN,
    "teardown": HookType.TEARDOWN,
}
TEST_CALLS = frozenset({"it", "test", "specify"})
# it.only(...), test.skip(...), test.describe.serial(...)
MODIFIERS = frozenset({"only", "skip", "todo", "concurrent", "serial", "parallel", "fixme", "fail", "slow"})
TABLE_MODIFIER = "each"
EXTRA_TAG = "@extra"
# it('hidden total', { tags: ['@extra'], extraOf: 'total' }, ...)
EXTRA_OF_KEY = "extraOf"

NAME_SEPARATOR = " > "
# TypeScript forbids JSX outside .tsx, where `<T>expr` is a type assertion
NON_JSX_SUFFIXES = (".ts", ".mts", ".cts")

_SUITE = "suite"
_TEST = "test"


class _JavaScriptWalker(BlockAnalyzer):
    LOOP_KEYWORDS = frozenset({"for"})
    LOOP_CALLS = frozenset({"forEach", "map", "flatMap", "each"})
    LOOP_CALLS_ARE_METHODS = True

    def is_assertion(self, index: int) -> bool:
        name = self.tokens[index].text
        if name == "should":
            return self.is_member(index)
        if self.is_member(index) or self.ident_at(index - 1, "function"):
            return False
        if name == "expect":
            return self.punct_at(index + 1, "(")
        if name == "assert":
            return self.punct_at(index + 1, "(", ".")
        return False

    def construct_at(self, index: int) -> tuple[str, str, list[str], int] | None:
        """
        Recognize a suite, hook or test call starting at `index`.

        Returns (role, call name, modifiers, index of the argument list's `(`).
        Role is `suite`, `test` or a hook call name.
        """
        tok = self.tokens[index]
        if tok.kind is not TokenKind.IDENT or self.is_member(index) or self.ident_at(index - 1, "function"):
            return None
        names = [tok.text]
        j = index + 1
        while self.punct_at(j, ".") and self.ident_at(j + 1):
            names.append(self.tokens[j + 1].text)
            j += 2
        if not self.punct_at(j, "("):
            return None

        head, rest = names[0], names[1:]
        # Playwright: test.describe(...), test.beforeEach(...)
        if head == "test" and rest and (rest[0] in SUITE_CALLS or rest[0] in HOOK_CALLS):
            head, rest = rest[0], rest[1:]
        if any(m not in MODIFIERS and m != TABLE_MODIFIER for m in rest):
            return None
        if head in SUITE_CALLS:
            role = _SUITE
        elif head in TEST_CALLS:
            role = _TEST
        elif head in HOOK_CALLS:
            role = head
        else:
            return None
        return role, ".".join(names), rest, j

    def literal_title(self, args: list[tuple[int, int]]) -> str | None:
        if not args:
            return None
        start, end = args[0]
        tok = self.tokens[start]
        if end - start != 1 or tok.kind is not TokenKind.STRING or tok.dynamic:
            return None
        # a regex literal is lexed as a string too, keep only real quotes
        if self.source[tok.start] not in "'\"`":
            return None
        return tok.text

    def callback_body(self, args: list[tuple[int, int]]) -> tuple[int, int] | None:
        """Token range of the last function argument's body."""
        for start, end in reversed(args):
            j = start
            if self.ident_at(j, "async"):
                j += 1
            if self.ident_at(j, "function"):
                k = j + 1
                while k < end and not self.punct_at(k, "("):
                    k += 1
                if k >= end:
                    continue
                b = self.brackets[k] + 1
                while b < end and not self.punct_at(b, "{"):
                    b += 1
                if b < end:
                    return b + 1, self.brackets[b]
                continue
            k = j
            while k < end:
                tok = self.tokens[k]
                if tok.kind is TokenKind.PUNCT and tok.text in ("(", "[", "{"):
                    k = self.brackets[k] + 1
                    continue
                if tok.is_punct("=>"):
                    body = k + 1
                    if self.punct_at(body, "{"):
                        return body + 1, self.brackets[body]
                    return body, end
                k += 1
        return None

    def extra_marker(self, args: list[tuple[int, int]]) -> tuple[bool, str | None]:
        """
        Read the options object of a test call.

        Returns whether it carries the `@extra` tag (Cypress grep `tags`,
        Playwright `tag`) and the title named by `extraOf`, if any.
        """
        tagged = False
        paired: str | None = None
        for start, end in args[1:]:
            if not self.punct_at(start, "{"):
                continue
            for k in range(start, end):
                tok = self.tokens[k]
                if tok.kind is TokenKind.STRING and tok.text == EXTRA_TAG:
                    tagged = True
                elif tok.text == EXTRA_OF_KEY and tok.kind is not TokenKind.PUNCT and self.punct_at(k + 1, ":"):
                    value = self.token(k + 2)
                    if value is not None and value.kind is TokenKind.STRING and not value.dynamic:
                        paired = value.text
        return tagged, paired


class JavaScriptSuiteParser:
    """
    Parse Mocha/Jest/Cypress/Playwright suites into TestCase objects.

    `describe`/`context`/`suite` blocks qualify names (joined with " > "),
    `before*`/`after*` calls are hooks and `it`/`test`/`specify` calls are
    tests. Tests whose title is not a plain string literal (template
    interpolation, concatenation, variables, `.each` tables) are skipped.
    """

    def __init__(self, extra_suffix: str = DEFAULT_EXTRA_SUFFIX) -> None:
        self._extra_suffix = extra_suffix
        self._lexer = CLikeLexer("javascript", jsx=True)
        self._ts_lexer = CLikeLexer("javascript")

    def parse(self, source: str, path: str) -> ParsedSuite:
        lexer = self._ts_lexer if path.endswith(NON_JSX_SUFFIXES) else self._lexer
        tokens = lexer.tokenize(source, path)
        walker = _JavaScriptWalker(source, tokens, BracketMap(tokens, path), path)
        cases: list[TestCase] = []
        skipped: list[UnsupportedConstructError] = []
        self._walk(walker, 0, len(tokens), [], cases, skipped)
        logger.debug("JavaScript suite %s: %d case(s), %d skipped", path, len(cases), len(skipped))
        return ParsedSuite(
            path=path,
            language=SuiteLanguage.JAVASCRIPT,
            test_cases=tuple(cases),
            skipped=tuple(skipped),
        )

    def _walk(
        self,
        walker: _JavaScriptWalker,
        start: int,
        end: int,
        describe_path: list[str],
        cases: list[TestCase],
        skipped: list[UnsupportedConstructError],
        dynamic_suite: str | None = None,
    ) -> None:
        i = start
        while i < end:
            construct = walker.construct_at(i)
            if construct is None:
                i += 1
                continue
            role, call, modifiers, paren = construct
            close = walker.brackets[paren]
            after = close + 1
            location = walker.location(i)

            if TABLE_MODIFIER in modifiers:
                # X.each(table)(title, fn): skip the second argument list too
                if walker.punct_at(after, "("):
                    after = walker.brackets[after] + 1
                skipped.append(
                    UnsupportedConstructError(
                        f"'{call}' generates tests from a table; cannot classify",
                        walker.path, location.line, location.column, name=call,
                    )
                )
                i = after
                continue

            args = walker.split_arguments(paren + 1, close)
            body = walker.callback_body(args)
            if role == _SUITE:
                title = walker.literal_title(args)
                nested_dynamic = dynamic_suite
                if title is None:
                    title = walker.text(*args[0]) if args else call
                    nested_dynamic = nested_dynamic or title
                if body is not None:
                    self._walk(
                        walker, body[0], body[1], [*describe_path, title], cases, skipped, nested_dynamic
                    )
            elif role == _TEST:
                case = self._test_case(walker, args, body, describe_path, location, skipped, dynamic_suite)
                if case is not None:
                    cases.append(case)
            elif body is not None:
                assertions, calls = walker.analyze_body(*body)
                cases.append(
                    TestCase(
                        name=NAME_SEPARATOR.join([*describe_path, role]),
                        hook=HOOK_CALLS[role],
                        location=location,
                        hook_kind=role,
                        assertions=assertions,
                        calls=calls,
                    )
                )
            i = after

    def _test_case(
        self,
        walker: _JavaScriptWalker,
        args: list[tuple[int, int]],
        body: tuple[int, int] | None,
        describe_path: list[str],
        location: SourceLocation,
        skipped: list[UnsupportedConstructError],
        dynamic_suite: str | None = None,
    ) -> TestCase | None:
        title = walker.literal_title(args)
        if title is not None and dynamic_suite is not None:
            skipped.append(
                UnsupportedConstructError(
                    f"test is inside the dynamically named block {dynamic_suite}; cannot classify",
                    walker.path, location.line, location.column, name=title,
                )
            )
            return None
        if title is None:
            label = walker.text(*args[0]) if args else "test"
            skipped.append(
                UnsupportedConstructError(
                    "test name is not a string literal (dynamically named test); cannot classify",
                    walker.path, location.line, location.column, name=label,
                )
            )
            return None
        name = NAME_SEPARATOR.join([*describe_path, title])
        if body is None:
            skipped.append(
                UnsupportedConstructError(
                    "pending test without a callback; cannot classify",
                    walker.path, location.line, location.column, name=name,
                )
            )
            return None

        base_title = title
        hook = HookType.TEST
        tagged, paired = walker.extra_marker(args)
        if self._extra_suffix and title.endswith(self._extra_suffix):
            hook = HookType.EXTRA
            base_title = title[: -len(self._extra_suffix)].rstrip()
        elif tagged or paired is not None:
            hook = HookType.EXTRA
        if hook is HookType.EXTRA and paired is not None:
            base_title = paired

        assertions, calls = walker.analyze_body(*body)
        return TestCase(
            name=name,
            hook=hook,
            location=location,
            base_name=NAME_SEPARATOR.join([*describe_path, base_title]),
            assertions=assertions,
            calls=calls,
        )
