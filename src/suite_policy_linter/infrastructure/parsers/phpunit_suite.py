"""PHPUnit suite parser: test classes, their test methods and fixture methods."""

import logging
import re

from suite_policy_linter.domain.config import DEFAULT_EXTRA_SUFFIX
from suite_policy_linter.domain.entities import HookType, ParsedSuite, SuiteLanguage, TestCase
from suite_policy_linter.domain.errors import UnsupportedConstructError
from suite_policy_linter.infrastructure.parsers.clike import BlockAnalyzer, BracketMap, CLikeLexer, TokenKind

logger = logging.getLogger(__name__)

HOOK_METHODS: dict[str, HookType] = {
    "setUp": HookType.SETUP,
    "setUpBeforeClass": HookType.SETUP,
    "tearDown": HookType.TEARDOWN,
    "tearDownAfterClass": HookType.TEARDOWN,
}

_TEST_ANNOTATION = re.compile(r"@test\b")
_TEST_ATTRIBUTE = re.compile(r"\bTest\b")
_EXTRA_GROUP_ANNOTATION = re.compile(r"@group\s+extra\b")
_EXTRA_GROUP_ATTRIBUTE = re.compile(r"\bGroup\s*\(\s*['\"]extra['\"]")
# the normal test an extra-group test pairs with; `Other::testX` keeps the method
_DEPENDS_ANNOTATION = re.compile(r"@depends\s+(?:[\w\\]+::)?(\w+)")
_DEPENDS_ATTRIBUTE = re.compile(r"\bDepends\s*\(\s*['\"](?:[\w\\]+::)?(\w+)['\"]")


class _PhpWalker(BlockAnalyzer):
    LOOP_KEYWORDS = frozenset({"for", "foreach"})
    # array_map($fn, $items) / array_walk($items, $fn)
    LOOP_CALLS = frozenset({"array_map", "array_walk"})
    LOOP_CALLS_ARE_METHODS = False

    def is_assertion(self, index: int) -> bool:
        name = self.tokens[index].text
        if not self.punct_at(index + 1, "("):
            return False
        if self.punct_at(index - 1, "->", "::"):
            return name.startswith("assert") or name.startswith("expect") or name == "fail"
        if self.is_member(index) or self.ident_at(index - 1, "function"):
            return False
        # PHPUnit's global assertion functions: assertTrue($x)
        return name.startswith("assert")

    def parent_class(self, start: int, end: int) -> str:
        """Short name of the `extends` target between `class Name` and `{`."""
        for i in range(start, end):
            if self.ident_at(i, "extends"):
                parent = ""
                j = i + 1
                while j < end and (self.ident_at(j) or self.punct_at(j, "\\")):
                    if self.ident_at(j, "implements"):
                        break
                    if self.ident_at(j):
                        parent = self.tokens[j].text
                    j += 1
                return parent
        return ""


class PhpUnitSuiteParser:
    """
    Parse PHPUnit test classes into TestCase objects.

    Test classes are classes named `*Test` or extending a `*TestCase`. Their
    `test*` methods, and methods marked `@test` or `#[Test]`, are tests;
    setUp/tearDown and their per-class variants are hooks. A test method is
    extra when its name ends with the extra suffix or it is in the `extra`
    group; an extra-group test pairs with the test named by its `@depends`
    annotation or `#[Depends]` attribute.
    """

    def __init__(self, extra_suffix: str = DEFAULT_EXTRA_SUFFIX) -> None:
        self._extra_suffix = extra_suffix
        self._lexer = CLikeLexer("php")

    def parse(self, source: str, path: str) -> ParsedSuite:
        tokens = self._lexer.tokenize(source, path)
        walker = _PhpWalker(source, tokens, BracketMap(tokens, path), path)
        cases: list[TestCase] = []
        skipped: list[UnsupportedConstructError] = []

        i = 0
        while i < len(tokens):
            if walker.ident_at(i, "class") and walker.ident_at(i + 1) and not walker.is_member(i):
                brace = i + 2
                while brace < len(tokens) and not walker.punct_at(brace, "{"):
                    brace += 1
                if brace >= len(tokens):
                    break
                class_name = tokens[i + 1].text
                parent = walker.parent_class(i + 2, brace)
                if self._is_test_class(class_name, parent):
                    self._walk_class(walker, brace + 1, walker.brackets[brace], class_name, cases, skipped)
                i = walker.brackets[brace] + 1
                continue
            i += 1

        logger.debug("PHPUnit suite %s: %d case(s), %d skipped", path, len(cases), len(skipped))
        return ParsedSuite(
            path=path,
            language=SuiteLanguage.PHP,
            test_cases=tuple(cases),
            skipped=tuple(skipped),
        )

    @staticmethod
    def _is_test_class(name: str, parent: str) -> bool:
        return name.endswith("Test") or name.endswith("TestCase") or parent.endswith("TestCase")

    def _walk_class(
        self,
        walker: _PhpWalker,
        start: int,
        end: int,
        class_name: str,
        cases: list[TestCase],
        skipped: list[UnsupportedConstructError],
    ) -> None:
        docblock = ""
        attributes: list[str] = []
        i = start
        while i < end:
            tok = walker.tokens[i]
            if tok.kind is TokenKind.DOC:
                docblock = tok.text
                i += 1
            elif tok.is_punct("#["):
                attributes.append(walker.text(i, walker.brackets[i] + 1))
                i = walker.brackets[i] + 1
            elif tok.is_ident("function") and walker.ident_at(i + 1) and walker.punct_at(i + 2, "("):
                name = walker.tokens[i + 1].text
                k = walker.brackets[i + 2] + 1
                # skip a return type declaration
                while k < end and not walker.punct_at(k, "{", ";"):
                    k += 1
                bodiless = k >= end or walker.punct_at(k, ";")
                body = None if bodiless else (k + 1, walker.brackets[k])
                self._classify(walker, i, name, class_name, docblock, " ".join(attributes), body, cases, skipped)
                docblock = ""
                attributes = []
                i = k + 1 if bodiless else walker.brackets[k] + 1
            elif tok.is_punct("{", "(", "["):
                i = walker.brackets[i] + 1
            else:
                if tok.is_punct(";"):
                    docblock = ""
                    attributes = []
                i += 1

    def _classify(
        self,
        walker: _PhpWalker,
        index: int,
        name: str,
        class_name: str,
        docblock: str,
        attributes: str,
        body: tuple[int, int] | None,
        cases: list[TestCase],
        skipped: list[UnsupportedConstructError],
    ) -> None:
        hook = HOOK_METHODS.get(name)
        is_test = (
            name.startswith("test")
            or bool(_TEST_ANNOTATION.search(docblock))
            or bool(_TEST_ATTRIBUTE.search(attributes))
        )
        if hook is None and not is_test:
            return

        qualified = f"{class_name}.{name}"
        location = walker.location(index + 1)
        if body is None:
            skipped.append(
                UnsupportedConstructError(
                    "test method has no body (abstract or interface declaration); cannot classify",
                    walker.path, location.line, location.column, name=qualified,
                )
            )
            return

        assertions, calls = walker.analyze_body(*body)
        if hook is not None:
            cases.append(
                TestCase(
                    name=qualified,
                    hook=hook,
                    location=location,
                    hook_kind=name,
                    assertions=assertions,
                    calls=calls,
                )
            )
            return

        kind = HookType.TEST
        base = qualified
        if self._extra_suffix and name.endswith(self._extra_suffix):
            kind = HookType.EXTRA
            base = f"{class_name}.{name[: -len(self._extra_suffix)]}"
        elif _EXTRA_GROUP_ANNOTATION.search(docblock) or _EXTRA_GROUP_ATTRIBUTE.search(attributes):
            kind = HookType.EXTRA
            depends = _DEPENDS_ANNOTATION.search(docblock) or _DEPENDS_ATTRIBUTE.search(attributes)
            if depends:
                base = f"{class_name}.{depends.group(1)}"
        cases.append(
            TestCase(
                name=qualified,
                hook=kind,
                location=location,
                base_name=base,
                assertions=assertions,
                calls=calls,
            )
        )
