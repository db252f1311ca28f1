"""
Tokenizer and block analysis shared by the brace-delimited suite dialects.

JavaScript/TypeScript and PHP suites are not parsed into a full syntax tree.
The lexer produces a flat token stream (strings, comments and regex literals
are consumed whole, so brackets inside them never count), brackets are matched
once, and the dialect parsers walk the stream using the bracket map to jump
over argument lists and blocks.
"""

import re
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum

from suite_policy_linter.domain.entities import AssertionSite, CallSite, ScopeKind, SourceLocation
from suite_policy_linter.domain.errors import ParseError


class TokenKind(Enum):
    IDENT = "ident"
    STRING = "string"
    NUMBER = "number"
    PUNCT = "punct"
    DOC = "doc"  # /** docblock */ (PHP annotations live here)
    MARKUP = "markup"  # a whole JSX element


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str  # unquoted contents for STRING
    start: int
    end: int
    line: int
    column: int
    dynamic: bool = False  # string with interpolation

    def is_punct(self, *texts: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.text in texts

    def is_ident(self, *names: str) -> bool:
        return self.kind is TokenKind.IDENT and (not names or self.text in names)


OPENERS = {"(": ")", "[": "]", "{": "}", "#[": "]"}
CLOSERS = frozenset({")", "]", "}"})

_MULTI_PUNCT = (
    "...", "===", "!==", "**=", "<<=", ">>=",
    "=>", "->", "::", "?.", "??", "==", "!=", "<=", ">=", "&&", "||",
    "++", "--", "+=", "-=", "*=", "/=", ".=",
)
_NUMBER = re.compile(r"0[xXbBoO][0-9a-fA-F_]+n?|(?:\d[\d_]*(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?n?")
_IDENT = re.compile(r"(?:[^\W\d]|\$)[\w$]*")
_PHP_INTERPOLATION = re.compile(r"\$[A-Za-z_{]|\{\$")
_PHP_HEREDOC = re.compile(r"""<<<[ \t]*(['"]?)([A-Za-z_]\w*)\1[ \t]*\r?\n""")
# <div ...>, <Foo.Bar>, <> but not a TSX type parameter (<T,> or <T extends U>)
_MARKUP_START = re.compile(r"<(?:>|[A-Za-z_$][\w$.:-]*(?=[\s/>{])(?![ \t]+extends\b))")

# a '/' after these starts a regex literal rather than a division
_REGEX_PREFIX_KEYWORDS = frozenset(
    {"return", "typeof", "instanceof", "in", "of", "new", "delete", "void", "throw", "case", "do", "else", "yield", "await"}
)

MEMBER_ACCESS = (".", "?.", "->", "::")

NOT_CALLS = frozenset(
    {
        "if", "for", "foreach", "while", "switch", "catch", "function", "return", "typeof",
        "with", "elseif", "array", "list", "isset", "unset", "empty", "fn", "match", "else",
    }
)


class CLikeLexer:
    """
    Tokenize JavaScript/TypeScript (`dialect="javascript"`) or PHP (`dialect="php"`) source.

    With `jsx=True` (JavaScript only) a JSX element in expression position is
    consumed whole as one MARKUP token.
    """

    def __init__(self, dialect: str, jsx: bool = False) -> None:
        if dialect not in ("javascript", "php"):
            raise ValueError(f"unknown dialect: {dialect}")
        self._php = dialect == "php"
        self._jsx = jsx and not self._php

    def tokenize(self, source: str, path: str) -> list[Token]:
        self._source = source
        self._path = path
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]
        tokens: list[Token] = []
        n = len(source)
        i = 0
        while i < n:
            c = source[i]
            if c in " \t\r\n\f\v﻿":
                i += 1
            elif source.startswith("/**", i) and not source.startswith("/**/", i):
                end = self._comment_end(i)
                if self._php:
                    tokens.append(self._token(TokenKind.DOC, source[i:end], i, end))
                i = end
            elif source.startswith("/*", i):
                i = self._comment_end(i)
            elif source.startswith("//", i):
                i = self._line_end(i)
            elif self._php and source.startswith("#[", i):
                tokens.append(self._token(TokenKind.PUNCT, "#[", i, i + 2))
                i += 2
            elif self._php and c == "#":
                i = self._line_end(i)
            elif self._php and (heredoc := _PHP_HEREDOC.match(source, i)) is not None:
                end, body = self._scan_heredoc(heredoc)
                dynamic = heredoc.group(1) != "'" and bool(_PHP_INTERPOLATION.search(body))
                tokens.append(self._token(TokenKind.STRING, body, i, end, dynamic))
                i = end
            elif c in "'\"":
                end = self._scan_quoted(i, allow_newline=self._php)
                text = source[i + 1:end - 1]
                dynamic = self._php and c == '"' and bool(_PHP_INTERPOLATION.search(text))
                tokens.append(self._token(TokenKind.STRING, text, i, end, dynamic))
                i = end
            elif c == "`" and not self._php:
                end, dynamic = self._scan_template(i)
                tokens.append(self._token(TokenKind.STRING, source[i + 1:end - 1], i, end, dynamic))
                i = end
            elif c.isdigit() or (c == "." and i + 1 < n and source[i + 1].isdigit()):
                match = _NUMBER.match(source, i)
                end = match.end() if match else i + 1
                tokens.append(self._token(TokenKind.NUMBER, source[i:end], i, end))
                i = end
            elif (match := _IDENT.match(source, i)) is not None:
                tokens.append(self._token(TokenKind.IDENT, match.group(), i, match.end()))
                i = match.end()
            elif (
                c == "<"
                and self._jsx
                and self._regex_allowed(tokens)
                and _MARKUP_START.match(source, i) is not None
            ):
                end = self._scan_markup(i)
                tokens.append(self._token(TokenKind.MARKUP, source[i:end], i, end))
                i = end
            elif c == "/" and not self._php and self._regex_allowed(tokens):
                end = self._scan_regex(i)
                tokens.append(self._token(TokenKind.STRING, source[i:end], i, end))
                i = end
            else:
                punct = next((p for p in _MULTI_PUNCT if source.startswith(p, i)), c)
                tokens.append(self._token(TokenKind.PUNCT, punct, i, i + len(punct)))
                i += len(punct)
        return tokens

    # -- scanning helpers --------------------------------------------------

    def _position(self, offset: int) -> tuple[int, int]:
        line = bisect_right(self._line_starts, offset)
        return line, offset - self._line_starts[line - 1] + 1

    def _token(self, kind: TokenKind, text: str, start: int, end: int, dynamic: bool = False) -> Token:
        line, column = self._position(start)
        return Token(kind, text, start, end, line, column, dynamic)

    def _fail(self, message: str, offset: int) -> ParseError:
        line, column = self._position(offset)
        return ParseError(message, self._path, line, column)

    def _line_end(self, i: int) -> int:
        end = self._source.find("\n", i)
        return len(self._source) if end < 0 else end

    def _comment_end(self, i: int) -> int:
        end = self._source.find("*/", i + 2)
        if end < 0:
            raise self._fail("unterminated block comment", i)
        return end + 2

    def _scan_quoted(self, i: int, allow_newline: bool) -> int:
        source = self._source
        quote = source[i]
        j = i + 1
        while j < len(source):
            c = source[j]
            if c == "\\":
                j += 2
                continue
            if c == quote:
                return j + 1
            if c == "\n" and not allow_newline:
                break
            j += 1
        raise self._fail("unterminated string literal", i)

    def _scan_template(self, i: int) -> tuple[int, bool]:
        source = self._source
        dynamic = False
        j = i + 1
        while j < len(source):
            c = source[j]
            if c == "\\":
                j += 2
            elif c == "`":
                return j + 1, dynamic
            elif c == "$" and source.startswith("${", j):
                dynamic = True
                j = self._skip_interpolation(j + 2)
            else:
                j += 1
        raise self._fail("unterminated template literal", i)

    def _skip_interpolation(self, j: int) -> int:
        source = self._source
        depth = 1
        while j < len(source):
            c = source[j]
            if c in "'\"":
                j = self._scan_quoted(j, allow_newline=False)
            elif c == "`":
                j, _ = self._scan_template(j)
            elif c == "{":
                depth += 1
                j += 1
            elif c == "}":
                depth -= 1
                j += 1
                if depth == 0:
                    return j
            else:
                j += 1
        raise self._fail("unterminated template expression", j - 1)

    def _regex_allowed(self, tokens: list[Token]) -> bool:
        if not tokens:
            return True
        prev = tokens[-1]
        if prev.kind is TokenKind.PUNCT:
            return prev.text not in (")", "]", "}", "++", "--")
        if prev.kind is TokenKind.IDENT:
            return prev.text in _REGEX_PREFIX_KEYWORDS
        return False

    def _scan_regex(self, i: int) -> int:
        source = self._source
        in_class = False
        j = i + 1
        while j < len(source):
            c = source[j]
            if c == "\\":
                j += 2
                continue
            if c == "\n":
                break
            if c == "[":
                in_class = True
            elif c == "]":
                in_class = False
            elif c == "/" and not in_class:
                j += 1
                while j < len(source) and source[j].isalpha():
                    j += 1
                return j
            j += 1
        raise self._fail("unterminated regular expression", i)

    def _scan_heredoc(self, opener: re.Match[str]) -> tuple[int, str]:
        """End offset and body of a heredoc/nowdoc; the closing label may be indented (PHP 7.3+)."""
        closing = re.compile(rf"^[ \t]*{re.escape(opener.group(2))}\b", re.MULTILINE)
        match = closing.search(self._source, opener.end())
        if match is None:
            raise self._fail("unterminated heredoc", opener.start())
        return match.end(), self._source[opener.end():match.start()]

    def _scan_markup(self, i: int) -> int:
        """End offset of the JSX element or fragment starting at `i`. Text children are opaque."""
        source = self._source
        depth = 0
        j = i
        while j < len(source):
            c = source[j]
            if source.startswith("</", j):
                close = source.find(">", j)
                if close < 0:
                    break
                depth -= 1
                j = close + 1
                if depth == 0:
                    return j
            elif c == "<":
                j, self_closing = self._scan_tag(j)
                if not self_closing:
                    depth += 1
                elif depth == 0:
                    return j
            elif c == "{":
                j = self._skip_interpolation(j + 1)
            else:
                j += 1
        raise self._fail("unterminated JSX element", i)

    def _scan_tag(self, i: int) -> tuple[int, bool]:
        """End offset of the opening tag at `i` and whether it closes itself (`/>`)."""
        source = self._source
        j = i + 1
        while j < len(source):
            c = source[j]
            if c in "'\"":
                j = self._scan_quoted(j, allow_newline=True)
            elif c == "{":
                j = self._skip_interpolation(j + 1)
            elif source.startswith("/>", j):
                return j + 2, True
            elif c == ">":
                return j + 1, False
            else:
                j += 1
        raise self._fail("unterminated JSX tag", i)


class BracketMap:
    """Matching bracket indices in both directions for a token stream."""

    def __init__(self, tokens: list[Token], path: str) -> None:
        self._pairs: dict[int, int] = {}
        stack: list[int] = []
        for index, token in enumerate(tokens):
            if token.kind is not TokenKind.PUNCT:
                continue
            if token.text in OPENERS:
                stack.append(index)
            elif token.text in CLOSERS:
                if not stack or OPENERS[tokens[stack[-1]].text] != token.text:
                    raise ParseError(f"unexpected '{token.text}'", path, token.line, token.column)
                opener = stack.pop()
                self._pairs[opener] = index
                self._pairs[index] = opener
        if stack:
            token = tokens[stack[-1]]
            raise ParseError(f"unclosed '{token.text}'", path, token.line, token.column)

    def __getitem__(self, index: int) -> int:
        return self._pairs[index]


class BlockAnalyzer:
    """
    Token-stream queries shared by the dialect parsers.

    Subclasses set the dialect vocabulary (loop keywords, loop callbacks) and
    implement `is_assertion`.
    """

    LOOP_KEYWORDS: frozenset[str] = frozenset({"for"})
    BRANCH_KEYWORDS: frozenset[str] = frozenset({"if", "switch"})
    # calls whose callback runs once per element
    LOOP_CALLS: frozenset[str] = frozenset()
    LOOP_CALLS_ARE_METHODS: bool = True

    def __init__(self, source: str, tokens: list[Token], brackets: BracketMap, path: str) -> None:
        self.source = source
        self.tokens = tokens
        self.brackets = brackets
        self.path = path

    # -- token access --------------------------------------------------------

    def token(self, index: int) -> Token | None:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def punct_at(self, index: int, *texts: str) -> bool:
        tok = self.token(index)
        return tok is not None and tok.is_punct(*texts)

    def ident_at(self, index: int, *names: str) -> bool:
        tok = self.token(index)
        return tok is not None and tok.is_ident(*names)

    def is_member(self, index: int) -> bool:
        """True when the token at `index` follows `.`, `?.`, `->` or `::`."""
        return self.punct_at(index - 1, *MEMBER_ACCESS)

    def location(self, index: int) -> SourceLocation:
        tok = self.tokens[index]
        return SourceLocation(self.path, tok.line, tok.column)

    def text(self, start: int, end: int) -> str:
        """Source text covered by tokens[start:end], whitespace collapsed."""
        if end <= start:
            return ""
        raw = self.source[self.tokens[start].start:self.tokens[end - 1].end]
        text = " ".join(raw.split())
        return text if len(text) <= 80 else text[:77] + "..."

    # -- statements and regions ----------------------------------------------

    def statement_end(self, start: int, limit: int) -> int:
        """Exclusive end index of the single statement starting at `start`."""
        j = start
        while j < limit:
            tok = self.tokens[j]
            if tok.is_punct(";"):
                return j + 1
            if tok.kind is TokenKind.PUNCT and tok.text in CLOSERS:
                return j
            if j > start and tok.line > self.tokens[j - 1].line and not self._continues(self.tokens[j - 1], tok):
                return j
            if tok.kind is TokenKind.PUNCT and tok.text in OPENERS:
                j = self.brackets[j] + 1
                continue
            j += 1
        return limit

    @staticmethod
    def _continues(prev: Token, tok: Token) -> bool:
        if tok.is_punct(*MEMBER_ACCESS) or tok.is_punct(")", "]", "=>"):
            return True
        return prev.kind is TokenKind.PUNCT and prev.text not in (")", "]", "}", "++", "--")

    def controlled_region(self, body_start: int, limit: int) -> tuple[int, int]:
        """Region governed by a control keyword: a `{...}` block or one statement."""
        if self.punct_at(body_start, "{"):
            return body_start, self.brackets[body_start] + 1
        return body_start, self.statement_end(body_start, limit)

    def scope_regions(self, start: int, end: int) -> list[tuple[ScopeKind, int, int]]:
        """Loop and branch regions inside tokens[start:end], as (kind, start, end)."""
        regions: list[tuple[ScopeKind, int, int]] = []
        for i in range(start, end):
            tok = self.tokens[i]
            if tok.kind is not TokenKind.IDENT or self.is_member(i):
                continue
            header = i + 1
            if tok.text == "for" and self.ident_at(header, "await"):
                header += 1
            if tok.text in self.LOOP_KEYWORDS and self.punct_at(header, "("):
                regions.append((ScopeKind.LOOP, *self.controlled_region(self.brackets[header] + 1, end)))
            elif tok.text in self.BRANCH_KEYWORDS and self.punct_at(header, "("):
                regions.append((ScopeKind.BRANCH, *self.controlled_region(self.brackets[header] + 1, end)))
            elif tok.text == "else" and not self.ident_at(i + 1, "if"):
                regions.append((ScopeKind.BRANCH, *self.controlled_region(i + 1, end)))
        for i in range(start, end):
            tok = self.tokens[i]
            if tok.kind is not TokenKind.IDENT or tok.text not in self.LOOP_CALLS:
                continue
            if self.is_member(i) != self.LOOP_CALLS_ARE_METHODS or not self.punct_at(i + 1, "("):
                continue
            regions.append((ScopeKind.LOOP, i + 1, self.brackets[i + 1] + 1))
        return regions

    @staticmethod
    def scopes_at(index: int, regions: list[tuple[ScopeKind, int, int]]) -> tuple[ScopeKind, ...]:
        enclosing = sorted(
            ((start, -end, kind) for kind, start, end in regions if start <= index < end),
        )
        return tuple(kind for _, _, kind in enclosing)

    # -- call chains ---------------------------------------------------------

    def chain_start(self, index: int) -> int:
        """First token of the member chain that `index` belongs to."""
        j = index
        while self.is_member(j):
            prev = j - 2
            tok = self.token(prev)
            if tok is None:
                break
            if tok.kind is TokenKind.PUNCT and tok.text in (")", "]"):
                prev = self.brackets[prev]
                if self.ident_at(prev - 1):
                    prev -= 1
                j = prev
            elif tok.kind is TokenKind.IDENT:
                j = prev
            else:
                break
        return j

    def chain_end(self, index: int) -> int:
        """Exclusive end of the call/member chain starting at `index`."""
        j = index + 1
        while j < len(self.tokens):
            if self.punct_at(j, "(", "["):
                j = self.brackets[j] + 1
            elif self.punct_at(j, *MEMBER_ACCESS) and self.ident_at(j + 1):
                j += 2
            else:
                break
        return j

    def call_name(self, index: int) -> str:
        """Dotted name of the call at `index`: `cy.wait`, `page.waitForTimeout`, `browser.pause`."""
        parts = [self.tokens[index].text]
        j = index
        while self.is_member(j) and self.ident_at(j - 2):
            parts.insert(0, self.tokens[j - 2].text)
            j -= 2
        parts = [p.lstrip("$") for p in parts]
        if len(parts) > 1 and parts[0] == "this":
            parts = parts[1:]
        return ".".join(parts)

    def numeric_argument(self, paren: int) -> bool:
        j = paren + 1
        if self.punct_at(j, "-"):
            j += 1
        tok = self.token(j)
        return tok is not None and tok.kind is TokenKind.NUMBER

    # -- body extraction -------------------------------------------------------

    def is_assertion(self, index: int) -> bool:
        raise NotImplementedError

    def analyze_body(self, start: int, end: int) -> tuple[tuple[AssertionSite, ...], tuple[CallSite, ...]]:
        """Assertions and calls inside tokens[start:end] with their enclosing scopes."""
        regions = self.scope_regions(start, end)
        assertions: list[AssertionSite] = []
        calls: list[CallSite] = []
        for i in range(start, end):
            tok = self.tokens[i]
            if tok.kind is not TokenKind.IDENT:
                continue
            if self.is_assertion(i):
                first = self.chain_start(i)
                assertions.append(
                    AssertionSite(
                        expression=self.text(first, self.chain_end(i)),
                        location=self.location(first),
                        scopes=self.scopes_at(i, regions),
                    )
                )
            if self.punct_at(i + 1, "(") and tok.text not in NOT_CALLS and not self.ident_at(i - 1, "function"):
                calls.append(
                    CallSite(
                        name=self.call_name(i),
                        location=self.location(self.chain_start(i)),
                        numeric_argument=self.numeric_argument(i + 1),
                        scopes=self.scopes_at(i, regions),
                    )
                )
        return tuple(assertions), tuple(calls)

    def split_arguments(self, start: int, end: int) -> list[tuple[int, int]]:
        """Top-level comma-separated argument ranges inside tokens[start:end]."""
        ranges: list[tuple[int, int]] = []
        arg_start = start
        j = start
        while j < end:
            tok = self.tokens[j]
            if tok.kind is TokenKind.PUNCT and tok.text in OPENERS:
                j = self.brackets[j] + 1
                continue
            if tok.is_punct(","):
                ranges.append((arg_start, j))
                arg_start = j + 1
            j += 1
        if arg_start < end:
            ranges.append((arg_start, end))
        return ranges
