"""Parser Registry - dispatch suite files to a dialect parser by extension."""

from pathlib import PurePath

from suite_policy_linter.domain.config import DEFAULT_EXTRA_SUFFIX
from suite_policy_linter.domain.errors import UnsupportedSuiteError
from suite_policy_linter.domain.protocols import SuiteParserProtocol, SuiteParserRegistryProtocol
from suite_policy_linter.infrastructure.parsers.javascript_suite import JavaScriptSuiteParser
from suite_policy_linter.infrastructure.parsers.phpunit_suite import PhpUnitSuiteParser
from suite_policy_linter.infrastructure.parsers.python_suite import PythonSuiteParser

JAVASCRIPT_SUFFIXES = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")


class SuiteParserRegistry(SuiteParserRegistryProtocol):
    """Maps file suffixes to parsers. One parser instance per dialect."""

    def __init__(self, extra_suffix: str = DEFAULT_EXTRA_SUFFIX) -> None:
        javascript = JavaScriptSuiteParser(extra_suffix)
        self._parsers: dict[str, SuiteParserProtocol] = {
            ".py": PythonSuiteParser(extra_suffix),
            ".php": PhpUnitSuiteParser(extra_suffix),
        }
        for suffix in JAVASCRIPT_SUFFIXES:
            self._parsers[suffix] = javascript

    def supported_suffixes(self) -> list[str]:
        return sorted(self._parsers)

    def supports(self, path: str) -> bool:
        return PurePath(path).suffix.lower() in self._parsers

    def parser_for(self, path: str) -> SuiteParserProtocol:
        suffix = PurePath(path).suffix.lower()
        parser = self._parsers.get(suffix)
        if parser is None:
            raise UnsupportedSuiteError(
                f"{path}: no suite parser for '{suffix or path}' files "
                f"(supported: {', '.join(self.supported_suffixes())})"
            )
        return parser
