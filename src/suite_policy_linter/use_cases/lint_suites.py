"""Use Case: Lint Suites - load suite files, parse them and evaluate each one."""

import logging
from typing import TYPE_CHECKING

from suite_policy_linter.domain.entities import LintRun, Report, SuiteFailure
from suite_policy_linter.domain.errors import ParseError
from suite_policy_linter.domain.protocols import (
    FileSystemProtocol,
    SuiteParserRegistryProtocol,
    TelemetryPort,
)

if TYPE_CHECKING:
    from suite_policy_linter.domain.config import ConfigurationLoader
    from suite_policy_linter.use_cases.evaluate_suite import EvaluateSuiteUseCase

logger = logging.getLogger(__name__)


class LintSuitesUseCase:
    """
    Orchestrate a lint run.

    Loading (I/O) happens first for every suite, then each suite is parsed and
    evaluated on its own. A suite that fails to parse is recorded as a failure
    and the remaining suites are still evaluated.
    """

    def __init__(
        self,
        parsers: SuiteParserRegistryProtocol,
        filesystem: FileSystemProtocol,
        evaluator: "EvaluateSuiteUseCase",
        telemetry: TelemetryPort,
        config_loader: "ConfigurationLoader",
    ) -> None:
        self.parsers = parsers
        self.filesystem = filesystem
        self.evaluator = evaluator
        self.telemetry = telemetry
        self.config_loader = config_loader

    def discover(self, targets: list[str]) -> list[str]:
        """Expand directories into suite files. Explicit files are kept as given."""
        found: list[str] = []
        for target in targets:
            if self.filesystem.is_directory(target):
                suites = self.filesystem.find_suites(target, self.config_loader.suite_patterns)
                found.extend(s for s in suites if self.parsers.supports(s))
            else:
                # explicit files must have a parser; parser_for raises otherwise
                self.parsers.parser_for(target)
                found.append(target)
        return sorted(dict.fromkeys(found))

    def execute(self, targets: list[str]) -> LintRun:
        paths = self.discover(targets)
        self.telemetry.step(f"Found {len(paths)} suite(s) to check.")

        failures: list[SuiteFailure] = []
        sources: dict[str, str] = {}
        for path in paths:
            try:
                sources[path] = self.filesystem.read_text(path)
            except ParseError as exc:
                failures.append(self._failure(path, exc))

        reports: list[Report] = []
        for path, source in sources.items():
            try:
                reports.append(self.lint_source(source, path))
            except ParseError as exc:
                failures.append(self._failure(path, exc))
        failures.sort(key=lambda failure: failure.path)
        return LintRun(reports=tuple(reports), failures=tuple(failures))

    def _failure(self, path: str, exc: ParseError) -> SuiteFailure:
        logger.info("Parse failure in %s: %s", path, exc)
        self.telemetry.error(f"Cannot parse {exc}")
        return SuiteFailure(path=path, error=exc)

    def lint_source(self, source: str, path: str) -> Report:
        """Parse and evaluate one in-memory suite. Raises ParseError."""
        parser = self.parsers.parser_for(path)
        suite = parser.parse(source, path)
        logger.debug(
            "Parsed %s: %d test case(s), %d skipped", path, len(suite.test_cases), len(suite.skipped)
        )
        return self.evaluator.execute(suite)
