"""Use Case: Evaluate Suite - run the enabled rules over one parsed suite and build a Report."""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from suite_policy_linter.domain.entities import (
    Finding,
    ParsedSuite,
    Report,
    Severity,
    SourceLocation,
    TestCase,
)
from suite_policy_linter.domain.errors import UnknownRuleError, UnsupportedConstructError
from suite_policy_linter.domain.rules import SKIPPED_RULE_ID, Rule
from suite_policy_linter.domain.rules.assertion_rules import (
    NoConditionalAssertRule,
    NoLoopGeneratedAssertRule,
    TestWithoutAssertionRule,
)
from suite_policy_linter.domain.rules.extra_tests import ExtraTestParityRule
from suite_policy_linter.domain.rules.hook_rules import NoAssertInHookRule
from suite_policy_linter.domain.rules.stability import DuplicateTestNameRule, NoFixedWaitRule

if TYPE_CHECKING:
    from suite_policy_linter.domain.config import ConfigurationLoader

logger = logging.getLogger(__name__)


class RuleCatalog:
    """The fixed rule set. No top-level functions; build rules from configuration."""

    RULE_IDS: tuple[str, ...] = (
        NoAssertInHookRule.rule_id,
        ExtraTestParityRule.rule_id,
        NoLoopGeneratedAssertRule.rule_id,
        NoConditionalAssertRule.rule_id,
        TestWithoutAssertionRule.rule_id,
        NoFixedWaitRule.rule_id,
        DuplicateTestNameRule.rule_id,
    )

    @staticmethod
    def all_rules(config: "ConfigurationLoader") -> list[Rule]:
        """Instantiate every rule with configured severities and options."""
        overrides = config.severity_overrides
        return [
            NoAssertInHookRule(severity=overrides.get(NoAssertInHookRule.rule_id)),
            ExtraTestParityRule(severity=overrides.get(ExtraTestParityRule.rule_id)),
            NoLoopGeneratedAssertRule(severity=overrides.get(NoLoopGeneratedAssertRule.rule_id)),
            NoConditionalAssertRule(severity=overrides.get(NoConditionalAssertRule.rule_id)),
            TestWithoutAssertionRule(severity=overrides.get(TestWithoutAssertionRule.rule_id)),
            NoFixedWaitRule(
                calls=config.fixed_wait_calls,
                severity=overrides.get(NoFixedWaitRule.rule_id),
            ),
            DuplicateTestNameRule(severity=overrides.get(DuplicateTestNameRule.rule_id)),
        ]

    @staticmethod
    def select(config: "ConfigurationLoader") -> list[Rule]:
        """Return the enabled rules, raising UnknownRuleError for unknown ids."""
        selection = config.rule_selection
        requested = [*(selection.enabled or ()), *selection.disabled, *config.severity_overrides]
        unknown = sorted({r for r in requested if r not in RuleCatalog.RULE_IDS})
        if unknown:
            raise UnknownRuleError(unknown, list(RuleCatalog.RULE_IDS))
        enabled = set(selection.enabled) if selection.enabled is not None else set(RuleCatalog.RULE_IDS)
        enabled -= set(selection.disabled)
        return [rule for rule in RuleCatalog.all_rules(config) if rule.rule_id in enabled]


class RuleEngine:
    """
    Evaluate a parsed suite against a rule set.

    Evaluation is atomic: findings are collected per rule and only merged into
    a Report once every rule has returned. A rule that raises propagates and no
    report is produced. With `parallel=True` rules run on a thread pool; the
    merged findings are sorted, so output is identical to a sequential run.
    """

    def __init__(
        self,
        rules: Sequence[Rule],
        parallel: bool = False,
        max_workers: int | None = None,
    ) -> None:
        self._rules = tuple(rules)
        self._parallel = parallel
        self._max_workers = max_workers

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def evaluate(self, suite: ParsedSuite) -> Report:
        test_cases = tuple(suite.test_cases)
        if self._parallel and len(self._rules) > 1:
            per_rule = self._evaluate_parallel(test_cases)
        else:
            per_rule = [rule.check(test_cases) for rule in self._rules]

        findings: list[Finding] = [f for rule_findings in per_rule for f in rule_findings]
        findings.extend(self._skipped_findings(suite.skipped))
        logger.debug(
            "Evaluated %s: %d test case(s), %d rule(s), %d finding(s)",
            suite.path,
            len(test_cases),
            len(self._rules),
            len(findings),
        )
        return Report.from_findings(suite.path, findings)

    def _evaluate_parallel(self, test_cases: tuple[TestCase, ...]) -> list[list[Finding]]:
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            # a failing rule re-raises here, before any report is built
            return list(executor.map(lambda rule: rule.check(test_cases), self._rules))

    @staticmethod
    def _skipped_findings(skipped: Sequence[UnsupportedConstructError]) -> list[Finding]:
        return [
            Finding(
                rule_id=SKIPPED_RULE_ID,
                severity=Severity.WARNING,
                location=SourceLocation(error.path, error.line, error.column),
                message=f"Skipped {error.name or 'test'}: {error.message}",
            )
            for error in skipped
        ]


class EvaluateSuiteUseCase:
    """Build the engine from configuration and evaluate suites with it."""

    def __init__(self, config_loader: "ConfigurationLoader") -> None:
        self.config_loader = config_loader
        self.engine = RuleEngine(
            RuleCatalog.select(config_loader),
            parallel=config_loader.parallel,
            max_workers=config_loader.max_workers,
        )

    def execute(self, suite: ParsedSuite) -> Report:
        return self.engine.evaluate(suite)
