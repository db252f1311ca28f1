"""
Pylint plugin entry point - composition root for the checker plugin.
Lives in infrastructure as it creates the container and wires dependencies.

    [tool.pylint.main]
    load-plugins = ["suite_policy_linter.infrastructure.checker"]
"""

from collections.abc import Mapping
from fnmatch import fnmatch
from pathlib import PurePath
from typing import TYPE_CHECKING

from astroid import nodes
from pylint.checkers import BaseChecker

from suite_policy_linter.domain.config import ConfigurationLoader
from suite_policy_linter.domain.registry_types import RuleRegistryEntry
from suite_policy_linter.domain.rule_msgs import RuleMsgBuilder
from suite_policy_linter.domain.rules import SKIPPED_RULE_ID
from suite_policy_linter.infrastructure.di.container import SuitePolicyContainer
from suite_policy_linter.infrastructure.parsers.python_suite import PythonSuiteParser
from suite_policy_linter.use_cases.evaluate_suite import EvaluateSuiteUseCase, RuleCatalog

if TYPE_CHECKING:
    from pylint.lint import PyLinter


class SuitePolicyChecker(BaseChecker):
    """W9701-W9708: suite policy rules on Python test modules. Thin: delegates to the rule engine."""

    name: str = "suite-policy"
    RULE_IDS: tuple[str, ...] = (*RuleCatalog.RULE_IDS, SKIPPED_RULE_ID)

    def __init__(
        self,
        linter: "PyLinter",
        registry: Mapping[str, RuleRegistryEntry],
        config_loader: ConfigurationLoader,
    ) -> None:
        self.msgs = RuleMsgBuilder.build_msgs_for_rules(registry, self.RULE_IDS)  # type: ignore[assignment]
        super().__init__(linter)
        self._codes = RuleMsgBuilder.codes_by_rule(registry, self.RULE_IDS)
        self._patterns = [p for p in config_loader.suite_patterns if p.endswith(".py")]
        self._parser = PythonSuiteParser(config_loader.extra_suffix)
        self._evaluator = EvaluateSuiteUseCase(config_loader)

    def is_suite_module(self, node: nodes.Module) -> bool:
        if not node.file:
            return False
        filename = PurePath(node.file).name
        return any(fnmatch(filename, pattern) for pattern in self._patterns)

    def visit_module(self, node: nodes.Module) -> None:
        """Classify the module's tests and report every finding at its location."""
        if not self.is_suite_module(node):
            return
        suite = self._parser.parse_module(node, node.file)
        report = self._evaluator.execute(suite)
        for finding in report:
            code = self._codes.get(finding.rule_id)
            if code is None:
                continue
            self.add_message(
                code,
                node=node,
                line=finding.location.line,
                col_offset=finding.location.column - 1,
                end_lineno=finding.location.line,
                end_col_offset=finding.location.column,
                args=(finding.message,),
            )


def register(linter: "PyLinter") -> None:
    """Register checkers."""
    container = SuitePolicyContainer.get_instance()
    linter.register_checker(
        SuitePolicyChecker(
            linter,
            registry=container.get_guidance_service().get_registry(),
            config_loader=container.get_config_loader(),
        )
    )
