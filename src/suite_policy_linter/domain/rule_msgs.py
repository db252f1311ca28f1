"""Pure message-building from a registry dict. No I/O or infrastructure imports."""

from collections.abc import Iterable, Mapping

from suite_policy_linter.domain.registry_types import RuleRegistryEntry


class RuleMsgBuilder:
    """
    Builds Pylint msgs dict from a registry mapping.

    No top-level functions: only __main__.py and checker.py may have them.
    """

    @staticmethod
    def codes_by_rule(
        registry: Mapping[str, RuleRegistryEntry], rule_ids: Iterable[str]
    ) -> dict[str, str]:
        """Map rule id -> pylint message code for rules that declare one."""
        result: dict[str, str] = {}
        for rule_id in rule_ids:
            entry = registry.get(rule_id)
            if isinstance(entry, dict) and entry.get("pylint_code"):
                result[rule_id] = str(entry["pylint_code"])
        return result

    @staticmethod
    def build_msgs_for_rules(
        registry: Mapping[str, RuleRegistryEntry], rule_ids: Iterable[str]
    ) -> dict[str, tuple[str, str, str]]:
        """Build Pylint msgs dict for the given rule ids.

        Returns { code: (message_template, symbol, description) } for checker.msgs.
        Entries without a pylint code or message template are left out.
        """
        result: dict[str, tuple[str, str, str]] = {}
        for rule_id in rule_ids:
            entry = registry.get(rule_id)
            if not isinstance(entry, dict):
                continue
            code = entry.get("pylint_code")
            msg = entry.get("message_template")
            if code and msg:
                symbol = entry.get("symbol") or rule_id
                desc = entry.get("short_description") or entry.get("display_name") or rule_id
                result[str(code)] = (str(msg), str(symbol), str(desc))
        return result
