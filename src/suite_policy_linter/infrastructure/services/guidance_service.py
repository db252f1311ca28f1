"""GuidanceService: loads the rule registry and provides rule documentation and pylint messages."""

from pathlib import Path
from typing import cast

import yaml

from suite_policy_linter.domain.protocols import GuidanceServiceProtocol
from suite_policy_linter.domain.registry_types import RuleRegistryEntry


class GuidanceService(GuidanceServiceProtocol):
    """Loads rule_registry.yaml and provides get_entry / get_display_name."""

    def __init__(self, registry_path: str | None = None) -> None:
        if registry_path is not None:
            self._path = Path(registry_path)
        else:
            # Default: packaged resource next to this package
            _base = Path(__file__).resolve().parent.parent
            self._path = _base / "resources" / "rule_registry.yaml"
        self._registry: dict[str, RuleRegistryEntry] = {}
        self._load()

    def _load(self) -> None:
        if self._path.exists():
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                self._registry = (
                    cast(dict[str, RuleRegistryEntry], data) if isinstance(data, dict) else {}
                )
        else:
            self._registry = {}

    def get_registry(self) -> dict[str, RuleRegistryEntry]:
        """Return a shallow copy of the loaded registry for use by domain/use_cases."""
        return dict(self._registry)

    def get_entry(self, rule_id: str) -> RuleRegistryEntry | None:
        """Return the registry entry for a rule id or pylint symbol/code, or None."""
        entry = self._registry.get(rule_id)
        if entry:
            return cast(RuleRegistryEntry, dict(entry))
        for e in self._registry.values():
            if rule_id in (e.get("symbol"), e.get("pylint_code")):
                return cast(RuleRegistryEntry, dict(e))
        return None

    def documentation_only(self) -> list[str]:
        """Rule ids of guideline items that have no mechanical check."""
        return sorted(rid for rid, e in self._registry.items() if e.get("documentation_only"))

    def get_display_name(self, rule_id: str) -> str:
        """Return display name for a rule (falls back to a title-cased id)."""
        entry = self.get_entry(rule_id)
        if not entry:
            return rule_id.replace("-", " ").title()
        return str(entry.get("display_name") or entry.get("short_description") or rule_id.replace("-", " ").title())
