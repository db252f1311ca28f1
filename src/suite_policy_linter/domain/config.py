"""Configuration for suite-policy runs. Immutable value object created by Infrastructure."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from suite_policy_linter.domain.entities import Severity
from suite_policy_linter.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_EXTRA_SUFFIX = "_extra"

DEFAULT_SUITE_PATTERNS: tuple[str, ...] = (
    "test_*.py",
    "*_test.py",
    "*.cy.js",
    "*.cy.ts",
    "*.spec.js",
    "*.spec.ts",
    "*.test.js",
    "*.test.ts",
    "*Test.php",
)

KNOWN_KEYS = frozenset(
    {
        "enabled_rules",
        "disabled_rules",
        "severity_overrides",
        "extra_suffix",
        "fixed_wait_calls",
        "suite_patterns",
        "parallel",
        "max_workers",
    }
)


@dataclass(frozen=True)
class RuleSelection:
    """Which rules to run. `enabled` of None means every rule in the catalog."""
    enabled: tuple[str, ...] | None = None
    disabled: tuple[str, ...] = ()


class ConfigurationLoader:
    """
    Immutable configuration for suite-policy settings.

    Created by Infrastructure from the `[tool.suite-policy]` table
    (ConfigFileLoader.load_config_from_fs()). Domain does not read the
    filesystem. CLI flags are layered on top with `with_overrides`.
    """

    def __init__(self, config_dict: dict[str, object] | None = None) -> None:
        self._config: dict[str, object] = dict(config_dict or {})
        self.validate_config(self._config)

    def validate_config(self, config: dict[str, object]) -> None:
        """Validate value types; unknown keys are reported, not fatal."""
        for key in sorted(set(config) - KNOWN_KEYS):
            logger.warning("Unknown [tool.suite-policy] key ignored: %s", key)

        for key in ("enabled_rules", "disabled_rules", "fixed_wait_calls", "suite_patterns"):
            value = config.get(key)
            if value is None:
                continue
            if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
                raise ConfigurationError(f"'{key}' must be a list of strings")

        suffix = config.get("extra_suffix")
        if suffix is not None and (not isinstance(suffix, str) or not suffix):
            raise ConfigurationError("'extra_suffix' must be a non-empty string")

        parallel = config.get("parallel")
        if parallel is not None and not isinstance(parallel, bool):
            raise ConfigurationError("'parallel' must be true or false")

        workers = config.get("max_workers")
        if workers is not None and (
            isinstance(workers, bool) or not isinstance(workers, int) or workers < 1
        ):
            raise ConfigurationError("'max_workers' must be a positive integer")

        overrides = config.get("severity_overrides")
        if overrides is not None:
            if not isinstance(overrides, dict):
                raise ConfigurationError("'severity_overrides' must be a table")
            valid = {s.value for s in Severity}
            for rule_id, severity in overrides.items():
                if severity not in valid:
                    raise ConfigurationError(
                        f"severity for '{rule_id}' must be one of {sorted(valid)}, got {severity!r}"
                    )

    def with_overrides(
        self,
        enabled_rules: list[str] | None = None,
        disabled_rules: list[str] | None = None,
        parallel: bool | None = None,
    ) -> "ConfigurationLoader":
        """Return a new loader with CLI values layered over the file values."""
        merged = dict(self._config)
        if enabled_rules:
            merged["enabled_rules"] = list(enabled_rules)
        if disabled_rules:
            existing = merged.get("disabled_rules") or []
            merged["disabled_rules"] = [*existing, *disabled_rules]  # type: ignore[misc]
        if parallel is not None:
            merged["parallel"] = parallel
        return ConfigurationLoader(merged)

    @property
    def config(self) -> dict[str, object]:
        """Return the loaded configuration."""
        return dict(self._config)

    @property
    def rule_selection(self) -> RuleSelection:
        enabled = self._config.get("enabled_rules")
        disabled = self._config.get("disabled_rules") or []
        return RuleSelection(
            enabled=tuple(enabled) if isinstance(enabled, list) else None,
            disabled=tuple(disabled) if isinstance(disabled, list) else (),
        )

    @property
    def severity_overrides(self) -> dict[str, Severity]:
        raw = self._config.get("severity_overrides") or {}
        if not isinstance(raw, dict):
            return {}
        return {str(rule_id): Severity(value) for rule_id, value in raw.items()}

    @property
    def extra_suffix(self) -> str:
        raw = self._config.get("extra_suffix")
        return raw if isinstance(raw, str) and raw else DEFAULT_EXTRA_SUFFIX

    @property
    def fixed_wait_calls(self) -> list[str] | None:
        """Call names treated as fixed waits; None keeps the rule's defaults."""
        raw = self._config.get("fixed_wait_calls")
        return [str(x) for x in raw] if isinstance(raw, list) else None

    @property
    def suite_patterns(self) -> list[str]:
        raw = self._config.get("suite_patterns")
        if isinstance(raw, list) and raw:
            return [str(x) for x in raw]
        return list(DEFAULT_SUITE_PATTERNS)

    @property
    def parallel(self) -> bool:
        return bool(self._config.get("parallel", False))

    @property
    def max_workers(self) -> int | None:
        raw = self._config.get("max_workers")
        return raw if isinstance(raw, int) and not isinstance(raw, bool) else None
