"""Load [tool.suite-policy] from pyproject.toml. Infrastructure I/O only."""

import logging
import tomllib
from pathlib import Path

from suite_policy_linter.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

TOOL_SECTION = "suite-policy"


class ConfigFileLoader:
    """
    Loads config from pyproject.toml. No top-level functions.
    """

    @staticmethod
    def load_config_from_fs(start: Path | None = None) -> dict[str, object]:
        """Load [tool.suite-policy] from the nearest pyproject.toml, walking up from `start` (default: cwd)."""
        current_path = (start or Path.cwd()).resolve()
        while True:
            config_file = current_path / "pyproject.toml"
            if config_file.is_file():
                return ConfigFileLoader.load_config_file(config_file)
            if current_path.parent == current_path:
                return {}
            current_path = current_path.parent

    @staticmethod
    def load_config_file(config_file: Path) -> dict[str, object]:
        """Read one pyproject.toml; a malformed file is a ConfigurationError."""
        try:
            with config_file.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"{config_file}: invalid TOML: {exc}") from exc
        except OSError as exc:
            logger.warning("Cannot read %s: %s", config_file, exc)
            return {}
        tool_section = data.get("tool", {}) or {}
        config_dict = tool_section.get(TOOL_SECTION, {}) or {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"{config_file}: [tool.{TOOL_SECTION}] must be a table")
        logger.debug("Loaded [tool.%s] from %s", TOOL_SECTION, config_file)
        return config_dict
