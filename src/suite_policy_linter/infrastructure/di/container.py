from typing import TYPE_CHECKING, Any, Optional, cast

from suite_policy_linter.domain.config import ConfigurationLoader
from suite_policy_linter.infrastructure.config_file_loader import ConfigFileLoader
from suite_policy_linter.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from suite_policy_linter.infrastructure.parsers.registry import SuiteParserRegistry
from suite_policy_linter.infrastructure.services.guidance_service import GuidanceService
from suite_policy_linter.interface.telemetry import ProjectTelemetry

if TYPE_CHECKING:
    from suite_policy_linter.domain.protocols import (
        FileSystemProtocol,
        SuiteParserRegistryProtocol,
        TelemetryPort,
    )


class SuitePolicyContainer:
    """Dependency Injection Container for the suite policy linter."""

    _instance: Optional["SuitePolicyContainer"] = None

    def __init__(self, config_dict: dict[str, object] | None = None) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults(config_dict)

    def _register_defaults(self, config_dict: dict[str, object] | None) -> None:
        """Register default implementations for protocols."""
        telemetry = ProjectTelemetry("SUITE-POLICY", "cyan", "Suite policy check online")
        self.register_singleton("TelemetryPort", telemetry)

        if config_dict is None:
            config_dict = ConfigFileLoader.load_config_from_fs()
        config_loader = ConfigurationLoader(config_dict)
        self.register_singleton("ConfigurationLoader", config_loader)

        self.register_singleton("GuidanceService", GuidanceService())
        self.register_singleton("FileSystemGateway", FileSystemGateway())
        self.register_singleton("SuiteParserRegistry", SuiteParserRegistry(config_loader.extra_suffix))

    # JUSTIFICATION: DI Container must handle any type of service
    def register_singleton(self, key: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[key] = instance

    # JUSTIFICATION: DI Container must return any type of service
    def get(self, key: str) -> Any:
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_telemetry_port(self) -> "TelemetryPort":
        """Return the telemetry/UI port."""
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_config_loader(self) -> ConfigurationLoader:
        """Return the configuration loader (created at composition root)."""
        return cast(ConfigurationLoader, self.get("ConfigurationLoader"))

    def get_guidance_service(self) -> GuidanceService:
        """Return the guidance service (rule registry)."""
        return cast(GuidanceService, self.get("GuidanceService"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        """Return the filesystem gateway."""
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_parser_registry(self) -> "SuiteParserRegistryProtocol":
        """Return the suite parser registry."""
        return cast("SuiteParserRegistryProtocol", self.get("SuiteParserRegistry"))

    @classmethod
    def get_instance(cls) -> "SuitePolicyContainer":
        """Get or create global container instance."""
        if cls._instance is None:
            cls._instance = SuitePolicyContainer()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (primarily for testing)."""
        cls._instance = None
