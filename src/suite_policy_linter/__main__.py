"""Package entry point - composition root. Wire dependencies and run the CLI app."""

import logging
import os
import sys

from suite_policy_linter.domain.errors import ConfigurationError
from suite_policy_linter.infrastructure.di.container import SuitePolicyContainer
from suite_policy_linter.interface.cli import CLIAppFactory, CLIDependencies
from suite_policy_linter.interface.telemetry import ProjectTelemetry

LOG_LEVEL_ENV = "SUITE_POLICY_LOG_LEVEL"


def configure_logging() -> None:
    """Log to stderr; level from SUITE_POLICY_LOG_LEVEL (default WARNING)."""
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(level_name)
    logging.basicConfig(
        level=level if isinstance(level, int) else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        stream=sys.stderr,
    )


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    configure_logging()
    try:
        container = SuitePolicyContainer()
    except ConfigurationError as exc:
        ProjectTelemetry("SUITE-POLICY", "cyan", "").error(f"Invalid configuration: {exc}")
        sys.exit(2)

    deps = CLIDependencies(
        config_loader=container.get_config_loader(),
        telemetry=container.get_telemetry_port(),
        parsers=container.get_parser_registry(),
        filesystem=container.get_filesystem_gateway(),
        guidance_service=container.get_guidance_service(),
    )

    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
