"""CLI entry points for suite-policy - Thin Controller using Typer."""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import typer

from suite_policy_linter.domain.config import ConfigurationLoader
from suite_policy_linter.domain.errors import (
    ConfigurationError,
    UnknownRuleError,
    UnsupportedSuiteError,
)
from suite_policy_linter.domain.protocols import (
    FileSystemProtocol,
    GuidanceServiceProtocol,
    SuiteParserRegistryProtocol,
    TelemetryPort,
)
from suite_policy_linter.infrastructure.reporters import ReportRendererFactory
from suite_policy_linter.use_cases.evaluate_suite import EvaluateSuiteUseCase, RuleCatalog
from suite_policy_linter.use_cases.lint_suites import LintSuitesUseCase

PACKAGE_LOGGER = "suite_policy_linter"


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    config_loader: ConfigurationLoader
    telemetry: TelemetryPort
    parsers: SuiteParserRegistryProtocol
    filesystem: FileSystemProtocol
    guidance_service: GuidanceServiceProtocol


class CLIAppFactory:
    """Creates the Typer app. No top-level functions."""

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies. No Service Locator."""
        app = typer.Typer(
            name="suite-policy",
            help="Check automated test suites against the championship test-writing guidelines.",
            add_completion=False,
        )

        @app.callback()
        def main(
            verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging on stderr"),
        ) -> None:
            if verbose:
                logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)

        @app.command()
        def check(
            paths: list[Path] = typer.Argument(..., help="Suite files or directories to check"),  # noqa: B008
            rule: list[str] = typer.Option([], "--rule", help="Only run this rule (repeatable)"),  # noqa: B008
            disable: list[str] = typer.Option([], "--disable", help="Do not run this rule (repeatable)"),  # noqa: B008
            output_format: str = typer.Option("text", "--format", "-f", help="text, json or table"),
            output: Path | None = typer.Option(None, "--output", "-o", help="Write the report to a file"),  # noqa: B008
            parallel: bool = typer.Option(False, "--parallel", help="Evaluate rules on a thread pool"),
        ) -> None:
            """Check suites. Exit 0 when clean, 1 on violations, 2 when a suite or the configuration is invalid."""
            deps.telemetry.handshake()
            try:
                config = deps.config_loader.with_overrides(
                    enabled_rules=rule or None,
                    disabled_rules=disable or None,
                    parallel=True if parallel else None,
                )
                renderer = ReportRendererFactory.for_format(output_format)
                use_case = LintSuitesUseCase(
                    parsers=deps.parsers,
                    filesystem=deps.filesystem,
                    evaluator=EvaluateSuiteUseCase(config),
                    telemetry=deps.telemetry,
                    config_loader=config,
                )
                run = use_case.execute([str(p) for p in paths])
            except (UnknownRuleError, ConfigurationError, UnsupportedSuiteError) as exc:
                deps.telemetry.error(str(exc))
                sys.exit(2)
            except OSError as exc:
                deps.telemetry.error(f"Cannot read suite: {exc}")
                sys.exit(2)

            rendered = renderer.render(run)
            if output is not None:
                deps.filesystem.write_text(str(output), rendered + "\n")
                deps.telemetry.step(f"Report written to {output}")
            elif rendered:
                typer.echo(rendered)

            violations = sum(len(r.violations) for r in run.reports)
            deps.telemetry.step(
                f"{len(run.reports)} suite(s) checked: {len(run.findings)} finding(s), "
                f"{violations} violation(s), {len(run.failures)} parse failure(s)."
            )
            sys.exit(run.exit_code())

        @app.command("rules")
        def list_rules(
            show_all: bool = typer.Option(False, "--all", help="Include documentation-only guidelines"),
        ) -> None:
            """List rule ids with their effective severity and description."""
            for rule in RuleCatalog.all_rules(deps.config_loader):
                typer.echo(f"{rule.rule_id:<26} {rule.severity.value:<10} {rule.description}")
            if show_all:
                registry = deps.guidance_service.get_registry()
                typer.echo("")
                typer.echo("Documentation-only guidelines (not checked):")
                for rule_id in deps.guidance_service.documentation_only():
                    entry = registry.get(rule_id, {})
                    typer.echo(f"{rule_id:<26} {'-':<10} {entry.get('short_description', '')}")

        @app.command()
        def explain(rule_id: str = typer.Argument(..., help="Rule id, pylint code or symbol")) -> None:
            """Show the guideline section, rationale and fix guidance for a rule."""
            entry = deps.guidance_service.get_entry(rule_id)
            if entry is None:
                deps.telemetry.error(
                    f"Unknown rule id '{rule_id}'. Run 'suite-policy rules --all' for the list."
                )
                sys.exit(2)
            typer.echo(f"{deps.guidance_service.get_display_name(rule_id)} ({rule_id})")
            typer.echo(f"Section:   {entry.get('section', '-')}")
            if entry.get("documentation_only"):
                typer.echo("Severity:  documentation only (not checked)")
            else:
                typer.echo(f"Severity:  {entry.get('severity', '-')}")
                typer.echo(f"Pylint:    {entry.get('pylint_code', '-')} {entry.get('symbol', '')}".rstrip())
            typer.echo("")
            typer.echo(str(entry.get("short_description", "")))
            if entry.get("rationale"):
                typer.echo("")
                typer.echo(f"Why: {entry['rationale']}")
            if entry.get("guidance"):
                typer.echo("")
                typer.echo(f"Fix: {entry['guidance']}")

        return app
