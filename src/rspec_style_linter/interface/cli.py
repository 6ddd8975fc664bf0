"""CLI entry points for rspec-style - Thin Controller using Typer."""

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import typer

from rspec_style_linter.domain.config import ConfigurationLoader
from rspec_style_linter.domain.constants import (
    EXIT_CLEAN,
    EXIT_INTERNAL_ERROR,
    TOOL_NAME,
)
from rspec_style_linter.domain.entities import OutputStyle
from rspec_style_linter.domain.errors import INTERNAL_RULE_ERROR_ID, RSpecStyleError
from rspec_style_linter.domain.protocols import (
    FileSystemProtocol,
    GuidanceServiceProtocol,
    TelemetryPort,
    ViolationFormatterProtocol,
)
from rspec_style_linter.domain.services.rule_engine import RuleEngine
from rspec_style_linter.domain.services.rule_registry import RuleRegistry
from rspec_style_linter.domain.services.spec_parser import SpecParser
from rspec_style_linter.infrastructure.reporters import ExitPolicy
from rspec_style_linter.use_cases.lint_files import LintFilesUseCase


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    telemetry: TelemetryPort
    filesystem: FileSystemProtocol
    parser: SpecParser
    formatter: ViolationFormatterProtocol
    guidance_service: GuidanceServiceProtocol
    load_config: Callable[[str | None], ConfigurationLoader]
    build_registry: Callable[[ConfigurationLoader | None], RuleRegistry]


class CLIAppFactory:
    """Creates the Typer app. No top-level functions."""

    @staticmethod
    def configure_logging(verbose: bool) -> None:
        """Route diagnostics to stderr: DEBUG with --verbose, WARNING otherwise."""
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
            force=True,
        )

    @staticmethod
    def parse_rule_list(value: str | None) -> list[str] | None:
        """Split a comma-separated --rules value; None when the option was not given."""
        if value is None:
            return None
        return [part.strip() for part in value.split(",") if part.strip()]

    @staticmethod
    def parse_output_style(value: str) -> OutputStyle:
        try:
            return OutputStyle(value.strip().lower())
        except ValueError:
            choices = ", ".join(style.value for style in OutputStyle)
            raise RSpecStyleError(f"Unknown format '{value}' (expected one of: {choices})") from None

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies. No Service Locator."""
        app = typer.Typer(
            name=TOOL_NAME,
            help="Check RSpec spec files against the RSpec style guide.",
            add_completion=False,
        )

        def _load(config: Path | None) -> tuple[ConfigurationLoader, RuleRegistry]:
            loader = deps.load_config(str(config) if config else None)
            registry = deps.build_registry(loader)
            loader.validate_rule_ids(registry.ids())
            return loader, registry

        @app.command()
        def lint(
            paths: list[Path] = typer.Argument(..., help="Spec files or directories to lint"),  # noqa: B008
            output_format: str = typer.Option("text", "--format", "-f", help="Report format: text, json or junit"),
            rules: str | None = typer.Option(None, "--rules", help="Comma-separated rule ids to run (default: all enabled)"),
            config: Path | None = typer.Option(None, "--config", "-c", help="YAML or JSON config file"),  # noqa: B008
            output: Path | None = typer.Option(None, "--output", "-o", help="Write the report to a file instead of stdout"),  # noqa: B008
            jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Worker threads (default: CPU count)"),
            fail_on: str | None = typer.Option(None, "--fail-on", help="Lowest severity that fails the run: warning or error"),
            verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress and debug logging on stderr"),
        ) -> None:
            """Lint spec files. Exit 0 when clean, 1 on failing violations, 2 on errors."""
            CLIAppFactory.configure_logging(verbose)
            deps.telemetry.handshake()
            try:
                loader, registry = _load(config)
                loader = loader.with_overrides(fail_on=fail_on, jobs=jobs)
                style = CLIAppFactory.parse_output_style(output_format)
                enabled = loader.enabled_rule_ids(registry.ids(), CLIAppFactory.parse_rule_list(rules))
            except RSpecStyleError as exc:
                deps.telemetry.error(str(exc))
                sys.exit(EXIT_INTERNAL_ERROR)

            deps.telemetry.step(f"Rules enabled: {', '.join(enabled) or '(none)'}")
            use_case = LintFilesUseCase(
                parser=deps.parser,
                engine=RuleEngine(registry),
                filesystem=deps.filesystem,
                telemetry=deps.telemetry,
                config_loader=loader,
            )
            result = use_case.execute([str(p) for p in paths], enabled_rule_ids=enabled)
            violations = result.violations
            files = result.files_checked
            report = deps.formatter.format(violations, style, len(files), files=files)
            if output is not None:
                try:
                    deps.filesystem.write_text(str(output), report)
                except OSError as exc:
                    deps.telemetry.error(f"Cannot write report to {output}: {exc.strerror or exc}")
                    sys.exit(EXIT_INTERNAL_ERROR)
                deps.telemetry.step(f"Report written to {output}")
            else:
                typer.echo(report, nl=False)

            if result.has_failures or any(v.rule_id == INTERNAL_RULE_ERROR_ID for v in violations):
                sys.exit(EXIT_INTERNAL_ERROR)
            sys.exit(ExitPolicy(loader.fail_on).exit_code(violations))

        @app.command(name="rules")
        def rules_cmd(
            config: Path | None = typer.Option(None, "--config", "-c", help="YAML or JSON config file"),  # noqa: B008
        ) -> None:
            """List registered rules with their severity and enabled state."""
            try:
                loader, registry = _load(config)
                enabled = set(loader.enabled_rule_ids(registry.ids()))
            except RSpecStyleError as exc:
                deps.telemetry.error(str(exc))
                sys.exit(EXIT_INTERNAL_ERROR)
            overrides = loader.severity_overrides
            width = max(len(rule_id) for rule_id in registry.ids())
            for rule in registry.all():
                severity = overrides.get(rule.id, rule.default_severity)
                state = "enabled" if rule.id in enabled else "disabled"
                typer.echo(f"{rule.id:<{width}}  {severity.value:<7}  {state:<8}  {rule.description}")
            sys.exit(EXIT_CLEAN)

        @app.command()
        def explain(
            rule_id: str = typer.Argument(..., help="Rule id, e.g. no-should-wording"),
        ) -> None:
            """Explain a rule: rationale, how to fix it and an example."""
            registry = deps.build_registry(None)
            rule = registry.get(rule_id)
            if rule is None:
                deps.telemetry.error(
                    f"Unknown rule '{rule_id}'. Run '{TOOL_NAME} rules' to list rule ids.")
                sys.exit(EXIT_INTERNAL_ERROR)
            entry = deps.guidance_service.get_entry(rule_id) or {}
            typer.secho(deps.guidance_service.get_display_name(rule_id), bold=True)
            typer.echo(f"  id:       {rule.id}")
            typer.echo(f"  severity: {rule.default_severity.value}")
            typer.echo(f"  checks:   {rule.description}")
            if entry.get("rationale"):
                typer.echo(f"\nWhy:\n  {entry['rationale']}")
            typer.echo(f"\nHow to fix:\n  {deps.guidance_service.get_manual_instructions(rule_id)}")
            typer.echo(f"\nGuidance:\n  {deps.guidance_service.get_proactive_guidance(rule_id)}")
            for title, key in (("Bad", "bad_example"), ("Good", "good_example")):
                example = entry.get(key)
                if example:
                    typer.echo(f"\n{title}:")
                    typer.echo("\n".join(f"    {line}" for line in str(example).splitlines()))
            for reference in entry.get("references") or []:
                typer.echo(f"\nSee: {reference}")
            sys.exit(EXIT_CLEAN)

        return app
