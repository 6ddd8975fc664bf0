"""Use Case: Lint Files - discover spec files, lint each on a worker pool, aggregate."""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

from rspec_style_linter.domain.entities import (
    FileReport,
    LintResult,
    Severity,
    SourceLocation,
    Violation,
)
from rspec_style_linter.domain.errors import IO_ERROR_ID, SpecSyntaxError
from rspec_style_linter.domain.protocols import FileSystemProtocol, TelemetryPort
from rspec_style_linter.domain.services.rule_engine import RuleEngine
from rspec_style_linter.domain.services.spec_parser import SpecParser

if TYPE_CHECKING:
    from rspec_style_linter.domain.config import ConfigurationLoader

logger = logging.getLogger(__name__)


class LintFilesUseCase:
    """
    Orchestrate one lint run.

    Each file runs the strict parse -> evaluate pipeline on its own; files
    are independent, so they are spread over a thread pool and joined once
    all workers finish. A worker returns a complete FileReport or raises;
    nothing partial is kept.
    """

    def __init__(
        self,
        parser: SpecParser,
        engine: RuleEngine,
        filesystem: FileSystemProtocol,
        telemetry: TelemetryPort,
        config_loader: "ConfigurationLoader",
    ) -> None:
        self.parser = parser
        self.engine = engine
        self.filesystem = filesystem
        self.telemetry = telemetry
        self.config_loader = config_loader

    def execute(
        self,
        paths: Sequence[str],
        enabled_rule_ids: Iterable[str] | None = None,
        jobs: int | None = None,
    ) -> LintResult:
        """
        Lint every spec file reachable from `paths`.

        Args:
            paths: Files or directories. Directories are searched with the
                configured include/exclude patterns.
            enabled_rule_ids: Rules to apply; None means all registered rules.
            jobs: Worker count; defaults to the configured `jobs`.

        Raises:
            KeyboardInterrupt: pending files are cancelled and no result is returned.
        """
        enabled = None if enabled_rule_ids is None else tuple(enabled_rule_ids)
        files, missing = self.discover(paths)
        reports: list[FileReport] = [self._io_failure(path, "no such file or directory") for path in missing]
        if not files:
            self.telemetry.step("No spec files found.")
            return LintResult(tuple(reports))

        workers = max(1, min(jobs or self.config_loader.jobs, len(files)))
        self.telemetry.step(f"Linting {len(files)} file(s) with {workers} worker(s)...")
        executor = ThreadPoolExecutor(max_workers=workers)
        try:
            future_to_path: dict[Future[FileReport], str] = {
                executor.submit(self.lint_file, path, enabled): path for path in files
            }
            for future in as_completed(future_to_path):
                report = future.result()
                logger.debug("%s: %d violation(s)", future_to_path[future], len(report.violations))
                reports.append(report)
        except KeyboardInterrupt:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        else:
            executor.shutdown(wait=True)
        return LintResult(tuple(sorted(reports, key=lambda r: r.path)))

    def discover(self, paths: Sequence[str]) -> tuple[list[str], list[str]]:
        """Return (spec files to lint, paths that do not exist), each without duplicates."""
        include = self.config_loader.include_patterns
        exclude = self.config_loader.exclude_paths
        files: dict[str, None] = {}
        missing: list[str] = []
        for path in paths:
            if not self.filesystem.exists(path):
                missing.append(path)
                continue
            if self.filesystem.is_directory(path):
                found = self.filesystem.discover_spec_files(path, include, exclude)
                logger.debug("Discovered %d spec file(s) under %s", len(found), path)
                files.update(dict.fromkeys(found))
            else:
                files[path] = None
        return (list(files), list(dict.fromkeys(missing)))

    def lint_file(self, path: str, enabled_rule_ids: Iterable[str] | None = None) -> FileReport:
        """Read, parse and evaluate one file. Read and parse failures become a single violation."""
        try:
            source = self.filesystem.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
            return self._io_failure(path, reason)
        try:
            tree = self.parser.parse(source, path)
        except SpecSyntaxError as exc:
            logger.debug("Syntax error in %s: %s", path, exc)
            return FileReport(path=path, violations=(exc.to_violation(),), parse_failed=True)
        violations = self.engine.evaluate(
            tree,
            enabled_rule_ids=enabled_rule_ids,
            severity_overrides=self.config_loader.severity_overrides,
        )
        return FileReport(path=path, violations=tuple(violations))

    def _io_failure(self, path: str, reason: str) -> FileReport:
        self.telemetry.warning(f"Cannot read {path}: {reason}")
        violation = Violation(
            rule_id=IO_ERROR_ID,
            severity=Severity.ERROR,
            message=f"Cannot read file: {reason}",
            location=SourceLocation(file=path, line=1, column=1),
        )
        return FileReport(path=path, violations=(violation,), parse_failed=True)
