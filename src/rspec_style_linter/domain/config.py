"""Configuration for lint runs. Immutable value object created by Infrastructure."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from rspec_style_linter.domain.constants import DEFAULT_INCLUDE_PATTERNS
from rspec_style_linter.domain.entities import Severity
from rspec_style_linter.domain.errors import ConfigError

KNOWN_KEYS = frozenset({
    "disabled_rules",
    "enabled_rules",
    "severity_overrides",
    "fail_on",
    "include",
    "exclude",
    "max_description_length",
    "context_prefixes",
    "jobs",
})


class ConfigurationLoader:
    """
    Immutable configuration for linter settings.

    Created by Infrastructure from a config dict (YAML/JSON file or the
    [tool.rspec-style] table of pyproject.toml). Domain does not read the
    filesystem; ConfigFileLoader loads the dict and the composition root
    constructs ConfigurationLoader(config_dict). Validation happens once,
    here, and raises ConfigError with a message naming the bad key.
    """

    def __init__(self, config_dict: dict[str, object] | None = None, source: str = "<defaults>") -> None:
        """Set config once at construction. No mutable state after init."""
        self._config: dict[str, object] = dict(config_dict or {})
        self._source = source
        self.validate_config(self._config)

    def validate_config(self, config: dict[str, object]) -> None:
        """Validate configuration values. Raises ConfigError."""
        unknown = sorted(set(config) - KNOWN_KEYS)
        if unknown:
            raise ConfigError(f"{self._source}: unknown configuration key(s): {', '.join(unknown)}")
        for key in ("disabled_rules", "enabled_rules", "include", "exclude", "context_prefixes"):
            value = config.get(key)
            if value is not None and not self._is_string_list(value):
                raise ConfigError(f"{self._source}: '{key}' must be a list of strings")
        overrides = config.get("severity_overrides")
        if overrides is not None:
            if not isinstance(overrides, dict):
                raise ConfigError(f"{self._source}: 'severity_overrides' must be a mapping of rule id to severity")
            for rule_id, severity in overrides.items():
                self._parse_severity(severity, f"severity_overrides.{rule_id}")
        if config.get("fail_on") is not None:
            self._parse_severity(config["fail_on"], "fail_on")
        for key in ("max_description_length", "jobs"):
            value = config.get(key)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 1):
                raise ConfigError(f"{self._source}: '{key}' must be a positive integer")
        if "should" in [str(p).strip().lower() for p in config.get("context_prefixes") or []]:
            logging.warning("Configuration Warning: 'should' as a context prefix conflicts with no-should-wording.")

    def validate_rule_ids(self, known_ids: Iterable[str]) -> None:
        """Check that every rule id named in config exists. Raises ConfigError."""
        known = set(known_ids)
        named = set(self.disabled_rules) | set(self.severity_overrides)
        if self.enabled_rules is not None:
            named |= set(self.enabled_rules)
        unknown = sorted(named - known)
        if unknown:
            raise ConfigError(f"{self._source}: unknown rule id(s): {', '.join(unknown)}")

    def with_overrides(self, **overrides: object) -> ConfigurationLoader:
        """Return a new loader with command-line overrides applied (None values are ignored)."""
        merged = dict(self._config)
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return ConfigurationLoader(merged, source=self._source)

    @property
    def config(self) -> dict[str, object]:
        """Return the loaded configuration."""
        return dict(self._config)

    @property
    def source(self) -> str:
        return self._source

    @property
    def disabled_rules(self) -> list[str]:
        return self._get_list("disabled_rules")

    @property
    def enabled_rules(self) -> list[str] | None:
        """Allowlist of rule ids, or None when every rule is enabled by default."""
        if self._config.get("enabled_rules") is None:
            return None
        return self._get_list("enabled_rules")

    @property
    def severity_overrides(self) -> dict[str, Severity]:
        raw = self._config.get("severity_overrides") or {}
        if not isinstance(raw, dict):
            return {}
        return {str(rule_id): Severity.parse(str(value)) for rule_id, value in raw.items()}

    @property
    def fail_on(self) -> Severity:
        """Lowest severity that makes the run fail."""
        raw = self._config.get("fail_on")
        return Severity.parse(str(raw)) if raw is not None else Severity.ERROR

    @property
    def include_patterns(self) -> list[str]:
        """Glob patterns selecting spec files when a directory is linted."""
        return self._get_list("include") or list(DEFAULT_INCLUDE_PATTERNS)

    @property
    def exclude_paths(self) -> list[str]:
        """Path fragments to skip during directory discovery (e.g. 'vendor/', 'fixtures/')."""
        return self._get_list("exclude")

    @property
    def max_description_length(self) -> int | None:
        value = self._config.get("max_description_length")
        return value if isinstance(value, int) else None

    @property
    def context_prefixes(self) -> tuple[str, ...] | None:
        prefixes = self._get_list("context_prefixes")
        if not prefixes:
            return None
        return tuple(p if p.endswith(" ") else f"{p} " for p in prefixes)

    @property
    def jobs(self) -> int:
        """Worker count; defaults to the number of CPUs."""
        value = self._config.get("jobs")
        if isinstance(value, int):
            return value
        return os.cpu_count() or 1

    def enabled_rule_ids(self, all_ids: Iterable[str], selected: Iterable[str] | None = None) -> list[str]:
        """
        Resolve the rules to run, preserving registration order.

        `selected` (the --rules option) wins over `enabled_rules` from config;
        `disabled_rules` always applies last.
        """
        ordered = list(all_ids)
        chosen = list(selected) if selected is not None else self.enabled_rules
        if chosen is not None:
            unknown = sorted(set(chosen) - set(ordered))
            if unknown:
                raise ConfigError(f"unknown rule id(s): {', '.join(unknown)}")
            ordered = [rule_id for rule_id in ordered if rule_id in set(chosen)]
        disabled = set(self.disabled_rules)
        return [rule_id for rule_id in ordered if rule_id not in disabled]

    def _get_list(self, key: str) -> list[str]:
        """Helper to safely get a list of strings from config."""
        raw = self._config.get(key, [])
        if isinstance(raw, (list, tuple)):
            return [str(item) for item in raw if isinstance(item, str)]
        return []

    @staticmethod
    def _is_string_list(value: object) -> bool:
        return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)

    def _parse_severity(self, value: object, key: str) -> Severity:
        try:
            return Severity.parse(str(value))
        except ValueError:
            raise ConfigError(
                f"{self._source}: '{key}' has unknown severity '{value}' (expected 'warning' or 'error')"
            ) from None
