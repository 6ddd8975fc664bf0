"""GuidanceService: loads the rule catalog and provides manual_instructions and proactive_guidance."""

from pathlib import Path
from typing import cast

import yaml

from rspec_style_linter.domain.constants import RULE_PREFIX
from rspec_style_linter.domain.protocols import GuidanceServiceProtocol
from rspec_style_linter.domain.registry_types import RuleRegistryEntry


class GuidanceService(GuidanceServiceProtocol):
    """Loads rule_registry.yaml and provides the `explain` text for each rule."""

    def __init__(self, registry_path: str | None = None) -> None:
        if registry_path is not None:
            self._path = Path(registry_path)
        else:
            # Default: packaged resource next to this package
            _base = Path(__file__).resolve().parent.parent.parent
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
        """Return a shallow copy of the loaded registry."""
        return dict(self._registry)

    def get_entry(self, rule_id: str) -> RuleRegistryEntry | None:
        """Return the full catalog entry for a rule id, or None."""
        entry = self._registry.get(f"{RULE_PREFIX}{rule_id}")
        if entry:
            return cast(RuleRegistryEntry, dict(entry))
        return None

    def get_display_name(self, rule_id: str) -> str:
        entry = self.get_entry(rule_id)
        if not entry:
            return rule_id.replace("-", " ").title()
        return str(entry.get("display_name") or rule_id.replace("-", " ").title())

    def get_manual_instructions(self, rule_id: str) -> str:
        """Return fix instructions for the rule, falling back to the _default entry."""
        return self._field(rule_id, "manual_instructions", "Fix the violation at the reported location.")

    def get_proactive_guidance(self, rule_id: str) -> str:
        """Return guidance on writing specs that avoid the violation."""
        return self._field(rule_id, "proactive_guidance", "Follow the RSpec style guide.")

    def _field(self, rule_id: str, key: str, fallback: str) -> str:
        entry = self.get_entry(rule_id)
        if entry and key in entry:
            return str(entry[key])  # type: ignore[literal-required]
        default_entry = self._registry.get(f"{RULE_PREFIX}_default")
        if default_entry and key in default_entry:
            return str(default_entry[key])  # type: ignore[literal-required]
        return fallback
