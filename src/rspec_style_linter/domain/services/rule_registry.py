"""Rule registry: the ordered, duplicate-free catalog of rules a run may apply."""

from typing import TYPE_CHECKING

from rspec_style_linter.domain.errors import DuplicateRuleError
from rspec_style_linter.domain.rules import Checkable
from rspec_style_linter.domain.rules.expectations import ExpectSyntaxRule, SingleExpectationRule
from rspec_style_linter.domain.rules.mocking import ModelMockingRule
from rspec_style_linter.domain.rules.structure import (
    NoInstanceVariablesRule,
    NoIteratorGeneratedTestsRule,
    NoSingleTestContextRule,
)
from rspec_style_linter.domain.rules.wording import (
    ContextStartsWithWhenRule,
    MethodLabelFormatRule,
    NoShouldWordingRule,
    ShortDescriptionRule,
)

if TYPE_CHECKING:
    from rspec_style_linter.domain.config import ConfigurationLoader


class RuleRegistry:
    """
    Rules keyed by id, kept in registration order.

    Registration happens once at startup; afterwards the registry is only
    read, so it can be shared across worker threads without locking.
    """

    def __init__(self) -> None:
        self._rules: dict[str, Checkable] = {}

    def register(self, rule: Checkable) -> None:
        """Add a rule. Raises DuplicateRuleError if its id is taken."""
        if rule.id in self._rules:
            raise DuplicateRuleError(rule.id)
        self._rules[rule.id] = rule

    def all(self) -> tuple[Checkable, ...]:
        return tuple(self._rules.values())

    def ids(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def get(self, rule_id: str) -> Checkable | None:
        return self._rules.get(rule_id)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    @classmethod
    def with_builtin_rules(cls, config: "ConfigurationLoader | None" = None) -> "RuleRegistry":
        """Registry holding every built-in rule, tuned by configuration where a rule takes options."""
        registry = cls()
        max_length = config.max_description_length if config is not None else None
        prefixes = config.context_prefixes if config is not None else None
        for rule in (
            SingleExpectationRule(),
            NoShouldWordingRule(),
            NoIteratorGeneratedTestsRule(),
            MethodLabelFormatRule(),
            ContextStartsWithWhenRule(prefixes=prefixes),
            NoSingleTestContextRule(),
            ModelMockingRule(),
            ShortDescriptionRule(max_length=max_length),
            ExpectSyntaxRule(),
            NoInstanceVariablesRule(),
        ):
            registry.register(rule)
        return registry
