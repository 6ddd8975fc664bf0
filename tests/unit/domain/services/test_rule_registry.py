"""Tests for RuleRegistry."""

import pytest

from rspec_style_linter.domain.config import ConfigurationLoader
from rspec_style_linter.domain.errors import DuplicateRuleError
from rspec_style_linter.domain.rules.wording import (
    ContextStartsWithWhenRule,
    NoShouldWordingRule,
    ShortDescriptionRule,
)
from rspec_style_linter.domain.services.rule_registry import RuleRegistry

BUILTIN_IDS = (
    "single-expectation",
    "no-should-wording",
    "no-iterator-generated-tests",
    "method-label-format",
    "context-starts-with-when",
    "no-single-test-context",
    "avoid-unnecessary-mocking-in-model-specs",
    "short-description",
    "expect-syntax",
    "no-instance-variables",
)


class TestRuleRegistry:
    """Test registration and lookup."""

    def test_registration_order_is_kept(self) -> None:
        registry = RuleRegistry()
        registry.register(ShortDescriptionRule())
        registry.register(NoShouldWordingRule())
        assert registry.ids() == ("short-description", "no-should-wording")
        assert len(registry) == 2
        assert "no-should-wording" in registry
        assert registry.get("missing") is None

    def test_duplicate_id_is_rejected(self) -> None:
        registry = RuleRegistry()
        registry.register(NoShouldWordingRule())
        with pytest.raises(DuplicateRuleError) as excinfo:
            registry.register(NoShouldWordingRule())
        assert excinfo.value.rule_id == "no-should-wording"
        assert len(registry) == 1

    def test_builtin_rules(self) -> None:
        registry = RuleRegistry.with_builtin_rules()
        assert registry.ids() == BUILTIN_IDS

    def test_builtin_rules_take_config_options(self, lint) -> None:
        config = ConfigurationLoader({"max_description_length": 60, "context_prefixes": ["when", "with"]})
        registry = RuleRegistry.with_builtin_rules(config)
        source = """\
            context 'with a token' do
              it 'has 422 status code if an unexpected param is added' do
              end
              it 'is fine' do
              end
            end
        """
        rules = (registry.get("short-description"), registry.get("context-starts-with-when"))
        assert lint(source, *rules) == []
        assert len(lint(source, ShortDescriptionRule(), ContextStartsWithWhenRule())) == 2
