"""Tests for RuleEngine: rule selection, fault isolation, severities and suppressions."""

import textwrap
from typing import ClassVar

from rspec_style_linter.domain.entities import NodeKind, Severity, SpecNode
from rspec_style_linter.domain.rules import RuleContext, Violation
from rspec_style_linter.domain.rules.structure import NoSingleTestContextRule
from rspec_style_linter.domain.rules.wording import NoShouldWordingRule, ShortDescriptionRule
from rspec_style_linter.domain.services.rule_engine import RuleEngine
from rspec_style_linter.domain.services.rule_registry import RuleRegistry
from rspec_style_linter.domain.services.spec_parser import SpecParser

SOURCE = textwrap.dedent("""\
    describe 'Consumption' do
      it 'should not change timings when the account is closed early' do
      end
      context 'when closed' do
        it 'should stay closed' do
        end
      end
    end
""")


class ExplodingRule:
    """Raises on every example."""

    id = "exploding"
    description = "Always fails."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.IT})
    default_severity = Severity.WARNING

    def __init__(self) -> None:
        self.calls = 0

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        self.calls += 1
        raise RuntimeError("boom")


def make_engine(*rules) -> RuleEngine:
    registry = RuleRegistry()
    for rule in rules:
        registry.register(rule)
    return RuleEngine(registry)


def tree_of(source: str = SOURCE, file: str = "spec/consumption_spec.rb"):
    return SpecParser().parse(source, file)


class TestRuleEngine:
    """Test RuleEngine.evaluate."""

    def test_violations_are_sorted(self) -> None:
        engine = make_engine(ShortDescriptionRule(), NoShouldWordingRule())
        violations = engine.evaluate(tree_of())
        assert [(v.location.line, v.rule_id) for v in violations] == [
            (2, "no-should-wording"),
            (2, "short-description"),
            (5, "no-should-wording"),
        ]

    def test_same_tree_same_result(self) -> None:
        engine = make_engine(ShortDescriptionRule(), NoShouldWordingRule(), NoSingleTestContextRule())
        assert engine.evaluate(tree_of()) == engine.evaluate(tree_of())

    def test_only_enabled_rules_run(self) -> None:
        engine = make_engine(ShortDescriptionRule(), NoShouldWordingRule())
        violations = engine.evaluate(tree_of(), enabled_rule_ids=["short-description"])
        assert {v.rule_id for v in violations} == {"short-description"}
        assert engine.evaluate(tree_of(), enabled_rule_ids=[]) == []

    def test_severity_override(self) -> None:
        engine = make_engine(NoShouldWordingRule())
        violations = engine.evaluate(tree_of(), severity_overrides={"no-should-wording": Severity.WARNING})
        assert {v.severity for v in violations} == {Severity.WARNING}

    def test_failing_rule_is_reported_once_and_quarantined(self) -> None:
        exploding = ExplodingRule()
        engine = make_engine(exploding, NoShouldWordingRule())
        violations = engine.evaluate(tree_of())

        internal = [v for v in violations if v.rule_id == "internal-rule-error"]
        assert len(internal) == 1
        assert internal[0].severity is Severity.ERROR
        assert internal[0].location.line == 2
        assert "exploding" in internal[0].message
        assert "RuntimeError: boom" in internal[0].message
        assert exploding.calls == 1
        # findings of other rules on the same node survive
        assert [v.location.line for v in violations if v.rule_id == "no-should-wording"] == [2, 5]

    def test_quarantine_is_per_tree(self) -> None:
        exploding = ExplodingRule()
        engine = make_engine(exploding)
        engine.evaluate(tree_of())
        engine.evaluate(tree_of())
        assert exploding.calls == 2

    def test_suppressions_filter_findings(self) -> None:
        source = textwrap.dedent("""\
            describe 'x' do
              it 'should a' do # rspec-style:disable=no-should-wording
              end
              # rspec-style:disable-next-line=all
              it 'should b' do
              end
              it 'should c' do
              end
            end
        """)
        violations = make_engine(NoShouldWordingRule()).evaluate(tree_of(source))
        assert [v.location.line for v in violations] == [7]

    def test_internal_errors_ignore_suppressions(self) -> None:
        source = "# rspec-style:disable-file=all\nit 'x' do\nend\n"
        violations = make_engine(ExplodingRule()).evaluate(tree_of(source))
        assert [v.rule_id for v in violations] == ["internal-rule-error"]

    def test_tree_is_not_mutated(self) -> None:
        tree = tree_of()
        before = tree.nodes()
        make_engine(NoShouldWordingRule(), ExplodingRule()).evaluate(tree)
        assert tree.nodes() == before
