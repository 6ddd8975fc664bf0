"""Rule engine: one depth-first pass over a spec tree applying every enabled rule."""

import logging
from collections.abc import Iterable, Mapping

from rspec_style_linter.domain.entities import Severity, SpecNode, SpecTree, Violation
from rspec_style_linter.domain.errors import INTERNAL_RULE_ERROR_ID, InternalRuleError
from rspec_style_linter.domain.rules import Checkable, RuleContext
from rspec_style_linter.domain.services.rule_registry import RuleRegistry

logger = logging.getLogger(__name__)


class RuleEngine:
    """
    Applies registered rules to a parsed tree.

    The engine keeps no state between evaluate() calls, and the per-call
    bookkeeping (quarantined rules) lives in local variables, so one engine
    can evaluate many trees concurrently.
    """

    def __init__(self, registry: RuleRegistry) -> None:
        self._registry = registry

    def evaluate(
        self,
        tree: SpecTree,
        enabled_rule_ids: Iterable[str] | None = None,
        severity_overrides: Mapping[str, Severity] | None = None,
    ) -> list[Violation]:
        """
        Return the sorted violations for a tree.

        Args:
            tree: Parsed spec file. Never mutated.
            enabled_rule_ids: Rules to apply; None means every registered rule.
            severity_overrides: Replacement severities keyed by rule id.

        A rule that raises is reported once as an internal-rule-error at the
        failing node and is not invoked again for the rest of this tree;
        other rules keep running.
        """
        enabled = None if enabled_rule_ids is None else frozenset(enabled_rule_ids)
        rules = [r for r in self._registry.all() if enabled is None or r.id in enabled]
        overrides = dict(severity_overrides or {})
        quarantined: set[str] = set()
        violations: list[Violation] = []
        self._visit(tree, tree.root, (), rules, overrides, quarantined, violations)
        suppressions = tree.suppressions
        if suppressions is not None:
            violations = [
                v for v in violations
                if v.rule_id == INTERNAL_RULE_ERROR_ID or not suppressions.is_suppressed(v.rule_id, v.location.line)
            ]
        return sorted(violations, key=lambda v: v.sort_key)

    def _visit(
        self,
        tree: SpecTree,
        node: SpecNode,
        ancestors: tuple[SpecNode, ...],
        rules: list[Checkable],
        overrides: dict[str, Severity],
        quarantined: set[str],
        out: list[Violation],
    ) -> None:
        if ancestors:
            for rule in rules:
                if rule.id in quarantined or node.kind not in rule.kinds:
                    continue
                context = RuleContext(
                    tree=tree,
                    ancestors=ancestors,
                    severity=overrides.get(rule.id, rule.default_severity),
                )
                out.extend(self._run_rule(rule, node, context, quarantined))
        child_ancestors = ancestors + (node,)
        for child in node.children:
            self._visit(tree, child, child_ancestors, rules, overrides, quarantined, out)

    def _run_rule(
        self, rule: Checkable, node: SpecNode, context: RuleContext, quarantined: set[str]
    ) -> list[Violation]:
        try:
            return list(rule.check(node, context))
        except Exception as exc:  # noqa: BLE001
            error = InternalRuleError(rule.id, node, exc)
            logger.warning("%s at %s; rule quarantined for %s", error, node.location, context.tree.file)
            quarantined.add(rule.id)
            return [error.to_violation()]