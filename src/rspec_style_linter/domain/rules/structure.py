"""Structural rules: literal examples, meaningful contexts, and `let` over instance variables."""

from typing import ClassVar

from rspec_style_linter.domain.entities import NodeKind, Severity, SpecNode
from rspec_style_linter.domain.rules import BodyScanner, Checkable, RuleContext, Violation
from rspec_style_linter.domain.tokens import TokenKind

GROUP_KINDS = frozenset({NodeKind.DESCRIBE, NodeKind.CONTEXT, NodeKind.SHARED_EXAMPLE})


class NoIteratorGeneratedTestsRule(Checkable):
    """
    Rule no-iterator-generated-tests: examples are written out, not generated by `.each`.

    Looped blocks are reported by their owning group, except at the top of
    the file, where a looped block reports itself.
    """

    id: str = "no-iterator-generated-tests"
    description: str = "Examples must be written literally, not generated inside a loop."
    kinds: ClassVar[frozenset[NodeKind]] = GROUP_KINDS | {NodeKind.IT}
    default_severity: Severity = Severity.ERROR

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        violations: list[Violation] = []
        if context.is_top_level:
            violations.extend(self._generated(node, context))
        if node.kind in GROUP_KINDS:
            for child in node.children:
                violations.extend(self._generated(child, context))
        return violations

    def _generated(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        if not node.in_loop:
            return []
        if node.kind is NodeKind.IT:
            message = "Example is generated inside a loop; write each example out explicitly."
        elif node.kind in GROUP_KINDS and any(n.kind is NodeKind.IT for n in node.walk()):
            message = (
                f"'{node.keyword}' group with examples is generated inside a loop; "
                "write each example out explicitly."
            )
        else:
            return []
        return [context.violation(self.id, message, node)]


class NoSingleTestContextRule(Checkable):
    """Rule no-single-test-context: a context wrapping a lone example adds nesting without grouping."""

    id: str = "no-single-test-context"
    description: str = "A context must not wrap exactly one example and nothing else."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.CONTEXT})
    default_severity: Severity = Severity.WARNING

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        if len(node.children) != 1 or node.children[0].kind is not NodeKind.IT:
            return []
        return [
            context.violation(
                self.id,
                "Context holds a single example and no setup; fold the condition into the example "
                "or add the missing cases.",
                node,
            )
        ]


class NoInstanceVariablesRule(Checkable):
    """Rule no-instance-variables: `before { @user = ... }` should be `let(:user) { ... }`."""

    id: str = "no-instance-variables"
    description: str = "Use let instead of assigning instance variables in before blocks."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.BEFORE})
    default_severity: Severity = Severity.WARNING

    ASSIGNMENT_OPS: ClassVar[frozenset[str]] = frozenset({"=", "||=", "&&=", "+=", "-="})

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        seen: set[str] = set()
        violations: list[Violation] = []
        body = node.body
        for index, tok in enumerate(body):
            if tok.kind is not TokenKind.IVAR or tok.value in seen:
                continue
            nxt = BodyScanner.following(body, index)
            if nxt is None or nxt.kind is not TokenKind.OP or nxt.value not in self.ASSIGNMENT_OPS:
                continue
            seen.add(tok.value)
            name = tok.value.lstrip("@")
            violations.append(
                context.violation_at_token(
                    self.id,
                    f"Instance variable '{tok.value}' assigned in '{node.keyword}'; use let(:{name}) instead.",
                    tok,
                )
            )
        return violations
