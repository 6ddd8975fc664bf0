"""Expectation rules: one expectation per example, and the `expect` syntax over legacy `should`."""

from typing import ClassVar

from rspec_style_linter.domain.entities import NodeKind, Severity, SpecNode
from rspec_style_linter.domain.rules import BodyScanner, Checkable, RuleContext, Violation
from rspec_style_linter.domain.tokens import Token, TokenKind


class SingleExpectationRule(Checkable):
    """Rule single-expectation: an example makes at most one assertion."""

    id: str = "single-expectation"
    description: str = "Each example should make a single expectation."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.IT})
    default_severity: Severity = Severity.WARNING

    EXPECT_CALLS: ClassVar[frozenset[str]] = frozenset({"expect", "expect_any_instance_of"})
    IMPLICIT_SUBJECT_CALLS: ClassVar[frozenset[str]] = frozenset({"is_expected", "are_expected"})
    SHOULD_CALLS: ClassVar[frozenset[str]] = frozenset({"should", "should_not"})

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        count = self.count_expectations(node.body)
        if count <= 1:
            return []
        return [
            context.violation(
                self.id,
                f"Example makes {count} expectations; split it so each example checks one behavior.",
                node,
            )
        ]

    def count_expectations(self, body: tuple[Token, ...]) -> int:
        """Count assertion calls. A chained `expect(x).to a.and b` counts once."""
        count = 0
        for index, tok in enumerate(body):
            if tok.kind is not TokenKind.IDENT:
                continue
            nxt = BodyScanner.following(body, index)
            if tok.value in self.EXPECT_CALLS and BodyScanner.is_method_call(body, index):
                if nxt is not None and nxt.kind in (TokenKind.LPAREN, TokenKind.LBRACE):
                    count += 1
            elif tok.value in self.IMPLICIT_SUBJECT_CALLS and BodyScanner.is_method_call(body, index):
                count += 1
            elif tok.value in self.SHOULD_CALLS:
                prev = BodyScanner.previous(body, index)
                if (prev is not None and prev.kind is TokenKind.DOT) or BodyScanner.is_statement_start(body, index):
                    count += 1
        return count


class ExpectSyntaxRule(Checkable):
    """Rule expect-syntax: `obj.should` is the legacy syntax; use `expect(obj).to`."""

    id: str = "expect-syntax"
    description: str = "Use the expect syntax instead of `.should` on arbitrary objects."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.IT})
    default_severity: Severity = Severity.WARNING

    LEGACY_CALLS: ClassVar[frozenset[str]] = frozenset({"should", "should_not"})

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        body = node.body
        for index, tok in enumerate(body):
            prev = BodyScanner.previous(body, index)
            if tok.kind is TokenKind.IDENT and tok.value in self.LEGACY_CALLS and prev is not None:
                if prev.kind is TokenKind.DOT:
                    replacement = "to" if tok.value == "should" else "not_to"
                    return [
                        context.violation_at_token(
                            self.id,
                            f"Legacy '.{tok.value}' syntax; use 'expect(...).{replacement}' "
                            "or 'is_expected' instead.",
                            tok,
                        )
                    ]
        return []
