"""Domain models for rules: the Checkable protocol, rule context and body scanning helpers."""

from dataclasses import dataclass
from typing import ClassVar, Protocol

from rspec_style_linter.domain.entities import (
    NodeKind,
    Severity,
    SourceLocation,
    SpecNode,
    SpecTree,
    Violation,
)
from rspec_style_linter.domain.tokens import Token, TokenKind

__all__ = [
    "BodyScanner",
    "Checkable",
    "RuleContext",
    "Violation",
]


@dataclass(frozen=True)
class RuleContext:
    """
    Read-only view handed to a rule for one node.

    `ancestors` runs from the synthetic root down to the node's parent, so
    `ancestors[-1]` is the owning block and `len(ancestors) == 1` means the
    node is top-level. `severity` is the effective severity for the rule
    after configuration overrides.
    """

    tree: SpecTree
    ancestors: tuple[SpecNode, ...]
    severity: Severity

    @property
    def parent(self) -> SpecNode:
        return self.ancestors[-1]

    @property
    def is_top_level(self) -> bool:
        return len(self.ancestors) == 1

    @property
    def top_level_describe(self) -> SpecNode | None:
        """The outermost example group containing the node, if any."""
        for node in self.ancestors[1:]:
            if node.kind is NodeKind.DESCRIBE:
                return node
        return None

    def violation(self, rule_id: str, message: str, node: SpecNode) -> Violation:
        return Violation.at_node(rule_id, self.severity, message, node)

    def violation_at_token(self, rule_id: str, message: str, token: Token) -> Violation:
        """Build a violation pointing at a token inside a node body."""
        location = SourceLocation(
            file=self.tree.file,
            line=token.line,
            column=token.column,
            end_line=token.line,
            end_column=token.column + max(len(token.value), 1) - 1,
        )
        return Violation(rule_id=rule_id, severity=self.severity, message=message, location=location)


class Checkable(Protocol):
    """
    A style rule: given a node and its context, return violations.

    Rules are stateless after construction; the engine may call one rule
    instance from several threads at once. `kinds` lists the node kinds the
    rule wants to see; the engine skips every other kind.
    """

    id: str
    description: str
    kinds: ClassVar[frozenset[NodeKind]]
    default_severity: Severity

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        """Inspect a node for a style breach."""
        ...


class BodyScanner:
    """Token-pattern helpers shared by rules. Works on a node's own body tokens."""

    @staticmethod
    def previous(tokens: tuple[Token, ...], index: int) -> Token | None:
        return tokens[index - 1] if index > 0 else None

    @staticmethod
    def following(tokens: tuple[Token, ...], index: int) -> Token | None:
        return tokens[index + 1] if index + 1 < len(tokens) else None

    @staticmethod
    def is_method_call(tokens: tuple[Token, ...], index: int) -> bool:
        """True if tokens[index] is a receiver-less call name (not `obj.name`)."""
        prev = BodyScanner.previous(tokens, index)
        return prev is None or prev.kind not in (TokenKind.DOT, TokenKind.SCOPE)

    @staticmethod
    def is_statement_start(tokens: tuple[Token, ...], index: int) -> bool:
        prev = BodyScanner.previous(tokens, index)
        if prev is None:
            return True
        if prev.kind in (TokenKind.NEWLINE, TokenKind.SEMI, TokenKind.LBRACE, TokenKind.PIPE):
            return True
        return prev.is_keyword("do", "then", "else")

    @staticmethod
    def call_arguments(tokens: tuple[Token, ...], index: int) -> tuple[Token, ...]:
        """Tokens of the first argument of `name(...)` at index, or () if not a parenthesized call."""
        nxt = BodyScanner.following(tokens, index)
        if nxt is None or nxt.kind is not TokenKind.LPAREN:
            return ()
        depth = 0
        out: list[Token] = []
        for tok in tokens[index + 1:]:
            if tok.kind in (TokenKind.LPAREN, TokenKind.LBRACKET, TokenKind.LBRACE):
                depth += 1
                if depth == 1:
                    continue
            elif tok.kind in (TokenKind.RPAREN, TokenKind.RBRACKET, TokenKind.RBRACE):
                depth -= 1
                if depth == 0:
                    break
            elif depth == 1 and tok.kind is TokenKind.COMMA:
                break
            if tok.kind is not TokenKind.NEWLINE:
                out.append(tok)
        return tuple(out)

    @staticmethod
    def statement_tail(tokens: tuple[Token, ...], index: int) -> tuple[Token, ...]:
        """Tokens from index to the end of the statement, following chained calls across lines."""
        out: list[Token] = []
        depth = 0
        for position in range(index, len(tokens)):
            tok = tokens[position]
            if tok.kind in (TokenKind.LPAREN, TokenKind.LBRACKET, TokenKind.LBRACE):
                depth += 1
            elif tok.kind in (TokenKind.RPAREN, TokenKind.RBRACKET, TokenKind.RBRACE):
                depth -= 1
                if depth < 0:
                    break
            elif depth == 0 and tok.is_statement_break:
                nxt = BodyScanner.following(tokens, position)
                if nxt is None or nxt.kind is not TokenKind.DOT:
                    break
            out.append(tok)
        return tuple(out)

    @staticmethod
    def text(tokens: tuple[Token, ...]) -> str:
        return "".join(tok.value for tok in tokens)

    @staticmethod
    def metadata_value(node: SpecNode, name: str) -> str | None:
        """Value token text of `name: value` or `:name => value` metadata in the header."""
        header = node.header
        for index, tok in enumerate(header[:-2]):
            nxt = header[index + 1]
            value = header[index + 2]
            if tok.kind is TokenKind.IDENT and tok.value == name and nxt.is_op(":"):
                return value.value
            if tok.kind is TokenKind.SYMBOL and tok.value == f":{name}" and nxt.is_op("=>"):
                return value.value
        return None
