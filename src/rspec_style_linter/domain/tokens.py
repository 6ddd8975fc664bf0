"""Token model shared by the tokenizer, the parser and the rules."""

from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    IDENT = "ident"
    CONSTANT = "constant"
    IVAR = "ivar"
    GVAR = "gvar"
    SYMBOL = "symbol"
    STRING = "string"
    NUMBER = "number"
    REGEX = "regex"
    KEYWORD = "keyword"
    OP = "op"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    PIPE = "|"
    COMMA = ","
    DOT = "."
    SCOPE = "::"
    NEWLINE = "newline"
    SEMI = ";"


VALUE_KINDS = frozenset({
    TokenKind.IDENT,
    TokenKind.CONSTANT,
    TokenKind.IVAR,
    TokenKind.GVAR,
    TokenKind.SYMBOL,
    TokenKind.STRING,
    TokenKind.NUMBER,
    TokenKind.REGEX,
    TokenKind.RPAREN,
    TokenKind.RBRACKET,
    TokenKind.RBRACE,
})

VALUE_KEYWORDS = frozenset({"end", "self", "nil", "true", "false", "__FILE__", "__LINE__"})


@dataclass(frozen=True)
class Token:
    """A lexical token. `spaced` is True when whitespace precedes it on the same line."""
    kind: TokenKind
    value: str
    line: int
    column: int
    spaced: bool = False

    def is_keyword(self, *names: str) -> bool:
        return self.kind is TokenKind.KEYWORD and (not names or self.value in names)

    def is_ident(self, *names: str) -> bool:
        return self.kind is TokenKind.IDENT and (not names or self.value in names)

    def is_op(self, *ops: str) -> bool:
        return self.kind is TokenKind.OP and (not ops or self.value in ops)

    @property
    def ends_value(self) -> bool:
        """True if an expression can end at this token (so a following '/' or '%' is an operator)."""
        if self.kind is TokenKind.KEYWORD:
            return self.value in VALUE_KEYWORDS
        return self.kind in VALUE_KINDS

    @property
    def is_statement_break(self) -> bool:
        return self.kind in (TokenKind.NEWLINE, TokenKind.SEMI)
