"""
Structural parser for RSpec spec files.

Turns a token stream into an immutable SpecTree of describe/context/it/let/
before/subject/shared_examples blocks. Everything that is not a spec block
(if/unless/case, method definitions, iterator blocks, hashes, arrays) is
tracked only so that `end` and closing brackets pair up correctly; those
tokens land in the body of the innermost spec block.
"""

from dataclasses import dataclass, field

from rspec_style_linter.domain.entities import (
    LabelKind,
    NodeKind,
    SourceLocation,
    SpecNode,
    SpecTree,
    SuppressionIndex,
)
from rspec_style_linter.domain.errors import SpecSyntaxError
from rspec_style_linter.domain.services.tokenizer import Directive, Tokenizer
from rspec_style_linter.domain.tokens import Token, TokenKind

SPEC_CALLS: dict[str, NodeKind] = {
    "describe": NodeKind.DESCRIBE,
    "fdescribe": NodeKind.DESCRIBE,
    "xdescribe": NodeKind.DESCRIBE,
    "feature": NodeKind.DESCRIBE,
    "xfeature": NodeKind.DESCRIBE,
    "context": NodeKind.CONTEXT,
    "fcontext": NodeKind.CONTEXT,
    "xcontext": NodeKind.CONTEXT,
    "it": NodeKind.IT,
    "fit": NodeKind.IT,
    "xit": NodeKind.IT,
    "specify": NodeKind.IT,
    "xspecify": NodeKind.IT,
    "example": NodeKind.IT,
    "xexample": NodeKind.IT,
    "scenario": NodeKind.IT,
    "xscenario": NodeKind.IT,
    "let": NodeKind.LET,
    "let!": NodeKind.LET,
    "before": NodeKind.BEFORE,
    "prepend_before": NodeKind.BEFORE,
    "append_before": NodeKind.BEFORE,
    "subject": NodeKind.SUBJECT,
    "subject!": NodeKind.SUBJECT,
    "shared_examples": NodeKind.SHARED_EXAMPLE,
    "shared_examples_for": NodeKind.SHARED_EXAMPLE,
    "shared_context": NodeKind.SHARED_EXAMPLE,
}

# Calls allowed with an explicit `RSpec.` receiver.
RSPEC_RECEIVER_CALLS = frozenset({
    "describe", "fdescribe", "xdescribe", "feature",
    "shared_examples", "shared_examples_for", "shared_context",
})

LABEL_REQUIRED = frozenset({NodeKind.DESCRIBE, NodeKind.CONTEXT, NodeKind.SHARED_EXAMPLE})
BLOCK_REQUIRED = frozenset({
    NodeKind.DESCRIBE, NodeKind.CONTEXT, NodeKind.SHARED_EXAMPLE,
    NodeKind.LET, NodeKind.BEFORE, NodeKind.SUBJECT,
})

ITERATOR_METHODS = frozenset({
    "each", "each_with_index", "each_with_object", "each_pair", "each_key",
    "each_value", "each_slice", "each_cons", "each_char", "each_line",
    "each_entry", "find_each", "map", "flat_map", "collect", "filter_map",
    "times", "upto", "downto", "step", "cycle", "loop", "zip", "product",
    "combination", "permutation",
})

# Tokens after which an `if`/`unless`/`while`/`until` starts a statement
# rather than modifying the preceding one.
_STATEMENT_START_KINDS = frozenset({
    TokenKind.NEWLINE, TokenKind.SEMI, TokenKind.LPAREN, TokenKind.LBRACKET,
    TokenKind.LBRACE, TokenKind.COMMA, TokenKind.PIPE, TokenKind.OP,
})
_STATEMENT_START_KEYWORDS = frozenset({
    "do", "then", "else", "elsif", "begin", "ensure", "rescue", "and", "or",
    "not", "when", "in", "if", "unless", "while", "until",
})
_SPEC_CALL_BOUNDARY_KEYWORDS = frozenset({"do", "then", "else", "begin", "ensure"})
_OPENERS = {TokenKind.LPAREN: ")", TokenKind.LBRACKET: "]", TokenKind.LBRACE: "}"}
_CLOSERS = {TokenKind.RPAREN: ")", TokenKind.RBRACKET: "]", TokenKind.RBRACE: "}"}


@dataclass
class _NodeBuilder:
    kind: NodeKind
    keyword: str
    label: str
    label_kind: LabelKind
    start: Token
    header: tuple[Token, ...]
    in_loop: bool
    body: list[Token] = field(default_factory=list)
    children: list[SpecNode] = field(default_factory=list)

    def build(self, file: str, end: Token) -> SpecNode:
        return SpecNode(
            kind=self.kind,
            label=self.label,
            location=SourceLocation(
                file=file,
                line=self.start.line,
                column=self.start.column,
                end_line=end.line,
                end_column=end.column + len(end.value) - 1,
            ),
            children=tuple(self.children),
            keyword=self.keyword,
            label_kind=self.label_kind,
            header=self.header,
            body=tuple(self.body),
            in_loop=self.in_loop,
        )


@dataclass
class _Frame:
    """An open block awaiting its closer. `spec` is set for spec blocks only."""
    closer: str
    opener: Token | None
    spec: _NodeBuilder | None = None
    loop: bool = False


@dataclass(frozen=True)
class _Header:
    args: tuple[Token, ...]
    opener_index: int | None
    end_index: int


class SpecParser:
    """Parses spec source into a SpecTree. Stateless and safe to share across threads."""

    def parse(self, source: str, file: str = "<string>") -> SpecTree:
        """Parse source text. Raises SpecSyntaxError on malformed nesting or literals."""
        result = Tokenizer(source, file).tokenize()
        return _ParseRun(result.tokens, file).run(result.directives)


class _ParseRun:
    def __init__(self, tokens: tuple[Token, ...], file: str) -> None:
        self._tokens = tokens
        self._file = file
        origin = Token(TokenKind.NEWLINE, "", 1, 1)
        self._root = _NodeBuilder(
            kind=NodeKind.ROOT,
            keyword="",
            label="",
            label_kind=LabelKind.NONE,
            start=origin,
            header=(),
            in_loop=False,
        )
        self._stack: list[_Frame] = [_Frame(closer="", opener=None, spec=self._root)]
        self._loop_do_pending = False

    # -- driver -----------------------------------------------------------

    def run(self, directives: tuple[Directive, ...]) -> SpecTree:
        tokens = self._tokens
        i = 0
        while i < len(tokens):
            i = self._step(i)
        if len(self._stack) > 1:
            frame = self._stack[-1]
            raise SpecSyntaxError(self._frame_location(frame), f"unterminated '{self._frame_name(frame)}' block")
        last = tokens[-1] if tokens else self._root.start
        root = self._root.build(self._file, last)
        return SpecTree(file=self._file, root=root, suppressions=self._suppressions(directives))

    def _step(self, i: int) -> int:
        tok = self._tokens[i]
        if tok.is_statement_break:
            self._loop_do_pending = False
            self._append(tok)
            return i + 1
        call = self._match_spec_call(i)
        if call is not None:
            return self._open_spec(*call)
        if tok.kind is TokenKind.KEYWORD:
            return self._keyword(i, tok)
        if tok.kind in _OPENERS:
            self._append(tok)
            loop = tok.kind is TokenKind.LBRACE and self._is_iterator_block(i)
            self._stack.append(_Frame(closer=_OPENERS[tok.kind], opener=tok, loop=loop))
            return i + 1
        if tok.kind in _CLOSERS:
            self._close(tok, _CLOSERS[tok.kind])
            return i + 1
        self._append(tok)
        return i + 1

    def _keyword(self, i: int, tok: Token) -> int:
        word = tok.value
        if word == "end":
            self._close(tok, "end")
            return i + 1
        self._append(tok)
        if word == "do":
            if self._loop_do_pending:
                self._loop_do_pending = False
            else:
                self._push_end(tok, loop=self._is_iterator_block(i))
        elif word in ("if", "unless"):
            if not self._is_modifier(i):
                self._push_end(tok)
        elif word in ("while", "until"):
            if not self._is_modifier(i):
                self._push_end(tok, loop=True)
                self._loop_do_pending = True
        elif word == "for":
            self._push_end(tok, loop=True)
            self._loop_do_pending = True
        elif word in ("case", "begin", "class", "module"):
            self._push_end(tok)
        elif word == "def" and not self._is_endless_def(i):
            self._push_end(tok)
        return i + 1

    # -- frames -----------------------------------------------------------

    def _push_end(self, tok: Token, loop: bool = False) -> None:
        self._stack.append(_Frame(closer="end", opener=tok, loop=loop))

    def _current_spec(self) -> _NodeBuilder:
        for frame in reversed(self._stack):
            if frame.spec is not None:
                return frame.spec
        return self._root

    def _append(self, tok: Token) -> None:
        self._current_spec().body.append(tok)

    def _inside_loop(self) -> bool:
        """True if a loop frame sits between the innermost spec block and the current position."""
        for frame in reversed(self._stack):
            if frame.spec is not None:
                return False
            if frame.loop:
                return True
        return False

    def _close(self, tok: Token, closer: str) -> None:
        if len(self._stack) == 1:
            raise SpecSyntaxError(self._location(tok), f"unexpected '{tok.value}' with no open block")
        frame = self._stack[-1]
        if frame.closer != closer:
            opened = self._frame_location(frame)
            raise SpecSyntaxError(
                self._location(tok),
                f"unexpected '{tok.value}'; '{self._frame_name(frame)}' opened at line {opened.line} "
                f"expects '{frame.closer}'",
            )
        self._stack.pop()
        if frame.spec is None:
            self._append(tok)
            return
        node = frame.spec.build(self._file, tok)
        self._current_spec().children.append(node)

    def _frame_name(self, frame: _Frame) -> str:
        if frame.spec is not None:
            return frame.spec.keyword
        return frame.opener.value if frame.opener else "block"

    def _frame_location(self, frame: _Frame) -> SourceLocation:
        token = frame.spec.start if frame.spec is not None else frame.opener
        return self._location(token) if token else SourceLocation(self._file, 1, 1)

    def _location(self, tok: Token) -> SourceLocation:
        return SourceLocation(file=self._file, line=tok.line, column=tok.column)

    # -- spec block recognition -------------------------------------------

    def _match_spec_call(self, i: int) -> tuple[int, int, NodeKind] | None:
        """Return (start index, name index, kind) if a spec block call starts at i."""
        tokens = self._tokens
        tok = tokens[i]
        if not self._at_call_boundary(i):
            return None
        name_index = i
        if tok.kind is TokenKind.CONSTANT and tok.value == "RSpec":
            if i + 2 >= len(tokens) or tokens[i + 1].kind is not TokenKind.DOT:
                return None
            name_index = i + 2
            if tokens[name_index].value not in RSPEC_RECEIVER_CALLS:
                return None
        elif tok.kind is not TokenKind.IDENT:
            return None
        kind = SPEC_CALLS.get(tokens[name_index].value)
        if kind is None or not self._accepts_arguments(name_index + 1):
            return None
        return (i, name_index, kind)

    def _at_call_boundary(self, i: int) -> bool:
        if i == 0:
            return True
        prev = self._tokens[i - 1]
        if prev.kind in (TokenKind.NEWLINE, TokenKind.SEMI, TokenKind.LBRACE, TokenKind.PIPE):
            return True
        return prev.is_keyword(*_SPEC_CALL_BOUNDARY_KEYWORDS)

    def _accepts_arguments(self, j: int) -> bool:
        if j >= len(self._tokens):
            return False
        nxt = self._tokens[j]
        if nxt.kind in (
            TokenKind.STRING, TokenKind.CONSTANT, TokenKind.SYMBOL, TokenKind.IDENT,
            TokenKind.IVAR, TokenKind.LBRACE, TokenKind.LPAREN, TokenKind.SCOPE,
        ):
            return True
        return nxt.is_keyword("do", "self")

    def _open_spec(self, start: int, name_index: int, kind: NodeKind) -> int:
        tokens = self._tokens
        start_tok = tokens[start]
        keyword = tokens[name_index].value
        header = self._read_header(name_index + 1, start_tok)
        label, label_kind = self._label(header.args)
        if kind in LABEL_REQUIRED and not self._first_argument(header.args):
            raise SpecSyntaxError(self._location(start_tok), f"'{keyword}' requires a description or subject")
        builder = _NodeBuilder(
            kind=kind,
            keyword=keyword,
            label=label,
            label_kind=label_kind,
            start=start_tok,
            header=header.args,
            in_loop=self._inside_loop(),
        )
        if header.opener_index is None:
            if kind in BLOCK_REQUIRED:
                raise SpecSyntaxError(self._location(start_tok), f"'{keyword}' is missing its block")
            end_tok = tokens[header.end_index - 1]
            self._current_spec().children.append(builder.build(self._file, end_tok))
            return header.end_index
        opener = tokens[header.opener_index]
        closer = "end" if opener.is_keyword("do") else "}"
        self._stack.append(_Frame(closer=closer, opener=opener, spec=builder))
        return header.opener_index + 1

    def _read_header(self, j: int, start_tok: Token) -> _Header:
        """Read call arguments up to the block opener (`do` or `{`) or the end of the statement."""
        tokens = self._tokens
        if j < len(tokens) and tokens[j].kind is TokenKind.LPAREN and not tokens[j].spaced:
            close = self._matching(j)
            args = tuple(t for t in tokens[j + 1:close] if t.kind is not TokenKind.NEWLINE)
            after = close + 1
            if after < len(tokens) and (tokens[after].is_keyword("do") or tokens[after].kind is TokenKind.LBRACE):
                return _Header(args=args, opener_index=after, end_index=after + 1)
            return _Header(args=args, opener_index=None, end_index=after)
        args: list[Token] = []
        depth = 0
        while j < len(tokens):
            tok = tokens[j]
            if depth == 0:
                if tok.is_keyword("do"):
                    return _Header(args=tuple(args), opener_index=j, end_index=j + 1)
                if tok.kind is TokenKind.LBRACE and not (args and args[-1].kind in (TokenKind.COMMA, TokenKind.OP)):
                    return _Header(args=tuple(args), opener_index=j, end_index=j + 1)
                if tok.is_statement_break:
                    if args and (args[-1].kind is TokenKind.COMMA or args[-1].is_op("=>")):
                        j += 1
                        continue
                    break
                if tok.kind in _CLOSERS or tok.is_keyword("end"):
                    break
            if tok.kind in _OPENERS:
                depth += 1
            elif tok.kind in _CLOSERS:
                depth -= 1
            if tok.kind is not TokenKind.NEWLINE:
                args.append(tok)
            j += 1
        if depth > 0:
            raise SpecSyntaxError(self._location(start_tok), "unterminated argument list")
        return _Header(args=tuple(args), opener_index=None, end_index=j)

    def _matching(self, j: int) -> int:
        """Index of the bracket closing the opener at j."""
        depth = 0
        for k in range(j, len(self._tokens)):
            kind = self._tokens[k].kind
            if kind in _OPENERS:
                depth += 1
            elif kind in _CLOSERS:
                depth -= 1
                if depth == 0:
                    return k
        raise SpecSyntaxError(self._location(self._tokens[j]), "unterminated '('")

    @staticmethod
    def _first_argument(args: tuple[Token, ...]) -> tuple[Token, ...]:
        out: list[Token] = []
        depth = 0
        for tok in args:
            if depth == 0 and tok.kind is TokenKind.COMMA:
                break
            if tok.kind in _OPENERS:
                depth += 1
            elif tok.kind in _CLOSERS:
                depth -= 1
            out.append(tok)
        return tuple(out)

    def _label(self, args: tuple[Token, ...]) -> tuple[str, LabelKind]:
        first = self._first_argument(args)
        if not first:
            return ("", LabelKind.NONE)
        if all(t.kind is TokenKind.STRING for t in first):
            label = "".join(t.value for t in first)
            return (label, LabelKind.classify_string(label))
        if len(first) == 1 and first[0].kind is TokenKind.SYMBOL:
            return (first[0].value, LabelKind.SYMBOL)
        if self._is_constant_path(first):
            return ("".join(t.value for t in first).lstrip(":"), LabelKind.CONSTANT)
        return ("", LabelKind.NONE)

    @staticmethod
    def _is_constant_path(tokens: tuple[Token, ...]) -> bool:
        expect_name = True
        for index, tok in enumerate(tokens):
            if tok.kind is TokenKind.SCOPE and (index == 0 or not expect_name):
                expect_name = True
            elif tok.kind is TokenKind.CONSTANT and expect_name:
                expect_name = False
            else:
                return False
        return not expect_name

    # -- ruby construct helpers -------------------------------------------

    def _is_modifier(self, i: int) -> bool:
        if i == 0:
            return False
        prev = self._tokens[i - 1]
        if prev.kind in _STATEMENT_START_KINDS:
            return False
        return not prev.is_keyword(*_STATEMENT_START_KEYWORDS)

    def _is_iterator_block(self, i: int) -> bool:
        """True if the block opener at i belongs to an iteration call (`list.each do`, `3.times {`)."""
        tokens = self._tokens
        j = i - 1
        if j >= 0 and tokens[j].kind is TokenKind.RPAREN:
            depth = 0
            while j >= 0:
                if tokens[j].kind in _CLOSERS:
                    depth += 1
                elif tokens[j].kind in _OPENERS:
                    depth -= 1
                    if depth == 0:
                        break
                j -= 1
            j -= 1
        return j >= 0 and tokens[j].kind is TokenKind.IDENT and tokens[j].value in ITERATOR_METHODS

    def _is_endless_def(self, i: int) -> bool:
        """`def name(args) = expr` has no matching `end`."""
        tokens = self._tokens
        j = i + 1
        while j < len(tokens) and not tokens[j].is_statement_break:
            tok = tokens[j]
            if tok.kind is TokenKind.LPAREN:
                j = self._matching(j) + 1
                continue
            if tok.is_op("=") and tok.spaced:
                return True
            j += 1
        return False

    def _suppressions(self, directives: tuple[Directive, ...]) -> SuppressionIndex:
        by_line: dict[int, frozenset[str]] = {}
        file_wide: frozenset[str] = frozenset()
        for directive in directives:
            if directive.scope == "file":
                file_wide = file_wide | directive.rule_ids
                continue
            line = directive.line + 1 if directive.scope == "next-line" else directive.line
            by_line[line] = by_line.get(line, frozenset()) | directive.rule_ids
        return SuppressionIndex.from_lines(by_line, file_wide)
