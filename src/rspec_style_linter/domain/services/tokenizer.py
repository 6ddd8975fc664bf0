"""
Lexer for the Ruby subset found in RSpec spec files.

The tokenizer only needs to be precise enough for structural parsing: it
must never mistake the inside of a string, heredoc, regex or comment for
code, and it must keep accurate line/column positions. It does not
validate Ruby grammar.
"""

import re
from dataclasses import dataclass

from rspec_style_linter.domain.entities import SourceLocation
from rspec_style_linter.domain.errors import SpecSyntaxError
from rspec_style_linter.domain.tokens import Token, TokenKind

KEYWORDS = frozenset({
    "alias", "and", "begin", "break", "case", "class", "def", "defined?",
    "do", "else", "elsif", "end", "ensure", "false", "for", "if", "in",
    "module", "next", "nil", "not", "or", "redo", "rescue", "retry",
    "return", "self", "super", "then", "true", "undef", "unless", "until",
    "when", "while", "yield", "__FILE__", "__LINE__",
})

# Longest first so that '**=' wins over '**' and '*'.
OPERATORS = (
    "**=", "<=>", "===", "...", "||=", "&&=", "<<=", ">>=",
    "==", "!=", ">=", "<=", "&&", "||", "<<", ">>", "=~", "!~", "+=", "-=",
    "*=", "/=", "%=", "|=", "&=", "^=", "->", "=>", "..", "**",
    "+", "-", "*", "/", "%", "=", "<", ">", "!", "&", "^", "~", "?", ":",
)

PAIRED_DELIMITERS = {"(": ")", "[": "]", "{": "}", "<": ">"}

SINGLE_CHAR_TOKENS = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
    ";": TokenKind.SEMI,
}

_DIRECTIVE_RE = re.compile(
    r"rspec-style:\s*(disable-file|disable-next-line|disable)\s*=\s*"
    r"([A-Za-z0-9_\-]+(?:\s*,\s*[A-Za-z0-9_\-]+)*)"
)
_NUMBER_RE = re.compile(
    r"0[xX][0-9a-fA-F_]+|0[bB][01_]+|\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d+)?[ri]?"
)
_HEREDOC_RE = re.compile(r"<<([~-]?)(['\"`]?)([A-Za-z_]\w*)\2")
_PERCENT_RE = re.compile(r"%([qQwWiIrsx]?)([^\w\s])")
_BLOCK_COMMENT_END_RE = re.compile(r"^=end\b.*$", re.MULTILINE)


@dataclass(frozen=True)
class Directive:
    """An inline `# rspec-style:disable=...` comment."""
    line: int
    scope: str  # "line", "next-line" or "file"
    rule_ids: frozenset[str]


@dataclass(frozen=True)
class TokenizeResult:
    tokens: tuple[Token, ...]
    directives: tuple[Directive, ...]


@dataclass
class _PendingHeredoc:
    terminator: str
    indented: bool
    location: SourceLocation


class Tokenizer:
    """Single-use lexer: construct with the source text, then call tokenize()."""

    def __init__(self, source: str, file: str = "<string>") -> None:
        self._src = source
        self._file = file
        self._pos = 0
        self._line = 1
        self._line_start = 0
        self._spaced = False
        self._line_has_token = False
        self._tokens: list[Token] = []
        self._directives: list[Directive] = []
        self._heredocs: list[_PendingHeredoc] = []

    def tokenize(self) -> TokenizeResult:
        src = self._src
        while self._pos < len(src):
            if self._at_line_start() and self._skip_line_start_markers():
                continue
            ch = src[self._pos]
            if ch in " \t\r\f\v":
                self._spaced = True
                self._pos += 1
            elif ch == "\\" and src.startswith("\n", self._pos + 1):
                self._pos += 1
                self._newline()
            elif ch == "\n":
                self._emit_newline()
            elif ch == "#":
                self._comment()
            elif ch.isalpha() or ch == "_" or ord(ch) > 127:
                self._identifier()
            elif ch.isdigit():
                self._number()
            elif ch == "@":
                self._variable(TokenKind.IVAR)
            elif ch == "$":
                self._variable(TokenKind.GVAR)
            elif ch in "\"`":
                self._quoted(TokenKind.STRING, ch, interpolate=True)
            elif ch == "'":
                self._quoted(TokenKind.STRING, ch, interpolate=False)
            elif ch == ":":
                self._colon()
            elif ch == "%" and self._percent_literal():
                continue
            elif ch == "/" and self._regex_allowed():
                self._quoted(TokenKind.REGEX, "/", interpolate=True, flags=True)
            elif ch == "<" and self._heredoc():
                continue
            elif ch == "?" and self._char_literal():
                continue
            else:
                self._punctuation()
        if self._heredocs:
            pending = self._heredocs[0]
            raise SpecSyntaxError(pending.location, f"unterminated heredoc '{pending.terminator}'")
        return TokenizeResult(tokens=tuple(self._tokens), directives=tuple(self._directives))

    # -- position helpers -------------------------------------------------

    def _column(self, pos: int | None = None) -> int:
        return (self._pos if pos is None else pos) - self._line_start + 1

    def _location(self, line: int | None = None, column: int | None = None) -> SourceLocation:
        return SourceLocation(
            file=self._file,
            line=self._line if line is None else line,
            column=self._column() if column is None else column,
        )

    def _at_line_start(self) -> bool:
        return self._pos == self._line_start

    def _newline(self) -> None:
        """Consume one '\\n' at the current position and start a new line."""
        self._pos += 1
        self._line += 1
        self._line_start = self._pos
        self._spaced = False
        self._line_has_token = False

    def _advance_over(self, end: int) -> None:
        """Move to `end`, keeping line bookkeeping for newlines in between."""
        while self._pos < end:
            if self._src[self._pos] == "\n":
                self._newline()
            else:
                self._pos += 1

    def _emit(self, kind: TokenKind, value: str, line: int, column: int) -> None:
        self._tokens.append(Token(kind=kind, value=value, line=line, column=column, spaced=self._spaced))
        self._spaced = False
        self._line_has_token = True

    def _prev(self) -> Token | None:
        return self._tokens[-1] if self._tokens else None

    def _prev_ends_value(self) -> bool:
        prev = self._prev()
        return prev is not None and prev.kind is not TokenKind.NEWLINE and prev.ends_value

    def _ambiguous_argument_start(self) -> bool:
        """`foo /re/` and `foo %w[a]`: an identifier, a space, then no space after the sigil."""
        prev = self._prev()
        nxt = self._src[self._pos + 1:self._pos + 2]
        return (
            prev is not None
            and prev.kind is TokenKind.IDENT
            and self._spaced
            and nxt not in ("", " ", "\t", "\n", "=")
        )

    # -- scanners ---------------------------------------------------------

    def _skip_line_start_markers(self) -> bool:
        src = self._src
        if src.startswith("=begin", self._pos):
            start = self._location()
            match = _BLOCK_COMMENT_END_RE.search(src, self._pos)
            if match is None:
                raise SpecSyntaxError(start, "unterminated =begin comment")
            self._advance_over(match.end())
            return True
        if src.startswith("__END__", self._pos):
            rest = src[self._pos + len("__END__"):].split("\n", 1)[0]
            if not rest.strip():
                self._pos = len(src)
                return True
        return False

    def _emit_newline(self) -> None:
        line, column = self._line, self._column()
        prev = self._prev()
        if prev is not None and prev.kind is not TokenKind.NEWLINE:
            self._tokens.append(Token(TokenKind.NEWLINE, "\n", line, column, self._spaced))
        self._newline()
        if self._heredocs:
            self._consume_heredoc_bodies()

    def _comment(self) -> None:
        end = self._src.find("\n", self._pos)
        end = len(self._src) if end == -1 else end
        text = self._src[self._pos:end]
        match = _DIRECTIVE_RE.search(text)
        if match:
            ids = frozenset(part.strip() for part in match.group(2).split(","))
            kind = match.group(1)
            if kind == "disable-file":
                scope = "file"
            elif kind == "disable-next-line" or not self._line_has_token:
                scope = "next-line"
            else:
                scope = "line"
            self._directives.append(Directive(line=self._line, scope=scope, rule_ids=ids))
        self._pos = end

    def _identifier(self) -> None:
        src = self._src
        start = self._pos
        line, column = self._line, self._column()
        end = start
        while end < len(src) and (src[end].isalnum() or src[end] == "_" or ord(src[end]) > 127):
            end += 1
        # Method names may end in ? or !, but not when that starts '!=' or '?:' style operators.
        if end < len(src) and src[end] in "?!" and src[end + 1:end + 2] != "=":
            if not (src[end] == "?" and src[end + 1:end + 2] == ":"):
                end += 1
        word = src[start:end]
        self._pos = end
        prev = self._prev()
        after_dot = prev is not None and prev.kind in (TokenKind.DOT, TokenKind.SCOPE)
        is_label = src[end:end + 1] == ":" and src[end + 1:end + 2] != ":"
        if word in KEYWORDS and not after_dot and not is_label:
            kind = TokenKind.KEYWORD
        elif word[0].isupper():
            kind = TokenKind.CONSTANT
        else:
            kind = TokenKind.IDENT
        self._emit(kind, word, line, column)

    def _number(self) -> None:
        match = _NUMBER_RE.match(self._src, self._pos)
        line, column = self._line, self._column()
        end = match.end() if match else self._pos + 1
        self._emit(TokenKind.NUMBER, self._src[self._pos:end], line, column)
        self._pos = end

    def _variable(self, kind: TokenKind) -> None:
        src = self._src
        line, column = self._line, self._column()
        end = self._pos + 1
        if kind is TokenKind.IVAR and src[end:end + 1] == "@":
            end += 1
        if kind is TokenKind.GVAR and end < len(src) and not (src[end].isalnum() or src[end] == "_"):
            end += 1  # $!, $~, $0 style specials
        while end < len(src) and (src[end].isalnum() or src[end] == "_"):
            end += 1
        self._emit(kind, src[self._pos:end], line, column)
        self._pos = end

    def _colon(self) -> None:
        src = self._src
        line, column = self._line, self._column()
        nxt = src[self._pos + 1:self._pos + 2]
        if nxt == ":":
            self._emit(TokenKind.SCOPE, "::", line, column)
            self._pos += 2
            return
        prev_char = src[self._pos - 1] if self._pos > 0 else ""
        glued = prev_char.isalnum() or prev_char in "_?!)]}\"'"
        if nxt in ("\"", "'") and not glued:
            self._pos += 1
            self._quoted(TokenKind.SYMBOL, nxt, interpolate=nxt == "\"", line=line, column=column)
            return
        if nxt and (nxt.isalpha() or nxt == "_") and not glued:
            end = self._pos + 1
            while end < len(src) and (src[end].isalnum() or src[end] == "_"):
                end += 1
            if end < len(src) and src[end] in "?!=" and src[end + 1:end + 2] not in ("=", ">", "~"):
                end += 1
            self._emit(TokenKind.SYMBOL, src[self._pos:end], line, column)
            self._pos = end
            return
        self._emit(TokenKind.OP, ":", line, column)
        self._pos += 1

    def _quoted(
        self,
        kind: TokenKind,
        opener: str,
        interpolate: bool,
        flags: bool = False,
        line: int | None = None,
        column: int | None = None,
        closer: str | None = None,
    ) -> None:
        """Scan a delimited literal starting at the opening delimiter."""
        line = self._line if line is None else line
        column = self._column() if column is None else column
        start = self._location(line, column)
        spaced = self._spaced
        closer = closer or PAIRED_DELIMITERS.get(opener, opener)
        nests = closer != opener
        self._pos += 1
        content_start = self._pos
        end = self._scan_delimited(opener, closer, nests, interpolate, start)
        value = self._src[content_start:end]
        self._advance_over(end + 1)
        if flags:
            while self._pos < len(self._src) and self._src[self._pos].isalpha():
                self._pos += 1
        self._spaced = spaced
        self._emit(kind, value, line, column)

    def _scan_delimited(
        self, opener: str, closer: str, nests: bool, interpolate: bool, start: SourceLocation
    ) -> int:
        """Return the index of the closing delimiter, starting from the current position."""
        src = self._src
        pos = self._pos
        depth = 1
        while pos < len(src):
            ch = src[pos]
            if ch == "\\":
                pos += 2
                continue
            if interpolate and ch == "#" and src.startswith("{", pos + 1):
                pos = self._skip_interpolation(pos + 2, start)
                continue
            if nests and ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    return pos
            pos += 1
        raise SpecSyntaxError(start, "unterminated string literal")

    def _skip_interpolation(self, pos: int, start: SourceLocation) -> int:
        """Skip a `#{...}` body (already past the brace); return the index after its '}'."""
        src = self._src
        depth = 1
        while pos < len(src):
            ch = src[pos]
            if ch == "\\":
                pos += 2
                continue
            if ch in "\"'`":
                saved = self._pos
                self._pos = pos + 1
                pos = self._scan_delimited(ch, ch, False, ch != "'", start) + 1
                self._pos = saved
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return pos + 1
            pos += 1
        raise SpecSyntaxError(start, "unterminated string interpolation")

    def _percent_literal(self) -> bool:
        match = _PERCENT_RE.match(self._src, self._pos)
        if match is None:
            return False
        if self._prev_ends_value() and not self._ambiguous_argument_start():
            return False
        if not match.group(1) and match.group(2) in "=":
            return False
        kind_letter, opener = match.group(1), match.group(2)
        line, column = self._line, self._column()
        self._pos += 1 + len(kind_letter)
        if kind_letter == "r":
            kind = TokenKind.REGEX
        elif kind_letter == "s":
            kind = TokenKind.SYMBOL
        else:
            kind = TokenKind.STRING
        self._quoted(
            kind,
            opener,
            interpolate=kind_letter in ("", "Q", "W", "I", "r", "x"),
            flags=kind_letter == "r",
            line=line,
            column=column,
        )
        return True

    def _regex_allowed(self) -> bool:
        return not self._prev_ends_value() or self._ambiguous_argument_start()

    def _char_literal(self) -> bool:
        """`?a`, `?}` and `?\\n` are one-character strings where a value can start."""
        if self._prev_ends_value() and not self._ambiguous_argument_start():
            return False
        src = self._src
        start = self._pos + 1
        if start >= len(src) or src[start] in " \t\r\n\f\v":
            return False
        end = start + 2 if src[start] == "\\" else start + 1
        if end > len(src):
            return False
        word_char = src[start].isalnum() or src[start] == "_"
        if word_char and end < len(src) and (src[end].isalnum() or src[end] == "_"):
            return False
        line, column = self._line, self._column()
        self._emit(TokenKind.STRING, src[start:end], line, column)
        self._pos = end
        return True

    def _heredoc(self) -> bool:
        match = _HEREDOC_RE.match(self._src, self._pos)
        if match is None:
            return False
        flavor, _quote, name = match.groups()
        if not flavor and (self._prev_ends_value() or not name[0].isupper()):
            return False
        line, column = self._line, self._column()
        self._heredocs.append(
            _PendingHeredoc(terminator=name, indented=bool(flavor), location=self._location(line, column))
        )
        self._emit(TokenKind.STRING, "", line, column)
        self._pos = match.end()
        return True

    def _consume_heredoc_bodies(self) -> None:
        """Skip heredoc bodies queued on the line that just ended."""
        src = self._src
        while self._heredocs:
            heredoc = self._heredocs[0]
            while True:
                if self._pos >= len(src):
                    return
                end = src.find("\n", self._pos)
                end = len(src) if end == -1 else end
                text = src[self._pos:end]
                candidate = text.strip() if heredoc.indented else text.rstrip("\r")
                self._pos = end
                if self._pos < len(src):
                    self._newline()
                if candidate == heredoc.terminator:
                    break
            self._heredocs.pop(0)

    def _punctuation(self) -> None:
        src = self._src
        ch = src[self._pos]
        line, column = self._line, self._column()
        if ch in SINGLE_CHAR_TOKENS:
            self._emit(SINGLE_CHAR_TOKENS[ch], ch, line, column)
            self._pos += 1
            return
        if src.startswith("&.", self._pos):
            self._emit(TokenKind.DOT, "&.", line, column)
            self._pos += 2
            return
        if ch == "." and not src.startswith("..", self._pos):
            self._emit(TokenKind.DOT, ".", line, column)
            self._pos += 1
            return
        if ch == "|" and not src.startswith("||", self._pos) and not src.startswith("|=", self._pos):
            self._emit(TokenKind.PIPE, "|", line, column)
            self._pos += 1
            return
        for op in OPERATORS:
            if src.startswith(op, self._pos):
                self._emit(TokenKind.OP, op, line, column)
                self._pos += len(op)
                return
        self._emit(TokenKind.OP, ch, line, column)
        self._pos += 1
