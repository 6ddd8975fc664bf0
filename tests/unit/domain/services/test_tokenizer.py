"""Tests for the Ruby tokenizer."""

import pytest

from rspec_style_linter.domain.errors import SpecSyntaxError
from rspec_style_linter.domain.services.tokenizer import Tokenizer
from rspec_style_linter.domain.tokens import TokenKind


def kinds_and_values(source: str) -> list[tuple[TokenKind, str]]:
    return [(t.kind, t.value) for t in Tokenizer(source).tokenize().tokens]


class TestTokenPositions:
    """Line and column bookkeeping."""

    def test_columns_are_one_based(self) -> None:
        tokens = Tokenizer("describe 'x' do\nend\n").tokenize().tokens
        assert (tokens[0].value, tokens[0].line, tokens[0].column) == ("describe", 1, 1)
        assert (tokens[1].kind, tokens[1].value, tokens[1].column) == (TokenKind.STRING, "x", 10)
        assert tokens[2].is_keyword("do")
        assert (tokens[4].value, tokens[4].line, tokens[4].column) == ("end", 2, 1)

    def test_consecutive_newlines_collapse(self) -> None:
        tokens = Tokenizer("a\n\n\nb\n").tokenize().tokens
        assert [t.kind for t in tokens] == [
            TokenKind.IDENT, TokenKind.NEWLINE, TokenKind.IDENT, TokenKind.NEWLINE,
        ]
        assert tokens[2].line == 4

    def test_spaced_flag(self) -> None:
        tokens = Tokenizer("foo(1) bar (2)").tokenize().tokens
        assert tokens[1].kind is TokenKind.LPAREN and not tokens[1].spaced
        assert tokens[5].kind is TokenKind.LPAREN and tokens[5].spaced


class TestLiterals:
    """Code-looking text inside literals never becomes code tokens."""

    def test_keyword_inside_string_is_not_a_keyword(self) -> None:
        assert kinds_and_values("it 'does end things' do\nend") == [
            (TokenKind.IDENT, "it"),
            (TokenKind.STRING, "does end things"),
            (TokenKind.KEYWORD, "do"),
            (TokenKind.NEWLINE, "\n"),
            (TokenKind.KEYWORD, "end"),
        ]

    def test_interpolation_with_nested_quotes_is_one_string(self) -> None:
        tokens = Tokenizer('x = "a #{b("}")} c"').tokenize().tokens
        assert tokens[-1].kind is TokenKind.STRING
        assert tokens[-1].value == 'a #{b("}")} c'

    def test_percent_word_array(self) -> None:
        assert kinds_and_values("%w[a b]") == [(TokenKind.STRING, "a b")]

    def test_regex_after_open_paren(self) -> None:
        values = kinds_and_values("match(/end/)")
        assert (TokenKind.REGEX, "end") in values
        assert (TokenKind.KEYWORD, "end") not in values

    def test_character_literals(self) -> None:
        assert kinds_and_values("eq(?})") == [
            (TokenKind.IDENT, "eq"), (TokenKind.LPAREN, "("), (TokenKind.STRING, "}"), (TokenKind.RPAREN, ")"),
        ]
        assert (TokenKind.STRING, "\\n") in kinds_and_values("x = ?\\n")

    def test_question_mark_after_a_value_is_an_operator(self) -> None:
        assert kinds_and_values("a ? b : c")[1] == (TokenKind.OP, "?")
        assert kinds_and_values("valid?")[0] == (TokenKind.IDENT, "valid?")

    def test_division_is_an_operator(self) -> None:
        assert kinds_and_values("a / b") == [
            (TokenKind.IDENT, "a"), (TokenKind.OP, "/"), (TokenKind.IDENT, "b"),
        ]

    def test_heredoc_body_is_skipped(self) -> None:
        source = "let(:text) { <<~TXT }\n  describe 'not code' do\nTXT\nfoo\n"
        tokens = Tokenizer(source).tokenize().tokens
        values = [t.value for t in tokens]
        assert "describe" not in values
        assert tokens[-2].value == "foo"
        assert tokens[-2].line == 4

    def test_block_comment_is_skipped(self) -> None:
        tokens = Tokenizer("=begin\ndescribe 'x' do\n=end\nfoo\n").tokenize().tokens
        assert [t.value for t in tokens if t.kind is not TokenKind.NEWLINE] == ["foo"]
        assert tokens[0].line == 4

    def test_end_marker_stops_tokenizing(self) -> None:
        tokens = Tokenizer("foo\n__END__\ndescribe do\n").tokenize().tokens
        assert [t.value for t in tokens if t.kind is not TokenKind.NEWLINE] == ["foo"]


class TestIdentifiers:
    """Keywords, labels, symbols and scope operators."""

    def test_keyword_after_dot_is_an_identifier(self) -> None:
        assert kinds_and_values("x.class") == [
            (TokenKind.IDENT, "x"), (TokenKind.DOT, "."), (TokenKind.IDENT, "class"),
        ]

    def test_keyword_used_as_hash_label_is_an_identifier(self) -> None:
        assert kinds_and_values("if: true")[0] == (TokenKind.IDENT, "if")

    def test_predicate_and_bang_names(self) -> None:
        assert kinds_and_values("valid? save!") == [
            (TokenKind.IDENT, "valid?"), (TokenKind.IDENT, "save!"),
        ]

    def test_symbols_and_hash_labels(self) -> None:
        assert kinds_and_values("describe User, type: :model") == [
            (TokenKind.IDENT, "describe"),
            (TokenKind.CONSTANT, "User"),
            (TokenKind.COMMA, ","),
            (TokenKind.IDENT, "type"),
            (TokenKind.OP, ":"),
            (TokenKind.SYMBOL, ":model"),
        ]

    def test_scope_operator(self) -> None:
        assert kinds_and_values("Admin::User") == [
            (TokenKind.CONSTANT, "Admin"), (TokenKind.SCOPE, "::"), (TokenKind.CONSTANT, "User"),
        ]

    def test_instance_variable(self) -> None:
        assert kinds_and_values("@user = 1")[:2] == [(TokenKind.IVAR, "@user"), (TokenKind.OP, "=")]

    def test_safe_navigation_is_a_dot(self) -> None:
        assert kinds_and_values("a&.b")[1] == (TokenKind.DOT, "&.")


class TestDirectives:
    """Inline suppression comments."""

    def test_trailing_comment_applies_to_its_line(self) -> None:
        result = Tokenizer("it 'x' do # rspec-style:disable=single-expectation\nend").tokenize()
        assert len(result.directives) == 1
        directive = result.directives[0]
        assert directive.line == 1
        assert directive.scope == "line"
        assert directive.rule_ids == frozenset({"single-expectation"})

    def test_standalone_comment_applies_to_next_line(self) -> None:
        result = Tokenizer("# rspec-style:disable=a, b\nit 'x'\n").tokenize()
        assert result.directives[0].scope == "next-line"
        assert result.directives[0].rule_ids == frozenset({"a", "b"})

    def test_file_directive(self) -> None:
        result = Tokenizer("foo # rspec-style:disable-file=all\n").tokenize()
        assert result.directives[0].scope == "file"

    def test_ordinary_comments_are_ignored(self) -> None:
        result = Tokenizer("# just a note\nfoo\n").tokenize()
        assert result.directives == ()
        assert [t.value for t in result.tokens] == ["foo", "\n"]


class TestErrors:
    """Unterminated literals raise SpecSyntaxError with a location."""

    def test_unterminated_string(self) -> None:
        with pytest.raises(SpecSyntaxError) as excinfo:
            Tokenizer("foo\nit 'never closed do\n", "a_spec.rb").tokenize()
        assert excinfo.value.location.file == "a_spec.rb"
        assert excinfo.value.location.line == 2
        assert excinfo.value.location.column == 4

    def test_unterminated_heredoc(self) -> None:
        with pytest.raises(SpecSyntaxError, match="unterminated heredoc 'EOS'"):
            Tokenizer("x = <<~EOS\nbody\n").tokenize()

    def test_unterminated_block_comment(self) -> None:
        with pytest.raises(SpecSyntaxError, match="=begin"):
            Tokenizer("=begin\nnever ends\n").tokenize()
