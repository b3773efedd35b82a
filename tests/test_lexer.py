"""
Unit tests for the Khukuri lexer.
"""

import pytest
from khukuri import tokenize, Lexer, TokenType, TokenKind, LexError


def types_of(source):
    return [t.type for t in tokenize(source)]


class TestLexerBasics:
    """Test basic lexer functionality."""

    def test_empty_source(self):
        """Empty source produces only EOF."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_whitespace_and_newlines_only(self):
        """Newlines are whitespace; no NEWLINE tokens exist."""
        assert types_of("  \n\t \r\n ") == [TokenType.EOF]

    def test_simple_declaration(self):
        """Basic maanau statement tokenization."""
        assert types_of("maanau x = 42") == [
            TokenType.VAR,
            TokenType.IDENTIFIER,
            TokenType.ASSIGN,
            TokenType.NUMBER_LITERAL,
            TokenType.EOF,
        ]

    def test_declaration_with_type_hint(self):
        assert types_of("maanau x: number = 1") == [
            TokenType.VAR,
            TokenType.IDENTIFIER,
            TokenType.COLON,
            TokenType.IDENTIFIER,
            TokenType.ASSIGN,
            TokenType.NUMBER_LITERAL,
            TokenType.EOF,
        ]

    def test_position_tracking(self):
        """Token positions are tracked correctly."""
        tokens = tokenize("maanau x = 5")
        assert tokens[0].line == 1
        assert tokens[0].column == 1
        assert tokens[1].column == 8

    def test_multiline_position_tracking(self):
        tokens = tokenize("maanau x = 5\nmaanau y = 10")
        var_tokens = [t for t in tokens if t.type == TokenType.VAR]
        assert var_tokens[0].line == 1
        assert var_tokens[1].line == 2
        assert var_tokens[1].column == 1

    def test_lexer_iteration(self):
        """Lexer can be consumed as an iterator."""
        tokens = list(Lexer("bhan 1"))
        assert [t.type for t in tokens] == [
            TokenType.PRINT, TokenType.NUMBER_LITERAL, TokenType.EOF
        ]

    def test_filename_in_span(self):
        tokens = tokenize("x", filename="main.nep")
        assert tokens[0].span.start.filename == "main.nep"
        assert str(tokens[0].span.start) == "main.nep:1:1"


class TestComments:
    """Test comment handling."""

    def test_line_comment_skipped(self):
        assert types_of("// kehi pani hoina\nbhan 1") == [
            TokenType.PRINT, TokenType.NUMBER_LITERAL, TokenType.EOF
        ]

    def test_trailing_comment(self):
        assert types_of("maanau x = 5 // comment") == [
            TokenType.VAR, TokenType.IDENTIFIER, TokenType.ASSIGN,
            TokenType.NUMBER_LITERAL, TokenType.EOF,
        ]

    def test_comment_at_end_of_input(self):
        assert types_of("// only a comment") == [TokenType.EOF]

    def test_single_slash_is_division(self):
        assert types_of("a / b")[1] == TokenType.SLASH


class TestKeywords:
    """Test keyword recognition."""

    @pytest.mark.parametrize("word,expected", [
        ("maanau", TokenType.VAR),
        ("yedi", TokenType.IF),
        ("bhane", TokenType.THEN),
        ("natra", TokenType.ELSE),
        ("pratyek", TokenType.FOREACH),
        ("ma", TokenType.IN),
        ("kaam", TokenType.FUNCTION),
        ("pathau", TokenType.RETURN),
        ("bhan", TokenType.PRINT),
        ("rok", TokenType.BREAK),
        ("jane", TokenType.CONTINUE),
        ("ra", TokenType.AND),
        ("wa", TokenType.OR),
        ("hoina", TokenType.NOT),
        ("aayaat", TokenType.IMPORT),
    ])
    def test_single_word_keywords(self, word, expected):
        tokens = tokenize(word)
        assert tokens[0].type == expected
        assert tokens[0].kind == TokenKind.KEYWORD

    def test_boolean_literals(self):
        tokens = tokenize("sahi galat")
        assert tokens[0].type == TokenType.BOOL_LITERAL
        assert tokens[0].value is True
        assert tokens[1].type == TokenType.BOOL_LITERAL
        assert tokens[1].value is False

    def test_keyword_prefix_is_identifier(self):
        """A word that merely starts with a keyword is an identifier."""
        tokens = tokenize("maanaux bhanne")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[1].type == TokenType.IDENTIFIER


class TestCompoundKeywords:
    """Test the two-word keywords."""

    def test_jaba_samma_folds_to_while(self):
        tokens = tokenize("jaba samma x < 3 { }")
        assert tokens[0].type == TokenType.WHILE
        assert tokens[0].lexeme == "jaba samma"
        assert tokens[1].type == TokenType.IDENTIFIER

    def test_kina_bhane_folds_to_elif(self):
        tokens = tokenize("kina bhane")
        assert tokens[0].type == TokenType.ELIF
        assert tokens[1].type == TokenType.EOF

    def test_compound_across_newline(self):
        assert tokenize("jaba\n  samma")[0].type == TokenType.WHILE

    def test_lone_jaba_is_error(self):
        with pytest.raises(LexError) as exc:
            tokenize("jaba x < 3 { }")
        assert exc.value.diagnostic.code == "E004"

    def test_lone_kina_is_error(self):
        with pytest.raises(LexError):
            tokenize("kina x")

    def test_jaba_at_end_of_input_is_error(self):
        with pytest.raises(LexError):
            tokenize("jaba")

    def test_lone_samma_is_error(self):
        with pytest.raises(LexError):
            tokenize("samma")

    def test_bhane_alone_is_then(self):
        assert tokenize("bhane")[0].type == TokenType.THEN


class TestLiterals:
    """Test number, string and identifier literals."""

    def test_integer_number(self):
        token = tokenize("42")[0]
        assert token.type == TokenType.NUMBER_LITERAL
        assert token.value == 42.0
        assert token.kind == TokenKind.NUMBER

    def test_decimal_number(self):
        token = tokenize("3.14")[0]
        assert token.value == pytest.approx(3.14)
        assert token.lexeme == "3.14"

    def test_second_decimal_point_ends_number(self):
        """At most one decimal point belongs to a number."""
        with pytest.raises(LexError):
            tokenize("1.2.3")

    def test_dangling_decimal_point_is_error(self):
        with pytest.raises(LexError) as exc:
            tokenize("maanau x = 5.")
        assert exc.value.diagnostic.code == "E003"

    def test_string_literal(self):
        token = tokenize('"Namaste duniya"')[0]
        assert token.type == TokenType.STRING_LITERAL
        assert token.value == "Namaste duniya"

    def test_string_has_no_escapes(self):
        """Backslashes are kept verbatim."""
        token = tokenize(r'"a\nb"')[0]
        assert token.value == "a\\nb"

    def test_unterminated_string(self):
        with pytest.raises(LexError) as exc:
            tokenize('bhan "oops')
        assert exc.value.diagnostic.code == "E002"
        assert exc.value.line == 1
        assert exc.value.column == 6

    def test_string_cannot_span_lines(self):
        with pytest.raises(LexError):
            tokenize('"line one\nline two"')

    def test_identifier_with_underscore_and_digits(self):
        token = tokenize("final_price2")[0]
        assert token.type == TokenType.IDENTIFIER
        assert token.value == "final_price2"

    def test_devanagari_identifier(self):
        """Combining vowel signs stay inside the identifier."""
        tokens = tokenize("maanau नाम = 1")
        assert tokens[1].type == TokenType.IDENTIFIER
        assert tokens[1].value == "नाम"
        assert tokens[2].type == TokenType.ASSIGN


class TestOperators:
    """Test operator tokenization."""

    def test_two_char_operators_before_one_char(self):
        assert types_of("== != >= <= = > <")[:-1] == [
            TokenType.EQ, TokenType.NE, TokenType.GE, TokenType.LE,
            TokenType.ASSIGN, TokenType.GT, TokenType.LT,
        ]

    def test_adjacent_operators(self):
        assert types_of("a>=b")[:-1] == [
            TokenType.IDENTIFIER, TokenType.GE, TokenType.IDENTIFIER
        ]

    def test_arithmetic(self):
        assert types_of("+ - * / %")[:-1] == [
            TokenType.PLUS, TokenType.MINUS, TokenType.STAR,
            TokenType.SLASH, TokenType.PERCENT,
        ]

    def test_delimiters(self):
        tokens = tokenize("( ) [ ] { } : ,")[:-1]
        assert all(t.kind == TokenKind.DELIMITER for t in tokens)

    def test_operator_kind(self):
        assert tokenize("+")[0].kind == TokenKind.OPERATOR

    def test_lone_bang_is_error(self):
        with pytest.raises(LexError) as exc:
            tokenize("!x")
        assert exc.value.diagnostic.code == "E001"

    @pytest.mark.parametrize("char", ["$", "@", "#", ";", "&"])
    def test_unexpected_characters(self, char):
        with pytest.raises(LexError) as exc:
            tokenize(f"maanau x = 1 {char}")
        assert exc.value.line == 1
        assert exc.value.column == 14

    def test_error_reports_line_and_column(self):
        with pytest.raises(LexError) as exc:
            tokenize("maanau a = 1\n  maanau b = $")
        assert exc.value.line == 2
        assert exc.value.column == 14
        assert exc.value.diagnostic.source_line == "  maanau b = $"
