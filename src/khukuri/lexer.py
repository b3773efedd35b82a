"""
Lexer for Khukuri.

Turns program text into the token list the parser consumes.

Layout is free-form: spaces, tabs and newlines only separate tokens.
``//`` starts a comment running to the end of the line. String literals
are double-quoted and taken verbatim, numbers allow a single decimal
point, and the two-word keywords ``jaba samma`` and ``kina bhane`` come
out as one token each. Identifier characters include combining marks,
so Devanagari names lex the same way romanised ones do.
"""

import unicodedata
from typing import Iterator, List, Optional
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan, KEYWORDS,
    COMPOUND_KEYWORDS, COMPOUND_TAILS, TRUE_LITERAL,
)
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_number,
    error_incomplete_keyword,
)

_END = '\0'
_BLANKS = ' \t\r\n'

# Checked before _OPERATORS so '<=' never lexes as '<' '='
_PAIRED_OPERATORS = {
    '==': TokenType.EQ,
    '!=': TokenType.NE,
    '<=': TokenType.LE,
    '>=': TokenType.GE,
}

_OPERATORS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '%': TokenType.PERCENT,
    '<': TokenType.LT,
    '>': TokenType.GT,
    '=': TokenType.ASSIGN,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '[': TokenType.LBRACKET,
    ']': TokenType.RBRACKET,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    ':': TokenType.COLON,
    ',': TokenType.COMMA,
}


def _is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch == '_'


def _is_identifier_part(ch: str) -> bool:
    if ch.isalnum() or ch == '_':
        return True
    # Devanagari vowel signs and viramas are marks, not letters
    return ch != _END and unicodedata.category(ch).startswith('M')


class Lexer:
    """
    Scanner over one Khukuri source text.

    ``Lexer(text).tokenize()`` returns every token up to and including
    EOF; iterating a Lexer yields the same tokens lazily. The first
    malformed token raises LexError.
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self._source_lines = source.splitlines()

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Text of line ``line_num`` (1-based), or None past the end."""
        if 0 < line_num <= len(self._source_lines):
            return self._source_lines[line_num - 1]
        return None

    # -- cursor --------------------------------------------------------

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    @property
    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.source[i] if i < len(self.source) else _END

    def _advance(self) -> str:
        """Step over one character, keeping line and column current."""
        ch = self._peek()
        if ch == _END and self._at_end:
            return ch
        self.pos += 1
        if ch == '\n':
            self.line, self.column = self.line + 1, 1
        else:
            self.column += 1
        return ch

    def _fail(self, factory, start: SourceLocation, *details, span=None):
        """Raise the LexError built by ``factory`` for a token at ``start``."""
        raise factory(*details, span or self._span(start),
                      self.get_source_line(start.line))

    def _emit(self, kind: TokenType, value, start: SourceLocation,
              lexeme: Optional[str] = None) -> Token:
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(kind, value, lexeme, self._span(start))

    # -- trivia --------------------------------------------------------

    def _skip_whitespace(self) -> None:
        while not self._at_end and self._peek() in _BLANKS:
            self._advance()

    def _skip_trivia(self) -> None:
        """Move past whitespace and ``//`` comments."""
        self._skip_whitespace()
        while self._peek() == '/' and self._peek(1) == '/':
            while not self._at_end and self._peek() != '\n':
                self._advance()
            self._skip_whitespace()

    # -- literals and words --------------------------------------------

    def _scan_string(self) -> Token:
        start = self._location()
        self._advance()
        begin = self.pos
        while self._peek() != '"':
            # strings may not span lines
            if self._at_end or self._peek() == '\n':
                self._fail(error_unterminated_string, start)
            self._advance()
        text = self.source[begin:self.pos]
        self._advance()
        return self._emit(TokenType.STRING_LITERAL, text, start)

    def _digits(self) -> None:
        while self._peek().isdecimal():
            self._advance()

    def _scan_number(self) -> Token:
        start = self._location()
        self._digits()
        if self._peek() == '.':
            self._advance()
            if not self._peek().isdecimal():
                self._fail(error_unterminated_number, start,
                           self.source[start.offset:self.pos])
            self._digits()
        lexeme = self.source[start.offset:self.pos]
        return self._emit(TokenType.NUMBER_LITERAL, float(lexeme), start, lexeme)

    def _scan_word(self) -> str:
        begin = self.pos
        while _is_identifier_part(self._peek()):
            self._advance()
        return self.source[begin:self.pos]

    def _scan_compound_keyword(self, head: str, start: SourceLocation) -> Token:
        """Join ``head`` with its required second word, e.g. 'jaba samma'."""
        tail, kind = COMPOUND_KEYWORDS[head]
        head_span = self._span(start)

        self._skip_whitespace()
        if _is_identifier_start(self._peek()):
            mark = (self.pos, self.line, self.column)
            if self._scan_word() == tail:
                return self._emit(kind, f"{head} {tail}", start)
            self.pos, self.line, self.column = mark

        self._fail(error_incomplete_keyword, start, head, tail, span=head_span)

    def _scan_word_token(self) -> Token:
        start = self._location()
        word = self._scan_word()

        if word in COMPOUND_KEYWORDS:
            return self._scan_compound_keyword(word, start)
        if word in COMPOUND_TAILS:
            self._fail(error_incomplete_keyword, start, word, COMPOUND_TAILS[word])

        kind = KEYWORDS.get(word, TokenType.IDENTIFIER)
        value = (word == TRUE_LITERAL) if kind == TokenType.BOOL_LITERAL else word
        return self._emit(kind, value, start, word)

    def _scan_operator(self) -> Token:
        start = self._location()
        pair = self._peek() + self._peek(1)
        if pair in _PAIRED_OPERATORS:
            self._advance()
            self._advance()
            return self._emit(_PAIRED_OPERATORS[pair], pair, start)

        ch = self._advance()
        if ch not in _OPERATORS:
            self._fail(error_unexpected_character, start, ch)
        return self._emit(_OPERATORS[ch], ch, start)

    # -- driver --------------------------------------------------------

    def next_token(self) -> Token:
        """Scan and return the token after the current position."""
        self._skip_trivia()
        if self._at_end:
            return self._emit(TokenType.EOF, None, self._location(), "")

        ch = self._peek()
        if ch == '"':
            return self._scan_string()
        if ch.isdecimal():
            return self._scan_number()
        if _is_identifier_start(ch):
            return self._scan_word_token()
        return self._scan_operator()

    def __iter__(self) -> Iterator[Token]:
        token = self.next_token()
        while token.type != TokenType.EOF:
            yield token
            token = self.next_token()
        yield token

    def tokenize(self) -> List[Token]:
        return list(self)


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Tokenize a whole program.

    Args:
        source: program text
        filename: name recorded in every token's location

    Returns:
        Tokens ending with EOF

    Raises:
        LexError: at the first character that cannot start a token
    """
    return Lexer(source, filename).tokenize()
