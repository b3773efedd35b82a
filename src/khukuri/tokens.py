"""
Token types for the Khukuri lexer.

Khukuri keywords are Nepali slang spellings of the usual control words.
Two of them span two words (``jaba samma`` and ``kina bhane``); the lexer
folds each pair into a single token.

Token type categories follow the error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenKind(Enum):
    """Coarse token categories."""
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    OPERATOR = "operator"
    DELIMITER = "delimiter"
    EOF = "eof"


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Literals ---
    NUMBER_LITERAL = auto()     # 42, 3.14
    STRING_LITERAL = auto()     # "namaste"
    BOOL_LITERAL = auto()       # sahi, galat

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names

    # --- Keywords ---
    VAR = auto()                # maanau
    IF = auto()                 # yedi
    THEN = auto()               # bhane
    ELSE = auto()               # natra
    ELIF = auto()               # kina bhane
    WHILE = auto()              # jaba samma
    FOREACH = auto()            # pratyek
    IN = auto()                 # ma
    FUNCTION = auto()           # kaam
    RETURN = auto()             # pathau
    PRINT = auto()              # bhan
    BREAK = auto()              # rok
    CONTINUE = auto()           # jane
    IMPORT = auto()             # aayaat

    # --- Logical operators (keyword-based) ---
    AND = auto()                # ra
    OR = auto()                 # wa
    NOT = auto()                # hoina

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Assignment ---
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACKET = auto()           # [
    RBRACKET = auto()           # ]
    COLON = auto()              # :
    COMMA = auto()              # ,

    # --- Special ---
    EOF = auto()                # end of input

    @property
    def kind(self) -> TokenKind:
        """The coarse category this token type belongs to."""
        return _KINDS[self]


_KEYWORD_TYPES = {
    TokenType.VAR, TokenType.IF, TokenType.THEN, TokenType.ELSE,
    TokenType.ELIF, TokenType.WHILE, TokenType.FOREACH, TokenType.IN,
    TokenType.FUNCTION, TokenType.RETURN, TokenType.PRINT, TokenType.BREAK,
    TokenType.CONTINUE, TokenType.IMPORT, TokenType.AND, TokenType.OR,
    TokenType.NOT, TokenType.BOOL_LITERAL,
}

_DELIMITER_TYPES = {
    TokenType.LBRACE, TokenType.RBRACE, TokenType.LPAREN, TokenType.RPAREN,
    TokenType.LBRACKET, TokenType.RBRACKET, TokenType.COLON, TokenType.COMMA,
}


def _kind_of(token_type: TokenType) -> TokenKind:
    if token_type in _KEYWORD_TYPES:
        return TokenKind.KEYWORD
    if token_type in _DELIMITER_TYPES:
        return TokenKind.DELIMITER
    if token_type == TokenType.IDENTIFIER:
        return TokenKind.IDENTIFIER
    if token_type == TokenType.NUMBER_LITERAL:
        return TokenKind.NUMBER
    if token_type == TokenType.STRING_LITERAL:
        return TokenKind.STRING
    if token_type == TokenType.EOF:
        return TokenKind.EOF
    return TokenKind.OPERATOR


_KINDS = {token_type: _kind_of(token_type) for token_type in TokenType}


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # float for numbers, bool for sahi/galat, str otherwise
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    @property
    def kind(self) -> TokenKind:
        return self.type.kind

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER_LITERAL, TokenType.STRING_LITERAL,
                         TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - maps a single word to its token type
KEYWORDS: dict[str, TokenType] = {
    "maanau": TokenType.VAR,
    "yedi": TokenType.IF,
    "bhane": TokenType.THEN,
    "natra": TokenType.ELSE,
    "pratyek": TokenType.FOREACH,
    "ma": TokenType.IN,
    "kaam": TokenType.FUNCTION,
    "pathau": TokenType.RETURN,
    "bhan": TokenType.PRINT,
    "rok": TokenType.BREAK,
    "jane": TokenType.CONTINUE,
    "aayaat": TokenType.IMPORT,

    # Logical operators
    "ra": TokenType.AND,
    "wa": TokenType.OR,
    "hoina": TokenType.NOT,

    # Boolean literals
    "sahi": TokenType.BOOL_LITERAL,
    "galat": TokenType.BOOL_LITERAL,
}

# Two-word keywords: first word -> (second word, folded token type)
COMPOUND_KEYWORDS: dict[str, tuple[str, TokenType]] = {
    "jaba": ("samma", TokenType.WHILE),
    "kina": ("bhane", TokenType.ELIF),
}

# Words that are only valid as the tail of a compound keyword
COMPOUND_TAILS: dict[str, str] = {
    "samma": "jaba",
}

TRUE_LITERAL = "sahi"
FALSE_LITERAL = "galat"


def is_keyword(word: str) -> bool:
    """Check if a word is reserved, alone or as part of a compound keyword."""
    return word in KEYWORDS or word in COMPOUND_KEYWORDS or word in COMPOUND_TAILS


def describe(token_type: TokenType) -> str:
    """Human-readable description of a token type, for error messages."""
    for word, kw_type in KEYWORDS.items():
        if kw_type == token_type and token_type != TokenType.BOOL_LITERAL:
            return f"'{word}'"
    for head, (tail, kw_type) in COMPOUND_KEYWORDS.items():
        if kw_type == token_type:
            return f"'{head} {tail}'"
    return _DESCRIPTIONS.get(token_type, token_type.name.lower())


_DESCRIPTIONS = {
    TokenType.NUMBER_LITERAL: "number",
    TokenType.STRING_LITERAL: "string",
    TokenType.BOOL_LITERAL: "boolean",
    TokenType.IDENTIFIER: "identifier",
    TokenType.PLUS: "'+'",
    TokenType.MINUS: "'-'",
    TokenType.STAR: "'*'",
    TokenType.SLASH: "'/'",
    TokenType.PERCENT: "'%'",
    TokenType.LT: "'<'",
    TokenType.GT: "'>'",
    TokenType.LE: "'<='",
    TokenType.GE: "'>='",
    TokenType.EQ: "'=='",
    TokenType.NE: "'!='",
    TokenType.ASSIGN: "'='",
    TokenType.LBRACE: "'{'",
    TokenType.RBRACE: "'}'",
    TokenType.LPAREN: "'('",
    TokenType.RPAREN: "')'",
    TokenType.LBRACKET: "'['",
    TokenType.RBRACKET: "']'",
    TokenType.COLON: "':'",
    TokenType.COMMA: "','",
    TokenType.EOF: "end of input",
}
