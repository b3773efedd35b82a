"""
Recursive descent parser for Khukuri.

Builds the AST from the token list. Braces delimit blocks and newlines
mean nothing, so a statement simply ends where the next one can begin.

Binary operators, loosest first::

    wa
    ra
    == != < > <= >=     (one left-associative level)
    + -
    * / %

Unary ``hoina`` and ``-`` bind tighter than all of them, and calls and
indexing tighter still.
"""

from typing import Callable, List, Optional, Tuple, TypeVar
from .tokens import Token, TokenType, SourceSpan, describe
from .lexer import tokenize
from .ast import (
    # Expressions
    Expression, NumberLiteral, StringLiteral, BooleanLiteral, Identifier,
    BinaryOp, UnaryOp, FunctionCall, IndexAccess, ListLiteral, MappingLiteral,
    # Statements
    Statement, Block, VarDecl, Assignment, IndexAssignment, IfStatement,
    WhileStatement, ForEachStatement, FunctionDecl, ReturnStatement,
    BreakStatement, ContinueStatement, PrintStatement, ImportStatement,
    ExpressionStatement, Program,
)
from .errors import (
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_assignment_target,
    error_nesting_too_deep,
)

T = TypeVar('T')

_BINARY_PRECEDENCE = {
    TokenType.OR: 1,
    TokenType.AND: 2,
    TokenType.EQ: 3, TokenType.NE: 3,
    TokenType.LT: 3, TokenType.GT: 3,
    TokenType.LE: 3, TokenType.GE: 3,
    TokenType.PLUS: 4, TokenType.MINUS: 4,
    TokenType.STAR: 5, TokenType.SLASH: 5, TokenType.PERCENT: 5,
}

_LITERALS = {
    TokenType.NUMBER_LITERAL: NumberLiteral,
    TokenType.STRING_LITERAL: StringLiteral,
    TokenType.BOOL_LITERAL: BooleanLiteral,
}

_ASSIGNABLE = (Identifier, IndexAccess)


class Parser:
    """
    Parser over a token list ending in EOF.

    ``Parser(tokens).parse_program()`` returns a Program or raises
    ParseError at the first token that does not fit the grammar.
    """

    def __init__(self, tokens: List[Token], filename: Optional[str] = None,
                 source: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.pos = 0
        self._source_lines = source.splitlines() if source is not None else []

        # Leading keyword -> statement parser
        self._statement_parsers = {
            TokenType.VAR: self._parse_var,
            TokenType.IF: self._parse_if,
            TokenType.WHILE: self._parse_while,
            TokenType.FOREACH: self._parse_foreach,
            TokenType.FUNCTION: self._parse_function,
            TokenType.RETURN: self._parse_return,
            TokenType.BREAK: self._parse_break,
            TokenType.CONTINUE: self._parse_continue,
            TokenType.PRINT: self._parse_print,
            TokenType.IMPORT: self._parse_import,
        }

    # -- cursor --------------------------------------------------------

    @property
    def current(self) -> Token:
        return self.tokens[min(self.pos, len(self.tokens) - 1)]

    @property
    def previous(self) -> Token:
        return self.tokens[max(0, self.pos - 1)]

    @property
    def _at_end(self) -> bool:
        return self.current.type == TokenType.EOF

    def _check(self, *kinds: TokenType) -> bool:
        return self.current.type in kinds

    def _advance(self) -> Token:
        token = self.current
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def _match(self, *kinds: TokenType) -> Optional[Token]:
        """Take the current token only if it is one of ``kinds``."""
        return self._advance() if self._check(*kinds) else None

    def _expect(self, kind: TokenType, expected: Optional[str] = None) -> Token:
        """Take a token of type ``kind`` or fail naming what was wanted."""
        if not self._check(kind):
            self._error(expected or describe(kind))
        return self._advance()

    def _since(self, start: Token) -> SourceSpan:
        """Span from ``start`` through the last token consumed."""
        return SourceSpan(start.span.start, self.previous.span.end)

    # -- errors --------------------------------------------------------

    def _source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self._source_lines):
            return self._source_lines[line - 1]
        return None

    def _error(self, expected: str):
        token = self.current
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        raise error_unexpected_token(
            expected, self._found(token), token.span, self._source_line(token.line)
        )

    @staticmethod
    def _found(token: Token) -> str:
        """How an offending token is named in error messages."""
        if token.type == TokenType.IDENTIFIER:
            return f"identifier '{token.value}'"
        if token.type in _LITERALS:
            return f"{describe(token.type)} {token.lexeme}"
        return describe(token.type)

    def _comma_list(self, closer: TokenType, item: Callable[[], T]) -> List[T]:
        """Items separated by commas up to and including ``closer``."""
        items = []
        if not self._check(closer):
            items.append(item())
            while self._match(TokenType.COMMA):
                items.append(item())
        self._expect(closer, f"',' or {describe(closer)}")
        return items

    # -- expressions ---------------------------------------------------

    def _parse_expression(self) -> Expression:
        return self._parse_binary(1)

    def _parse_binary(self, min_level: int) -> Expression:
        """Precedence climbing; every level associates to the left."""
        left = self._parse_unary()
        level = _BINARY_PRECEDENCE.get(self.current.type)
        while level is not None and level >= min_level:
            operator = self._advance().type
            right = self._parse_binary(level + 1)
            left = BinaryOp(span=SourceSpan(left.span.start, right.span.end),
                            left=left, operator=operator, right=right)
            level = _BINARY_PRECEDENCE.get(self.current.type)
        return left

    def _parse_unary(self) -> Expression:
        op = self._match(TokenType.NOT, TokenType.MINUS)
        if op is None:
            return self._parse_postfix()
        operand = self._parse_unary()
        return UnaryOp(span=SourceSpan(op.span.start, operand.span.end),
                       operator=op.type, operand=operand)

    def _parse_postfix(self) -> Expression:
        """Calls and indexing, applied left to right: ``f(1)[0](2)``."""
        expr = self._parse_primary()
        while True:
            if self._match(TokenType.LPAREN):
                args = self._comma_list(TokenType.RPAREN, self._parse_expression)
                expr = FunctionCall(span=SourceSpan(expr.span.start, self.previous.span.end),
                                    callee=expr, arguments=tuple(args))
            elif self._match(TokenType.LBRACKET):
                key = self._parse_expression()
                self._expect(TokenType.RBRACKET)
                expr = IndexAccess(span=SourceSpan(expr.span.start, self.previous.span.end),
                                   container=expr, key=key)
            else:
                return expr

    def _parse_primary(self) -> Expression:
        token = self.current
        kind = token.type

        if kind in _LITERALS:
            self._advance()
            return _LITERALS[kind](span=token.span, value=token.value)
        if kind == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(span=token.span, name=token.value)
        if kind == TokenType.LPAREN:
            self._advance()
            inner = self._parse_expression()
            self._expect(TokenType.RPAREN)
            return inner
        if kind == TokenType.LBRACKET:
            self._advance()
            elements = self._comma_list(TokenType.RBRACKET, self._parse_expression)
            return ListLiteral(span=self._since(token), elements=tuple(elements))
        if kind == TokenType.LBRACE:
            self._advance()
            pairs = self._comma_list(TokenType.RBRACE, self._parse_mapping_entry)
            return MappingLiteral(span=self._since(token), pairs=tuple(pairs))

        self._error("expression")

    def _parse_mapping_entry(self) -> Tuple[Expression, Expression]:
        # keys are string literals only
        key = self._expect(TokenType.STRING_LITERAL, "string key")
        self._expect(TokenType.COLON)
        return StringLiteral(span=key.span, value=key.value), self._parse_expression()

    # -- statements ----------------------------------------------------

    def _parse_statement(self) -> Statement:
        handler = self._statement_parsers.get(self.current.type)
        if handler is not None:
            return handler(self._advance())
        return self._parse_expression_statement()

    def _parse_expression_statement(self) -> Statement:
        target = self._parse_expression()
        if not self._check(TokenType.ASSIGN):
            return ExpressionStatement(span=target.span, expression=target)

        if not isinstance(target, _ASSIGNABLE):
            raise error_invalid_assignment_target(
                target.span, self._source_line(target.span.start.line)
            )
        self._advance()
        value = self._parse_expression()
        span = SourceSpan(target.span.start, value.span.end)
        if isinstance(target, Identifier):
            return Assignment(span=span, name=target.name, value=value)
        return IndexAssignment(span=span, container=target.container,
                               key=target.key, value=value)

    def _parse_var(self, keyword: Token) -> VarDecl:
        """maanau name [: hint] = value"""
        name = self._expect(TokenType.IDENTIFIER, "variable name").value
        hint = None
        if self._match(TokenType.COLON):
            hint = self._expect(TokenType.IDENTIFIER, "type name").value
        self._expect(TokenType.ASSIGN)
        init = self._parse_expression()
        return VarDecl(span=self._since(keyword), name=name,
                       type_hint=hint, initializer=init)

    def _parse_if(self, keyword: Token) -> IfStatement:
        """yedi/kina bhane cond bhane {...} followed by any elif or else."""
        cond = self._parse_expression()
        self._expect(TokenType.THEN)
        then = self._parse_block()

        otherwise = None
        link = self._match(TokenType.ELIF)
        if link is None and self._match(TokenType.ELSE):
            link = self._match(TokenType.IF)
            if link is None:
                otherwise = self._parse_block("'{' or 'yedi'")
        if link is not None:
            # elif chains nest as a one-statement else block
            nested = self._parse_if(link)
            otherwise = Block(span=nested.span, statements=(nested,))

        return IfStatement(span=self._since(keyword), condition=cond,
                           then_branch=then, else_branch=otherwise)

    def _parse_while(self, keyword: Token) -> WhileStatement:
        cond = self._parse_expression()
        loop_body = self._parse_block()
        return WhileStatement(span=self._since(keyword), condition=cond, body=loop_body)

    def _parse_foreach(self, keyword: Token) -> ForEachStatement:
        """pratyek name ma expr {...}"""
        name = self._expect(TokenType.IDENTIFIER, "loop variable name").value
        self._expect(TokenType.IN)
        source = self._parse_expression()
        loop_body = self._parse_block()
        return ForEachStatement(span=self._since(keyword), variable=name,
                                iterable=source, body=loop_body)

    def _parse_function(self, keyword: Token) -> FunctionDecl:
        name = self._expect(TokenType.IDENTIFIER, "function name").value
        self._expect(TokenType.LPAREN)
        params = self._comma_list(
            TokenType.RPAREN,
            lambda: self._expect(TokenType.IDENTIFIER, "parameter name").value,
        )
        fn_body = self._parse_block()
        return FunctionDecl(span=self._since(keyword), name=name,
                            params=tuple(params), body=fn_body)

    def _parse_return(self, keyword: Token) -> ReturnStatement:
        # a bare pathau is only allowed right before '}' or the end
        if self._check(TokenType.RBRACE, TokenType.EOF):
            return ReturnStatement(span=keyword.span)
        result = self._parse_expression()
        return ReturnStatement(span=self._since(keyword), value=result)

    def _parse_break(self, keyword: Token) -> BreakStatement:
        return BreakStatement(span=keyword.span)

    def _parse_continue(self, keyword: Token) -> ContinueStatement:
        return ContinueStatement(span=keyword.span)

    def _parse_print(self, keyword: Token) -> PrintStatement:
        shown = self._parse_expression()
        return PrintStatement(span=self._since(keyword), value=shown)

    def _parse_import(self, keyword: Token) -> ImportStatement:
        path = self._expect(TokenType.STRING_LITERAL, "module path string")
        return ImportStatement(span=self._since(keyword), path=path.value)

    def _parse_block(self, expected: str = "'{'") -> Block:
        opening = self._expect(TokenType.LBRACE, expected)
        body = []
        while not self._match(TokenType.RBRACE):
            if self._at_end:
                self._error("'}'")
            body.append(self._parse_statement())
        return Block(span=self._since(opening), statements=tuple(body))

    # -- entry point ---------------------------------------------------

    def parse_program(self) -> Program:
        """Parse statements until EOF."""
        first = self.current
        statements = []
        try:
            while not self._at_end:
                statements.append(self._parse_statement())
        except RecursionError:
            deepest = self.current
            raise error_nesting_too_deep(
                deepest.span, self._source_line(deepest.line)
            ) from None
        return Program(span=SourceSpan(first.span.start, self.current.span.end),
                       statements=tuple(statements))


def parse(tokens: List[Token], filename: Optional[str] = None,
          source: Optional[str] = None) -> Program:
    """
    Parse a token list into a Program.

    Args:
        tokens: output of tokenize(), ending in EOF
        filename: name of the program, for diagnostics
        source: program text; when given, errors quote the offending line

    Raises:
        ParseError: at the first token that does not fit
    """
    return Parser(tokens, filename, source).parse_program()


def parse_source(source: str, filename: Optional[str] = None) -> Program:
    """Lex and parse source text in one step."""
    return parse(tokenize(source, filename), filename, source)
