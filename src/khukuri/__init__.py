"""
Khukuri - a small scripting language with Nepali keywords.

This package provides:
- Lexer: Tokenizes Khukuri source code
- Parser: Builds the AST from tokens
- Interpreter: Walks the AST, with lexical scopes, shared lists and
  mappings, functions and file imports
- CLI and REPL: ``python -m khukuri``

Usage:
    from khukuri import compile_and_run

    result = compile_and_run('''
    maanau price = 500
    maanau discount = 50
    yedi price - discount < 400 bhane {
        bhan "Sasto cha, kinnu parchha!"
    } natra {
        bhan "Mehango cha bro"
    }
    ''')
    if not result.success:
        print(result.error_message)
"""

from .tokens import (
    Token,
    TokenType,
    TokenKind,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
    COMPOUND_KEYWORDS,
    is_keyword,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
    parse_source,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    NumberLiteral,
    StringLiteral,
    BooleanLiteral,
    Identifier,
    BinaryOp,
    UnaryOp,
    FunctionCall,
    IndexAccess,
    ListLiteral,
    MappingLiteral,
    # Statements
    Statement,
    Block,
    VarDecl,
    Assignment,
    IndexAssignment,
    IfStatement,
    WhileStatement,
    ForEachStatement,
    FunctionDecl,
    ReturnStatement,
    BreakStatement,
    ContinueStatement,
    PrintStatement,
    ImportStatement,
    ExpressionStatement,
    Program,
    # Helpers
    PrintVisitor,
    print_ast,
)

from .errors import (
    ErrorSeverity,
    Diagnostic,
    DiagnosticCollector,
    KhukuriError,
    LexError,
    ParseError,
    RuntimeError,
    RuntimeErrorKind,
)

from .config import (
    RunConfig,
    ConfigError,
    load_config,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    ExecutionContext,
    Environment,
    ModuleRegistry,
    Value,
    ValueKind,
    Function,
    NULL,
    number_val,
    string_val,
    bool_val,
    null_val,
    list_val,
    mapping_val,
    display,
    create_context,
    run_source,
    compile_and_run,
)

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'TokenKind',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',
    'COMPOUND_KEYWORDS',
    'is_keyword',

    # Lexer
    'Lexer',
    'tokenize',

    # Parser
    'Parser',
    'parse',
    'parse_source',

    # AST
    'AstNode',
    'AstVisitor',
    'Expression',
    'NumberLiteral',
    'StringLiteral',
    'BooleanLiteral',
    'Identifier',
    'BinaryOp',
    'UnaryOp',
    'FunctionCall',
    'IndexAccess',
    'ListLiteral',
    'MappingLiteral',
    'Statement',
    'Block',
    'VarDecl',
    'Assignment',
    'IndexAssignment',
    'IfStatement',
    'WhileStatement',
    'ForEachStatement',
    'FunctionDecl',
    'ReturnStatement',
    'BreakStatement',
    'ContinueStatement',
    'PrintStatement',
    'ImportStatement',
    'ExpressionStatement',
    'Program',
    'PrintVisitor',
    'print_ast',

    # Errors
    'ErrorSeverity',
    'Diagnostic',
    'DiagnosticCollector',
    'KhukuriError',
    'LexError',
    'ParseError',
    'RuntimeError',
    'RuntimeErrorKind',

    # Configuration
    'RunConfig',
    'ConfigError',
    'load_config',

    # Runtime
    'Interpreter',
    'ExecutionResult',
    'ExecutionContext',
    'Environment',
    'ModuleRegistry',
    'Value',
    'ValueKind',
    'Function',
    'NULL',
    'number_val',
    'string_val',
    'bool_val',
    'null_val',
    'list_val',
    'mapping_val',
    'display',
    'create_context',
    'run_source',
    'compile_and_run',
]
