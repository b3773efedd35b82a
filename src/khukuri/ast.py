"""
Abstract Syntax Tree (AST) node definitions for Khukuri.

The AST is built once per parse and never mutated afterwards: every node is
a frozen dataclass and child sequences are tuples. An ``elif`` chain is an
``IfStatement`` nested as the only statement of the else-block.
"""

import sys
from dataclasses import dataclass, fields
from typing import Optional, Tuple, Any, TextIO
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass(frozen=True)
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass(frozen=True)
class NumberLiteral(Expression):
    value: float


@dataclass(frozen=True)
class StringLiteral(Expression):
    value: str


@dataclass(frozen=True)
class BooleanLiteral(Expression):
    value: bool


@dataclass(frozen=True)
class Identifier(Expression):
    """A variable or function name reference."""
    name: str


@dataclass(frozen=True)
class BinaryOp(Expression):
    """A binary operation (e.g., a + b, x ra y)."""
    left: Expression
    operator: TokenType  # Includes AND, OR for logical operators
    right: Expression


@dataclass(frozen=True)
class UnaryOp(Expression):
    """A unary operation (hoina x, -n)."""
    operator: TokenType
    operand: Expression


@dataclass(frozen=True)
class FunctionCall(Expression):
    """A call such as fibonacci(n - 1)."""
    callee: Expression
    arguments: Tuple[Expression, ...]


@dataclass(frozen=True)
class IndexAccess(Expression):
    """An index access (e.g., students[0]["naam"])."""
    container: Expression
    key: Expression


@dataclass(frozen=True)
class ListLiteral(Expression):
    elements: Tuple[Expression, ...]


@dataclass(frozen=True)
class MappingLiteral(Expression):
    """A mapping literal (e.g., {"naam": "Hari", "umar": 20}).

    Pairs keep their source order; that order is the insertion order of the
    resulting mapping.
    """
    pairs: Tuple[Tuple[Expression, Expression], ...]


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass(frozen=True)
class Block(AstNode):
    """A brace-delimited statement list."""
    statements: Tuple[Statement, ...]


@dataclass(frozen=True)
class VarDecl(Statement):
    """A variable declaration.

    Syntax:
        maanau x = 42
        maanau x: number = 42   # hint is recorded, never checked
    """
    name: str
    type_hint: Optional[str]
    initializer: Expression


@dataclass(frozen=True)
class Assignment(Statement):
    """Rebinding of an existing variable (e.g., x = 5)."""
    name: str
    value: Expression


@dataclass(frozen=True)
class IndexAssignment(Statement):
    """Store into a list slot or mapping entry (e.g., xs[0] = 9)."""
    container: Expression
    key: Expression
    value: Expression


@dataclass(frozen=True)
class IfStatement(Statement):
    """A conditional.

    Syntax:
        yedi cond bhane { ... }
        kina bhane cond bhane { ... }   # same as: natra yedi cond bhane
        natra { ... }
    """
    condition: Expression
    then_branch: Block
    else_branch: Optional[Block] = None


@dataclass(frozen=True)
class WhileStatement(Statement):
    """A while loop (jaba samma cond { ... })."""
    condition: Expression
    body: Block


@dataclass(frozen=True)
class ForEachStatement(Statement):
    """A for-each loop (pratyek x ma xs { ... })."""
    variable: str
    iterable: Expression
    body: Block


@dataclass(frozen=True)
class FunctionDecl(Statement):
    """A function declaration (kaam name(a, b) { ... })."""
    name: str
    params: Tuple[str, ...]
    body: Block


@dataclass(frozen=True)
class ReturnStatement(Statement):
    value: Optional[Expression] = None


@dataclass(frozen=True)
class BreakStatement(Statement):
    pass


@dataclass(frozen=True)
class ContinueStatement(Statement):
    pass


@dataclass(frozen=True)
class PrintStatement(Statement):
    value: Expression


@dataclass(frozen=True)
class ImportStatement(Statement):
    """A module import (aayaat "lib/math.nep")."""
    path: str


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    """An expression used as a statement."""
    expression: Expression


@dataclass(frozen=True)
class Program(AstNode):
    """A complete source file."""
    statements: Tuple[Statement, ...]


# =============================================================================
# Visitor Helpers
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that prints the AST structure."""

    def __init__(self, indent: int = 0, out: Optional[TextIO] = None):
        self.indent = indent
        self.out = out if out is not None else sys.stdout

    def _print(self, text: str) -> None:
        print("  " * self.indent + text, file=self.out)

    def _child(self) -> "PrintVisitor":
        return PrintVisitor(self.indent + 2, self.out)

    def _print_item(self, item: Any) -> None:
        if isinstance(item, AstNode):
            item.accept(self._child())
        elif isinstance(item, tuple):
            for part in item:
                self._print_item(part)
        else:
            self._print(f"    {item!r}")

    def generic_visit(self, node: AstNode) -> None:
        self._print(f"{node.__class__.__name__}")
        for f in fields(node):
            if f.name == "span":
                continue
            value = getattr(node, f.name)
            if isinstance(value, AstNode):
                self._print(f"  {f.name}:")
                value.accept(self._child())
            elif isinstance(value, tuple):
                self._print(f"  {f.name}: [")
                for item in value:
                    self._print_item(item)
                self._print("  ]")
            elif isinstance(value, TokenType):
                self._print(f"  {f.name}: {value.name}")
            else:
                self._print(f"  {f.name}: {value!r}")


def print_ast(node: AstNode, out: Optional[TextIO] = None) -> None:
    """Print an AST node for debugging."""
    node.accept(PrintVisitor(out=out))
