"""
Tree-walking interpreter for Khukuri.

Every statement runner returns an :class:`Outcome`. A normal outcome carries
the statement's value; RETURN, BREAK and CONTINUE outcomes make the
enclosing statement list stop and hand the outcome to its caller until a
loop (BREAK, CONTINUE) or a function call (RETURN) consumes it.
"""

import math
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Sequence, TextIO

from .values import (
    Value, ValueKind, Function, NULL,
    number_val, string_val, bool_val, list_val, mapping_val, function_val,
    format_number, to_python,
)
from .context import ExecutionContext, create_context
from .modules import resolve_module, read_module, display_path

from ..ast import (
    Program, Block, Statement, VarDecl, Assignment, IndexAssignment,
    IfStatement, WhileStatement, ForEachStatement, FunctionDecl,
    ReturnStatement, BreakStatement, ContinueStatement, PrintStatement,
    ImportStatement, ExpressionStatement,
    Expression, NumberLiteral, StringLiteral, BooleanLiteral, Identifier,
    BinaryOp, UnaryOp, FunctionCall, IndexAccess, ListLiteral, MappingLiteral,
)
from ..config import RunConfig
from ..errors import (
    KhukuriError,
    error_undefined_variable,
    error_undefined_function,
    error_argument_count,
    error_invalid_operation,
    error_division_by_zero,
    error_index_out_of_range,
    error_key_not_found,
    error_not_iterable,
    error_circular_import,
    error_module_read,
    error_control_flow_outside,
    error_call_depth,
)
from ..parser import parse_source
from ..tokens import SourceSpan, TokenType

# Python frames used per nested Khukuri call, with room for deep expressions
_FRAMES_PER_CALL = 40

_OPERATOR_SYMBOLS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.AND: "ra",
    TokenType.OR: "wa",
    TokenType.NOT: "hoina",
}


class Signal(Enum):
    """How a statement finished."""
    NORMAL = "normal"
    RETURN = "return"
    BREAK = "break"
    CONTINUE = "continue"


@dataclass(frozen=True)
class Outcome:
    """Result of running a statement or statement list."""
    signal: Signal
    value: Value = NULL
    span: Optional[SourceSpan] = None  # statement that raised the signal

    @property
    def is_normal(self) -> bool:
        return self.signal == Signal.NORMAL


NORMAL = Outcome(Signal.NORMAL)


@dataclass
class ExecutionResult:
    """Result of running a program without raising."""
    success: bool
    value: Value = NULL
    error: Optional[KhukuriError] = None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return self.error.diagnostic.one_line()

    @property
    def python_value(self) -> Any:
        """The final value converted to plain Python data."""
        return to_python(self.value)


def _ensure_stack_headroom(max_call_depth: int) -> None:
    needed = max_call_depth * _FRAMES_PER_CALL + 1000
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)


class Interpreter:
    """
    Tree-walking interpreter for Khukuri programs.

    Evaluates AST nodes by dispatching to type-specific methods. The
    interpreter holds no run state; everything lives in the
    ExecutionContext passed along.
    """

    # =========================================================================
    # Entry Points
    # =========================================================================

    def run(self, program: Program, ctx: ExecutionContext) -> Value:
        """
        Execute a parsed program.

        Returns:
            The value of the last executed statement, or Null

        Raises:
            RuntimeError: On the first evaluation error
        """
        _ensure_stack_headroom(ctx.config.max_call_depth)
        outcome = self._execute_statements(program.statements, ctx)
        if not outcome.is_normal:
            raise self._escaped(outcome, ctx)
        return outcome.value

    def run_source(self, source: str, ctx: ExecutionContext,
                   filename: Optional[str] = None) -> Value:
        """Lex, parse and execute source text in the given context."""
        ctx.register_source(filename, source)
        program = parse_source(source, filename)
        return self.run(program, ctx)

    def run_file(self, path: Path | str, ctx: ExecutionContext) -> Value:
        """
        Execute a source file as the main module.

        The file is registered as an in-progress module, so a module that
        imports it back is reported as a circular import.

        Raises:
            OSError: If the file cannot be read
            KhukuriError: On any lex, parse or runtime error
        """
        _ensure_stack_headroom(ctx.config.max_call_depth)
        canonical = Path(path).resolve()
        source = read_module(canonical, ctx.config.encoding)
        filename = display_path(canonical)
        ctx.register_source(filename, source)
        program = parse_source(source, filename)
        with ctx.modules.importing(canonical), ctx.in_directory(canonical.parent):
            outcome = self._execute_statements(program.statements, ctx)
            if not outcome.is_normal:
                raise self._escaped(outcome, ctx)
        return outcome.value

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statements(self, statements: Sequence[Statement],
                            ctx: ExecutionContext) -> Outcome:
        """Run statements in order, stopping at the first non-normal outcome."""
        last = NULL
        for stmt in statements:
            outcome = self._execute_statement(stmt, ctx)
            if not outcome.is_normal:
                return outcome
            last = outcome.value
        return Outcome(Signal.NORMAL, last)

    def _execute_block(self, block: Block, ctx: ExecutionContext,
                       name: str = "block") -> Outcome:
        """Run a block body in its own scope."""
        with ctx.new_scope(name):
            return self._execute_statements(block.statements, ctx)

    def _execute_statement(self, stmt: Statement, ctx: ExecutionContext) -> Outcome:
        """Execute a statement."""
        if isinstance(stmt, ExpressionStatement):
            return Outcome(Signal.NORMAL, self._evaluate(stmt.expression, ctx))
        elif isinstance(stmt, VarDecl):
            return self._execute_var_decl(stmt, ctx)
        elif isinstance(stmt, Assignment):
            return self._execute_assignment(stmt, ctx)
        elif isinstance(stmt, IndexAssignment):
            return self._execute_index_assignment(stmt, ctx)
        elif isinstance(stmt, PrintStatement):
            value = self._evaluate(stmt.value, ctx)
            ctx.write_line(value.display())
            return NORMAL
        elif isinstance(stmt, IfStatement):
            return self._execute_if_statement(stmt, ctx)
        elif isinstance(stmt, WhileStatement):
            return self._execute_while(stmt, ctx)
        elif isinstance(stmt, ForEachStatement):
            return self._execute_foreach(stmt, ctx)
        elif isinstance(stmt, FunctionDecl):
            ctx.define_function(Function(stmt.name, stmt.params, stmt.body))
            return NORMAL
        elif isinstance(stmt, ReturnStatement):
            value = self._evaluate(stmt.value, ctx) if stmt.value is not None else NULL
            return Outcome(Signal.RETURN, value, stmt.span)
        elif isinstance(stmt, BreakStatement):
            return Outcome(Signal.BREAK, NULL, stmt.span)
        elif isinstance(stmt, ContinueStatement):
            return Outcome(Signal.CONTINUE, NULL, stmt.span)
        elif isinstance(stmt, ImportStatement):
            return self._execute_import(stmt, ctx)
        else:
            raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_var_decl(self, stmt: VarDecl, ctx: ExecutionContext) -> Outcome:
        """Execute a declaration; the type hint is not checked."""
        value = self._evaluate(stmt.initializer, ctx)
        ctx.set_variable(stmt.name, value)
        return NORMAL

    def _execute_assignment(self, stmt: Assignment, ctx: ExecutionContext) -> Outcome:
        """Rebind the innermost existing variable of that name."""
        value = self._evaluate(stmt.value, ctx)
        if not ctx.update_variable(stmt.name, value):
            raise error_undefined_variable(stmt.name, stmt.span, ctx.source_line(stmt.span))
        return NORMAL

    def _execute_index_assignment(self, stmt: IndexAssignment, ctx: ExecutionContext) -> Outcome:
        """Store into a shared list slot or mapping entry."""
        container = self._evaluate(stmt.container, ctx)
        key = self._evaluate(stmt.key, ctx)
        value = self._evaluate(stmt.value, ctx)

        if container.kind == ValueKind.LIST:
            index = self._list_index(key, len(container.data), stmt.span, ctx)
            container.data[index] = value
        elif container.kind == ValueKind.MAPPING:
            if key.kind != ValueKind.STRING:
                raise error_invalid_operation(
                    "[]=", [container.kind_name, key.kind_name], stmt.span,
                    ctx.source_line(stmt.span)
                )
            container.data[key.data] = value
        else:
            raise error_invalid_operation(
                "[]=", [container.kind_name, key.kind_name], stmt.span,
                ctx.source_line(stmt.span)
            )
        return NORMAL

    def _execute_if_statement(self, stmt: IfStatement, ctx: ExecutionContext) -> Outcome:
        """Execute an if statement; elif links are nested ifs in the else-block."""
        condition = self._evaluate(stmt.condition, ctx)
        if condition.is_truthy():
            return self._execute_block(stmt.then_branch, ctx, "yedi")
        if stmt.else_branch is not None:
            return self._execute_block(stmt.else_branch, ctx, "natra")
        return NORMAL

    def _execute_while(self, stmt: WhileStatement, ctx: ExecutionContext) -> Outcome:
        """Execute a while loop."""
        while self._evaluate(stmt.condition, ctx).is_truthy():
            outcome = self._execute_block(stmt.body, ctx, "jaba-samma")
            if outcome.signal == Signal.BREAK:
                break
            if outcome.signal == Signal.RETURN:
                return outcome
        return NORMAL

    def _execute_foreach(self, stmt: ForEachStatement, ctx: ExecutionContext) -> Outcome:
        """Execute a for-each loop over a list, mapping or string."""
        source = self._evaluate(stmt.iterable, ctx)

        # Iterate over a snapshot; the body may mutate the container
        if source.kind == ValueKind.LIST:
            items = list(source.data)
        elif source.kind == ValueKind.MAPPING:
            items = [string_val(key) for key in source.data]
        elif source.kind == ValueKind.STRING:
            items = [string_val(ch) for ch in source.data]
        else:
            raise error_not_iterable(source.kind_name, stmt.iterable.span,
                                     ctx.source_line(stmt.iterable.span))

        for item in items:
            with ctx.new_scope("pratyek"):
                ctx.set_variable(stmt.variable, item)
                outcome = self._execute_statements(stmt.body.statements, ctx)
            if outcome.signal == Signal.BREAK:
                break
            if outcome.signal == Signal.RETURN:
                return outcome
        return NORMAL

    def _execute_import(self, stmt: ImportStatement, ctx: ExecutionContext) -> Outcome:
        """Import a module into the shared global scope, at most once per run."""
        path = resolve_module(stmt.path, ctx.current_dir, ctx.config.search_paths)
        if path is None:
            raise error_module_read(stmt.path, "no such file", stmt.span,
                                    ctx.source_line(stmt.span))
        if ctx.modules.is_completed(path):
            return NORMAL
        if ctx.modules.is_in_progress(path):
            chain = [display_path(p) for p in ctx.modules.cycle_through(path)]
            raise error_circular_import(chain, stmt.span, ctx.source_line(stmt.span))

        try:
            source = read_module(path, ctx.config.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise error_module_read(stmt.path, str(exc), stmt.span,
                                    ctx.source_line(stmt.span)) from exc

        filename = display_path(path)
        ctx.register_source(filename, source)
        program = parse_source(source, filename)

        with ctx.modules.importing(path), ctx.in_directory(path.parent), ctx.at_global_scope():
            outcome = self._execute_statements(program.statements, ctx)
            if not outcome.is_normal:
                raise self._escaped(outcome, ctx)
        return NORMAL

    def _escaped(self, outcome: Outcome, ctx: ExecutionContext,
                 where: Optional[str] = None) -> KhukuriError:
        """Error for a control signal that no function or loop consumed."""
        if outcome.signal == Signal.RETURN:
            keyword, target = "pathau", "a function"
        elif outcome.signal == Signal.BREAK:
            keyword, target = "rok", "a loop"
        else:
            keyword, target = "jane", "a loop"
        return error_control_flow_outside(
            keyword, where or target, outcome.span, ctx.source_line(outcome.span)
        )

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, ctx: ExecutionContext) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, NumberLiteral):
            return number_val(expr.value)
        elif isinstance(expr, StringLiteral):
            return string_val(expr.value)
        elif isinstance(expr, BooleanLiteral):
            return bool_val(expr.value)
        elif isinstance(expr, Identifier):
            return self._eval_identifier(expr, ctx)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr, ctx)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr, ctx)
        elif isinstance(expr, FunctionCall):
            return self._eval_function_call(expr, ctx)
        elif isinstance(expr, IndexAccess):
            return self._eval_index_access(expr, ctx)
        elif isinstance(expr, ListLiteral):
            return list_val([self._evaluate(e, ctx) for e in expr.elements])
        elif isinstance(expr, MappingLiteral):
            return self._eval_mapping_literal(expr, ctx)
        else:
            raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_identifier(self, ident: Identifier, ctx: ExecutionContext) -> Value:
        """Variable lookup, falling back to a declared function of that name."""
        value = ctx.get_variable(ident.name)
        if value is not None:
            return value
        fn = ctx.get_function(ident.name)
        if fn is not None:
            return function_val(fn)
        raise error_undefined_variable(ident.name, ident.span, ctx.source_line(ident.span))

    def _eval_mapping_literal(self, lit: MappingLiteral, ctx: ExecutionContext) -> Value:
        entries = {}
        for key_expr, value_expr in lit.pairs:
            key = self._evaluate(key_expr, ctx)
            entries[key.data] = self._evaluate(value_expr, ctx)
        return mapping_val(entries)

    def _eval_binary_op(self, op: BinaryOp, ctx: ExecutionContext) -> Value:
        """Evaluate a binary operation."""
        # Short-circuit for logical operators
        if op.operator == TokenType.AND:
            if not self._evaluate(op.left, ctx).is_truthy():
                return bool_val(False)
            return bool_val(self._evaluate(op.right, ctx).is_truthy())
        elif op.operator == TokenType.OR:
            if self._evaluate(op.left, ctx).is_truthy():
                return bool_val(True)
            return bool_val(self._evaluate(op.right, ctx).is_truthy())

        left = self._evaluate(op.left, ctx)
        right = self._evaluate(op.right, ctx)
        operator = op.operator

        if left.kind == ValueKind.NUMBER and right.kind == ValueKind.NUMBER:
            return self._numeric_op(operator, left.data, right.data, op.span, ctx)

        if left.kind == ValueKind.STRING and right.kind == ValueKind.STRING:
            if operator == TokenType.PLUS:
                return string_val(left.data + right.data)
            if operator == TokenType.EQ:
                return bool_val(left.data == right.data)
            if operator == TokenType.NE:
                return bool_val(left.data != right.data)

        if operator == TokenType.PLUS:
            # text joined with a number uses the number's display form
            if left.kind == ValueKind.STRING and right.kind == ValueKind.NUMBER:
                return string_val(left.data + format_number(right.data))
            if left.kind == ValueKind.NUMBER and right.kind == ValueKind.STRING:
                return string_val(format_number(left.data) + right.data)

        if left.kind == ValueKind.BOOLEAN and right.kind == ValueKind.BOOLEAN:
            if operator == TokenType.EQ:
                return bool_val(left.data == right.data)
            if operator == TokenType.NE:
                return bool_val(left.data != right.data)

        raise error_invalid_operation(
            _OPERATOR_SYMBOLS[operator], [left.kind_name, right.kind_name],
            op.span, ctx.source_line(op.span)
        )

    def _numeric_op(self, operator: TokenType, a: float, b: float,
                    span: SourceSpan, ctx: ExecutionContext) -> Value:
        if operator == TokenType.PLUS:
            return number_val(a + b)
        elif operator == TokenType.MINUS:
            return number_val(a - b)
        elif operator == TokenType.STAR:
            return number_val(a * b)
        elif operator in (TokenType.SLASH, TokenType.PERCENT):
            if b == 0:
                raise error_division_by_zero(_OPERATOR_SYMBOLS[operator], span,
                                             ctx.source_line(span))
            if operator == TokenType.SLASH:
                return number_val(a / b)
            # Remainder takes the sign of the dividend
            return number_val(math.fmod(a, b))
        elif operator == TokenType.EQ:
            return bool_val(a == b)
        elif operator == TokenType.NE:
            return bool_val(a != b)
        elif operator == TokenType.LT:
            return bool_val(a < b)
        elif operator == TokenType.GT:
            return bool_val(a > b)
        elif operator == TokenType.LE:
            return bool_val(a <= b)
        elif operator == TokenType.GE:
            return bool_val(a >= b)
        raise TypeError(f"Unknown binary operator: {operator}")

    def _eval_unary_op(self, op: UnaryOp, ctx: ExecutionContext) -> Value:
        """Evaluate a unary operation."""
        operand = self._evaluate(op.operand, ctx)

        if op.operator == TokenType.NOT:
            return bool_val(not operand.is_truthy())
        if op.operator == TokenType.MINUS and operand.kind == ValueKind.NUMBER:
            return number_val(-operand.data)
        raise error_invalid_operation(
            _OPERATOR_SYMBOLS[op.operator], [operand.kind_name], op.span,
            ctx.source_line(op.span)
        )

    def _list_index(self, key: Value, length: int, span: SourceSpan,
                    ctx: ExecutionContext) -> int:
        """Validate a list or string index and return it as an int."""
        if key.kind != ValueKind.NUMBER:
            raise error_invalid_operation("[]", ["list", key.kind_name], span,
                                          ctx.source_line(span))
        x = key.data
        if not x.is_integer() or x < 0 or x >= length:
            raise error_index_out_of_range(format_number(x), length, span,
                                           ctx.source_line(span))
        return int(x)

    def _eval_index_access(self, access: IndexAccess, ctx: ExecutionContext) -> Value:
        """Evaluate xs[i], m["k"] or s[i]."""
        container = self._evaluate(access.container, ctx)
        key = self._evaluate(access.key, ctx)

        if container.kind == ValueKind.LIST:
            return container.data[self._list_index(key, len(container.data), access.span, ctx)]

        if container.kind == ValueKind.STRING:
            index = self._list_index(key, len(container.data), access.span, ctx)
            return string_val(container.data[index])

        if container.kind == ValueKind.MAPPING and key.kind == ValueKind.STRING:
            if key.data not in container.data:
                raise error_key_not_found(key.data, access.span,
                                          ctx.source_line(access.span))
            return container.data[key.data]

        raise error_invalid_operation("[]", [container.kind_name, key.kind_name],
                                      access.span, ctx.source_line(access.span))

    # =========================================================================
    # Functions
    # =========================================================================

    def _resolve_callee(self, call: FunctionCall, ctx: ExecutionContext) -> Function:
        """Find the function a call refers to."""
        callee = call.callee
        if isinstance(callee, Identifier):
            fn = ctx.get_function(callee.name)
            if fn is not None:
                return fn
            value = ctx.get_variable(callee.name)
            if value is not None and value.kind == ValueKind.FUNCTION:
                return value.data
            raise error_undefined_function(callee.name, callee.span,
                                           ctx.source_line(callee.span))

        value = self._evaluate(callee, ctx)
        if value.kind != ValueKind.FUNCTION:
            raise error_invalid_operation("()", [value.kind_name], call.span,
                                          ctx.source_line(call.span))
        return value.data

    def _eval_function_call(self, call: FunctionCall, ctx: ExecutionContext) -> Value:
        """Evaluate a function call."""
        fn = self._resolve_callee(call, ctx)

        # Arity is checked before any argument is evaluated
        if len(call.arguments) != fn.arity:
            raise error_argument_count(fn.name, fn.arity, len(call.arguments),
                                       call.span, ctx.source_line(call.span))

        args = [self._evaluate(arg, ctx) for arg in call.arguments]
        return self.call_function(fn, args, ctx, call.span)

    def call_function(self, fn: Function, args: List[Value], ctx: ExecutionContext,
                      span: Optional[SourceSpan] = None) -> Value:
        """
        Invoke a function with already-evaluated arguments.

        The body sees the global scope plus a fresh scope holding its
        parameters; the caller's local scopes are hidden for the duration.
        """
        if len(args) != fn.arity:
            raise error_argument_count(fn.name, fn.arity, len(args),
                                       span or fn.body.span)
        if ctx.call_depth >= ctx.config.max_call_depth:
            where = span or fn.body.span
            raise error_call_depth(ctx.config.max_call_depth, where, ctx.source_line(where))

        ctx.call_depth += 1
        try:
            with ctx.at_global_scope(), ctx.new_scope(f"kaam {fn.name}"):
                for param, arg in zip(fn.params, args):
                    ctx.set_variable(param, arg)
                outcome = self._execute_statements(fn.body.statements, ctx)
        finally:
            ctx.call_depth -= 1

        if outcome.signal == Signal.RETURN:
            return outcome.value
        if outcome.signal in (Signal.BREAK, Signal.CONTINUE):
            raise self._escaped(outcome, ctx, "a loop")
        return NULL


def run_source(
    source: str,
    ctx: Optional[ExecutionContext] = None,
    filename: Optional[str] = None,
) -> Value:
    """
    Run source text and return its final value.

    This is a convenience wrapper around Interpreter.run_source(); errors
    propagate as KhukuriError subclasses.
    """
    if ctx is None:
        ctx = create_context()
    return Interpreter().run_source(source, ctx, filename)


def compile_and_run(
    source: str,
    filename: Optional[str] = None,
    config: Optional[RunConfig] = None,
    output: Optional[TextIO] = None,
    ctx: Optional[ExecutionContext] = None,
) -> ExecutionResult:
    """
    High-level API to lex, parse and run Khukuri source in one call.

        from khukuri import compile_and_run

        result = compile_and_run('''
            kaam dobber(n) { pathau n * 2 }
            dobber(21)
        ''')

        if result.success:
            print(result.value.display())     # 42
        else:
            print(result.error_message)

    Args:
        source: Khukuri source code as a string
        filename: Optional filename for error messages
        config: Run configuration (defaults when omitted)
        output: Stream for `bhan` output (sys.stdout when omitted)
        ctx: Existing context to run in; config and output are then ignored

    Returns:
        ExecutionResult with the final value or the error
    """
    if ctx is None:
        ctx = create_context(config=config, output=output)
    try:
        value = Interpreter().run_source(source, ctx, filename)
    except KhukuriError as e:
        ctx.record_error(e)
        return ExecutionResult(success=False, error=e)
    return ExecutionResult(success=True, value=value)
