"""
Khukuri exceptions and diagnostics.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors

Every error carries a :class:`Diagnostic`; nothing is recovered internally,
so each stage surfaces the first error it meets.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Sequence
from .tokens import SourceLocation, SourceSpan


class ErrorSeverity(Enum):
    """How serious a diagnostic is. Khukuri only reports errors."""
    ERROR = "error"


def _position(loc: SourceLocation) -> dict:
    return {"line": loc.line, "column": loc.column, "offset": loc.offset}


@dataclass
class Diagnostic:
    """What went wrong, where, and optionally how to fix it."""
    code: str                       # E001, E101, E401, ...
    message: str
    severity: ErrorSeverity
    span: SourceSpan
    category: str = ""              # LexError, ParseError, DivisionByZero, ...
    source_line: Optional[str] = None
    hints: List[str] = field(default_factory=list)

    @property
    def header(self) -> str:
        return f"{self.span.start}: {self.severity.value}[{self.code}]"

    def _underline(self) -> str:
        """Caret row under the offending columns of ``source_line``."""
        start, end = self.span.start, self.span.end
        stop = end.column if start.line == end.line else len(self.source_line) + 1
        return " " * (start.column - 1) + "^" * max(1, stop - start.column)

    def format(self, show_source: bool = True) -> str:
        """Multi-line report, quoting the source line when it is known."""
        lines = [f"{self.header}: {self.message}"]
        if show_source and self.source_line is not None:
            lines += [
                "  |",
                f"{self.span.start.line:>3} | {self.source_line}",
                f"    | {self._underline()}",
            ]
        lines += [f"    = hint: {h}" for h in self.hints]
        return "\n".join(lines)

    def one_line(self) -> str:
        """``file:line:col: error[CODE] Category: message``"""
        label = f" {self.category}" if self.category else ""
        return f"{self.header}{label}: {self.message}"

    def to_json(self) -> dict:
        return {
            "code": self.code,
            "category": self.category,
            "message": self.message,
            "severity": self.severity.value,
            "range": {"start": _position(self.span.start),
                      "end": _position(self.span.end)},
            "file": self.span.start.filename,
            "hints": list(self.hints),
        }


class KhukuriError(Exception):
    """Base exception for Khukuri errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def line(self) -> int:
        return self.diagnostic.span.start.line

    @property
    def column(self) -> int:
        return self.diagnostic.span.start.column

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexError(KhukuriError):
    """Malformed token (E0xx)."""


class ParseError(KhukuriError):
    """Tokens that do not fit the grammar (E1xx)."""


class RuntimeErrorKind(Enum):
    """The runtime error taxonomy."""
    UNDEFINED_VARIABLE = "UndefinedVariable"
    UNDEFINED_FUNCTION = "UndefinedFunction"
    ARGUMENT_COUNT_MISMATCH = "ArgumentCountMismatch"
    INVALID_OPERATION = "InvalidOperation"
    DIVISION_BY_ZERO = "DivisionByZero"
    INDEX_OUT_OF_RANGE = "IndexOutOfRange"
    KEY_NOT_FOUND = "KeyNotFound"
    NOT_ITERABLE = "NotIterable"
    CIRCULAR_IMPORT = "CircularImport"
    MODULE_READ_FAILURE = "ModuleReadFailure"
    CONTROL_FLOW_OUTSIDE_CONTEXT = "ControlFlowOutsideContext"
    CALL_DEPTH_EXCEEDED = "CallDepthExceeded"


class RuntimeError(KhukuriError):
    """Error during evaluation (E4xx)."""

    def __init__(self, diagnostic: Diagnostic, kind: RuntimeErrorKind):
        super().__init__(diagnostic)
        self.kind = kind


def _diagnostic(code: str, category: str, message: str, span: SourceSpan,
                source_line: Optional[str], hints: Sequence[str] = ()) -> Diagnostic:
    return Diagnostic(code=code, message=message, severity=ErrorSeverity.ERROR,
                      span=span, category=category, source_line=source_line,
                      hints=list(hints))


# --- Lexer error codes ---

def _lex(code, message, span, source_line, hints=()) -> LexError:
    return LexError(_diagnostic(code, "LexError", message, span, source_line, hints))


def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E001: character that cannot start any token."""
    hints = []
    if char == "!":
        hints.append("use 'hoina' for logical not; '!' is only valid in '!='")
    return _lex("E001", f"unexpected character '{char}'", span, source_line, hints)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexError:
    """E002: string literal with no closing quote on its line."""
    return _lex("E002", "unterminated string literal", span, source_line,
                ['string literals must be closed with \'"\' on the same line'])


def error_unterminated_number(text: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E003: Number literal with a dangling decimal point."""
    return _lex("E003", f"unterminated number literal '{text}'", span, source_line,
                ["a decimal point must be followed by at least one digit"])


def error_incomplete_keyword(word: str, partner: str, span: SourceSpan,
                             source_line: str = None) -> LexError:
    """E004: One half of a two-word keyword without the other."""
    return _lex("E004", f"'{word}' must be used together with '{partner}'", span, source_line,
                ["loops are written 'jaba samma', else-if is written 'kina bhane'"])


# --- Parser error codes ---

def _parse(code, message, span, source_line=None, hints=()) -> ParseError:
    return ParseError(_diagnostic(code, "ParseError", message, span, source_line, hints))


def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParseError:
    """E101: token that does not fit where it appears."""
    return _parse("E101", f"expected {expected}, found {found}", span, source_line)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParseError:
    """E102: program ended in the middle of a construct."""
    return _parse("E102", f"unexpected end of input, expected {expected}", span)


def error_invalid_assignment_target(span: SourceSpan, source_line: str = None) -> ParseError:
    """E103: Left-hand side of '=' is not assignable."""
    return _parse("E103", "invalid assignment target", span, source_line,
                  ["only a name or an indexed element like 'xs[0]' can be assigned"])


def error_nesting_too_deep(span: SourceSpan, source_line: str = None) -> ParseError:
    """E104: brackets or operators nested past the parser's stack."""
    return _parse("E104", "expression nested too deeply", span, source_line,
                  ["split the expression using intermediate variables"])


# --- Runtime error codes ---

def _runtime(kind: RuntimeErrorKind, code: str, message: str, span: SourceSpan,
             source_line: str = None, hints: Sequence[str] = ()) -> RuntimeError:
    return RuntimeError(_diagnostic(code, kind.value, message, span, source_line, hints), kind)


def error_undefined_variable(name: str, span: SourceSpan, source_line: str = None) -> RuntimeError:
    """E401: Reference to a name with no binding."""
    return _runtime(RuntimeErrorKind.UNDEFINED_VARIABLE, "E401",
                    f"undefined variable '{name}'", span, source_line,
                    [f"declare it first with 'maanau {name} = ...'"])


def error_undefined_function(name: str, span: SourceSpan, source_line: str = None) -> RuntimeError:
    """E402: Call of something that is not a declared function."""
    return _runtime(RuntimeErrorKind.UNDEFINED_FUNCTION, "E402",
                    f"undefined function '{name}'", span, source_line)


def error_argument_count(name: str, expected: int, found: int, span: SourceSpan,
                         source_line: str = None) -> RuntimeError:
    """E403: Wrong number of arguments."""
    return _runtime(RuntimeErrorKind.ARGUMENT_COUNT_MISMATCH, "E403",
                    f"function '{name}' expects {expected} argument(s), got {found}",
                    span, source_line)


def error_invalid_operation(operator: str, operands: Sequence[str], span: SourceSpan,
                            source_line: str = None) -> RuntimeError:
    """E404: Operator not defined for the operand kinds."""
    kinds = " and ".join(operands)
    return _runtime(RuntimeErrorKind.INVALID_OPERATION, "E404",
                    f"invalid operation '{operator}' on {kinds}", span, source_line)


def error_division_by_zero(operator: str, span: SourceSpan, source_line: str = None) -> RuntimeError:
    """E405: Division or modulo by zero."""
    what = "modulo" if operator == "%" else "division"
    return _runtime(RuntimeErrorKind.DIVISION_BY_ZERO, "E405",
                    f"{what} by zero", span, source_line)


def error_index_out_of_range(index: str, length: int, span: SourceSpan,
                             source_line: str = None) -> RuntimeError:
    """E406: List or string index outside 0..length-1."""
    return _runtime(RuntimeErrorKind.INDEX_OUT_OF_RANGE, "E406",
                    f"index {index} out of range for length {length}", span, source_line)


def error_key_not_found(key: str, span: SourceSpan, source_line: str = None) -> RuntimeError:
    """E407: Mapping lookup of an absent key."""
    return _runtime(RuntimeErrorKind.KEY_NOT_FOUND, "E407",
                    f'key "{key}" not found', span, source_line)


def error_not_iterable(kind: str, span: SourceSpan, source_line: str = None) -> RuntimeError:
    """E408: for-each over a value that is not a collection."""
    return _runtime(RuntimeErrorKind.NOT_ITERABLE, "E408",
                    f"cannot iterate over {kind}", span, source_line,
                    ["'pratyek' works on lists, mappings and strings"])


def error_circular_import(chain: Sequence[str], span: SourceSpan,
                          source_line: str = None) -> RuntimeError:
    """E409: Import of a module that is still being imported."""
    return _runtime(RuntimeErrorKind.CIRCULAR_IMPORT, "E409",
                    "circular import: " + " -> ".join(chain), span, source_line)


def error_module_read(path: str, reason: str, span: SourceSpan,
                      source_line: str = None) -> RuntimeError:
    """E410: Import target could not be read."""
    return _runtime(RuntimeErrorKind.MODULE_READ_FAILURE, "E410",
                    f"cannot read module '{path}': {reason}", span, source_line)


def error_control_flow_outside(keyword: str, where: str, span: SourceSpan,
                               source_line: str = None) -> RuntimeError:
    """E411: pathau/rok/jane with no enclosing function or loop."""
    return _runtime(RuntimeErrorKind.CONTROL_FLOW_OUTSIDE_CONTEXT, "E411",
                    f"'{keyword}' used outside of {where}", span, source_line)


def error_call_depth(limit: int, span: SourceSpan, source_line: str = None) -> RuntimeError:
    """E412: Too many nested function calls."""
    return _runtime(RuntimeErrorKind.CALL_DEPTH_EXCEEDED, "E412",
                    f"maximum call depth of {limit} exceeded", span, source_line,
                    ["raise 'max_call_depth' in khukuri.yaml for deeper recursion"])


class DiagnosticCollector:
    """Diagnostics gathered over several runs (``check``, the REPL)."""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def add_error(self, error: KhukuriError) -> None:
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity is ErrorSeverity.ERROR)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def format_all(self, show_source: bool = True) -> str:
        """Every diagnostic in full, then the error total."""
        blocks = [d.format(show_source) for d in self.diagnostics]
        if self.has_errors:
            blocks.append(f"\n{self.error_count} error(s)")
        return "\n\n".join(blocks)

    def to_json(self) -> dict:
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self.error_count,
        }
