"""
Runtime values for the Khukuri interpreter.

A :class:`Value` pairs a Python object with its :class:`ValueKind` tag:

- NUMBER   -> float
- STRING   -> str
- BOOLEAN  -> bool
- NULL     -> None
- LIST     -> list of Value
- MAPPING  -> dict of str to Value (insertion ordered)
- FUNCTION -> Function

List and mapping payloads are shared, never copied: binding a list to a
second name or passing it to a function gives both sides the same storage,
so mutation through one alias is visible through all of them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple

from ..ast import Block
from ..tokens import TRUE_LITERAL, FALSE_LITERAL


class ValueKind(Enum):
    """Runtime value kinds; the enum value is the user-facing name."""
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "null"
    LIST = "list"
    MAPPING = "mapping"
    FUNCTION = "function"


@dataclass(frozen=True)
class Function:
    """A user-defined function: parameter names and body, no captured scope."""
    name: str
    params: Tuple[str, ...]
    body: Block

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class Value:
    """
    A runtime value.

    The `data` field holds the Python object, the `kind` field its tag.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.kind.name})"

    def is_truthy(self) -> bool:
        """Check if this value is truthy in boolean context."""
        if self.kind == ValueKind.BOOLEAN:
            return self.data
        if self.kind == ValueKind.NULL:
            return False
        if self.kind == ValueKind.NUMBER:
            return self.data != 0
        if self.kind == ValueKind.STRING:
            return len(self.data) > 0
        # Lists, mappings and functions are always truthy, even when empty
        return True

    @property
    def kind_name(self) -> str:
        return self.kind.value

    def display(self) -> str:
        """The form `bhan` prints."""
        return display(self)


def format_number(x: float) -> str:
    """Integral numbers print without a decimal point."""
    if x.is_integer():
        return str(int(x))
    return repr(x)


def display(value: Value) -> str:
    """Render a value the way `bhan` and the REPL print it."""
    kind = value.kind
    if kind == ValueKind.NUMBER:
        return format_number(value.data)
    if kind == ValueKind.STRING:
        return value.data
    if kind == ValueKind.BOOLEAN:
        return TRUE_LITERAL if value.data else FALSE_LITERAL
    if kind == ValueKind.NULL:
        return "null"
    if kind == ValueKind.LIST:
        return "[" + ", ".join(display(item) for item in value.data) + "]"
    if kind == ValueKind.MAPPING:
        entries = (f'"{key}": {display(item)}' for key, item in value.data.items())
        return "{" + ", ".join(entries) + "}"
    if kind == ValueKind.FUNCTION:
        return f"<kaam {value.data.name}>"
    raise ValueError(f"unknown value kind {kind!r}")


# Convenience constructors

def number_val(x: float) -> Value:
    """Create a number value."""
    return Value(float(x), ValueKind.NUMBER)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueKind.STRING)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(bool(b), ValueKind.BOOLEAN)


NULL = Value(None, ValueKind.NULL)


def null_val() -> Value:
    return NULL


def list_val(items: List[Value]) -> Value:
    """Wrap a list of Values. The list itself is shared, not copied."""
    return Value(items, ValueKind.LIST)


def mapping_val(entries: Dict[str, Value]) -> Value:
    """Wrap a dict of Values. The dict itself is shared, not copied."""
    return Value(entries, ValueKind.MAPPING)


def function_val(fn: Function) -> Value:
    return Value(fn, ValueKind.FUNCTION)


def from_python(obj: Any) -> Value:
    """Convert plain Python data (numbers, strings, lists, dicts) to a Value."""
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return NULL
    if isinstance(obj, bool):
        return bool_val(obj)
    if isinstance(obj, (int, float)):
        return number_val(obj)
    if isinstance(obj, str):
        return string_val(obj)
    if isinstance(obj, (list, tuple)):
        return list_val([from_python(item) for item in obj])
    if isinstance(obj, dict):
        return mapping_val({str(k): from_python(v) for k, v in obj.items()})
    raise TypeError(f"cannot convert {type(obj).__name__} to a Khukuri value")


def to_python(value: Value) -> Any:
    """Convert a Value to plain Python data (functions stay Function objects)."""
    if value.kind == ValueKind.LIST:
        return [to_python(item) for item in value.data]
    if value.kind == ValueKind.MAPPING:
        return {key: to_python(item) for key, item in value.data.items()}
    return value.data
