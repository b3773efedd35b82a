"""
Lexical scope stack for the Khukuri interpreter.

The bottom scope is the global scope and lives for the whole run; every
block body pushes a scope on entry and pops it on exit.
"""

from typing import Dict, List, Optional, Iterator

from .values import Value


class ScopeError(Exception):
    """Internal misuse of the scope stack (popping the global scope)."""
    pass


class Environment:
    """
    An ordered stack of scopes, innermost last.

    Usage:
        env = Environment()
        env.define("x", number_val(1))
        env.push_scope()
        env.assign("x", number_val(2))   # updates the global binding
        env.pop_scope()
    """

    def __init__(self):
        self._scopes: List[Dict[str, Value]] = [{}]

    @property
    def depth(self) -> int:
        """Number of scopes on the stack, global scope included."""
        return len(self._scopes)

    @property
    def globals(self) -> Dict[str, Value]:
        return self._scopes[0]

    def push_scope(self) -> None:
        self._scopes.append({})

    def pop_scope(self) -> None:
        if len(self._scopes) == 1:
            raise ScopeError("cannot pop the global scope")
        self._scopes.pop()

    def define(self, name: str, value: Value) -> None:
        """Bind a name in the innermost scope, shadowing outer bindings."""
        self._scopes[-1][name] = value

    def lookup(self, name: str) -> Optional[Value]:
        """Find the innermost binding of a name, or None."""
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return None

    def assign(self, name: str, value: Value) -> bool:
        """
        Update the innermost existing binding of a name.

        Returns True if found and updated, False if no scope defines it.
        """
        for scope in reversed(self._scopes):
            if name in scope:
                scope[name] = value
                return True
        return False

    def contains(self, name: str) -> bool:
        return self.lookup(name) is not None

    def detach_locals(self) -> List[Dict[str, Value]]:
        """Remove every scope above the global one and return them."""
        saved = self._scopes[1:]
        del self._scopes[1:]
        return saved

    def restore_locals(self, saved: List[Dict[str, Value]]) -> None:
        """Put back scopes removed by :meth:`detach_locals`."""
        del self._scopes[1:]
        self._scopes.extend(saved)

    def __iter__(self) -> Iterator[str]:
        """Iterate over visible names, innermost first, without duplicates."""
        seen = set()
        for scope in reversed(self._scopes):
            for name in scope:
                if name not in seen:
                    seen.add(name)
                    yield name
