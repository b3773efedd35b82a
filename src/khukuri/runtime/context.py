"""
Execution context for the Khukuri interpreter.

One context exists per program run (or per REPL session). It owns the
scope stack, the flat function table, the module registry, the output
stream and the run configuration, so nothing about a run lives in module
globals.
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, TextIO, Any, Tuple
from contextlib import contextmanager

from .environment import Environment
from .modules import ModuleRegistry
from .values import Value, Function, from_python
from ..config import RunConfig
from ..errors import DiagnosticCollector, KhukuriError
from ..tokens import SourceSpan


@dataclass
class ExecutionContext:
    """
    The full execution context for interpreting Khukuri code.

    Tracks:
    - Variable scopes
    - Declared functions
    - Imported modules
    - Where `bhan` output goes
    - Source text of every file seen, for error messages
    """
    environment: Environment = field(default_factory=Environment)
    functions: Dict[str, Function] = field(default_factory=dict)
    modules: ModuleRegistry = field(default_factory=ModuleRegistry)
    config: RunConfig = field(default_factory=RunConfig)

    # None means "whatever sys.stdout is at write time"
    output: Optional[TextIO] = None

    # Directory of the file currently executing, for relative imports
    current_dir: Optional[Path] = None

    # Source tracking for error messages, keyed by span filename
    sources: Dict[Optional[str], List[str]] = field(default_factory=dict)

    diagnostics: DiagnosticCollector = field(default_factory=DiagnosticCollector)

    call_depth: int = 0

    def get_variable(self, name: str) -> Optional[Value]:
        """Look up a variable in the current scope chain."""
        return self.environment.lookup(name)

    def set_variable(self, name: str, value: Value) -> None:
        """Define a new variable in the current scope."""
        self.environment.define(name, value)

    def update_variable(self, name: str, value: Value) -> bool:
        """Update an existing variable (for assignment statements)."""
        return self.environment.assign(name, value)

    def get_function(self, name: str) -> Optional[Function]:
        return self.functions.get(name)

    def define_function(self, fn: Function) -> None:
        """Register a function; a later declaration replaces an earlier one."""
        self.functions[fn.name] = fn

    def write_line(self, text: str) -> None:
        out = self.output if self.output is not None else sys.stdout
        out.write(text + "\n")

    @contextmanager
    def new_scope(self, name: str = "block"):
        """
        Context manager to push a nested scope.

        Usage:
            with ctx.new_scope("while-body"):
                # variables defined here are local to this scope
                ctx.set_variable("i", number_val(0))
        """
        self.environment.push_scope()
        try:
            yield self.environment
        finally:
            self.environment.pop_scope()

    @contextmanager
    def at_global_scope(self):
        """Temporarily hide every local scope, so definitions land in globals."""
        saved = self.environment.detach_locals()
        try:
            yield self.environment
        finally:
            self.environment.restore_locals(saved)

    @contextmanager
    def in_directory(self, directory: Optional[Path]):
        """Run a block with a different base directory for relative imports."""
        saved = self.current_dir
        self.current_dir = directory
        try:
            yield directory
        finally:
            self.current_dir = saved

    def checkpoint(self) -> Tuple[Dict[str, Value], Dict[str, Function], Set[Path]]:
        """Copy of the global bindings, function table and completed imports."""
        return dict(self.environment.globals), dict(self.functions), self.modules.snapshot()

    def rollback(self, saved: Tuple[Dict[str, Value], Dict[str, Function], Set[Path]]) -> None:
        """
        Restore bindings taken with :meth:`checkpoint`.

        Only names are restored; a list or mapping mutated in place stays
        mutated.
        """
        variables, functions, completed = saved
        self.environment.globals.clear()
        self.environment.globals.update(variables)
        self.functions.clear()
        self.functions.update(functions)
        self.modules.restore(completed)

    def register_source(self, filename: Optional[str], source: str) -> None:
        self.sources[filename] = source.split('\n')

    def source_line(self, span: SourceSpan) -> Optional[str]:
        """Get the source line a span starts on, for error messages."""
        lines = self.sources.get(span.start.filename, [])
        line_num = span.start.line
        if 1 <= line_num <= len(lines):
            return lines[line_num - 1]
        return None

    def record_error(self, error: KhukuriError) -> None:
        """Add a raised error to the diagnostics, quoting its source line."""
        diag = error.diagnostic
        if diag.source_line is None:
            diag.source_line = self.source_line(diag.span)
        self.diagnostics.add(diag)


def create_context(
    config: Optional[RunConfig] = None,
    output: Optional[TextIO] = None,
    variables: Optional[Dict[str, Any]] = None,
    current_dir: Optional[Path] = None,
) -> ExecutionContext:
    """
    Create a new execution context.

    Args:
        config: Run configuration (defaults when omitted)
        output: Stream for `bhan` output (sys.stdout when omitted)
        variables: Plain Python values to pre-bind as globals
        current_dir: Base directory for relative imports

    Returns:
        A fresh ExecutionContext
    """
    ctx = ExecutionContext(
        config=config if config is not None else RunConfig(),
        output=output,
        current_dir=current_dir,
    )

    for name, value in (variables or {}).items():
        ctx.set_variable(name, from_python(value))

    return ctx
