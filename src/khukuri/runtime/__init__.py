"""
Khukuri runtime - tree-walking interpreter.

This module provides:
- Interpreter: Executes parsed programs
- Value: Tagged runtime values with shared list/mapping storage
- Environment: The scope stack
- ExecutionContext: Per-run state (scopes, functions, modules, output)
- ModuleRegistry: Import bookkeeping and cycle detection
"""

from .values import (
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
    function_val,
    from_python,
    to_python,
    display,
)

from .environment import (
    Environment,
    ScopeError,
)

from .modules import (
    ModuleRegistry,
    resolve_module,
)

from .context import (
    ExecutionContext,
    create_context,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    Outcome,
    Signal,
    run_source,
    compile_and_run,
)

__all__ = [
    'Value', 'ValueKind', 'Function', 'NULL',
    'number_val', 'string_val', 'bool_val', 'null_val',
    'list_val', 'mapping_val', 'function_val',
    'from_python', 'to_python', 'display',
    'Environment', 'ScopeError',
    'ModuleRegistry', 'resolve_module',
    'ExecutionContext', 'create_context',
    'Interpreter', 'ExecutionResult', 'Outcome', 'Signal',
    'run_source', 'compile_and_run',
]
