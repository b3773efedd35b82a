#!/usr/bin/env python3
"""
CLI for the Khukuri interpreter.

Usage:
    khukuri run FILE.nep [--config khukuri.yaml] [-I DIR ...] [--show-source]
    khukuri check FILE.nep [--json]
    khukuri ast FILE.nep
    khukuri repl

    khukuri FILE.nep        # same as 'run'
    khukuri --repl          # same as 'repl'

Examples:
    # Run a program
    khukuri run examples/fibonacci.nep

    # Check syntax only
    khukuri check examples/students.nep

    # Show the parsed tree
    khukuri ast examples/discount.nep

    # Extra import directory (also settable with KHUKURI_PATH)
    khukuri run app.nep -I lib/
"""

import argparse
import json
import sys
from pathlib import Path

COMMANDS = ('run', 'check', 'ast', 'repl')


def _report(error, ctx=None, show_source: bool = False) -> None:
    """Print a diagnostic to stderr, one line unless show_source is set."""
    diag = error.diagnostic
    if ctx is not None and diag.source_line is None:
        diag.source_line = ctx.source_line(diag.span)
    if show_source:
        print(diag.format(), file=sys.stderr)
    else:
        print(diag.one_line(), file=sys.stderr)


def _read_source(source_path: Path):
    """Read a source file, printing an error and returning None on failure."""
    if not source_path.is_file():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    try:
        return source_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def _load_config(args, start_dir):
    from .config import load_config, ConfigError

    try:
        return load_config(args.config, start_dir=start_dir, extra_paths=args.include or [])
    except (ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def cmd_run(args):
    """Run a Khukuri program."""
    from . import Interpreter, KhukuriError, create_context

    source_path = Path(args.file)
    if not source_path.is_file():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return 1

    config = _load_config(args, source_path.parent)
    if config is None:
        return 1

    ctx = create_context(config=config)
    try:
        Interpreter().run_file(source_path, ctx)
    except KhukuriError as e:
        ctx.record_error(e)
        sys.stdout.flush()
        _report(e, ctx, args.show_source)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def cmd_check(args):
    """Check a Khukuri file for lex and parse errors."""
    from . import parse_source, KhukuriError, DiagnosticCollector

    source_path = Path(args.file)
    source = _read_source(source_path)
    if source is None:
        return 1

    collector = DiagnosticCollector()
    program = None
    try:
        program = parse_source(source, str(source_path))
    except KhukuriError as e:
        collector.add_error(e)

    if args.json:
        print(json.dumps(collector.to_json(), indent=2))
    elif collector.has_errors:
        print(collector.format_all(), file=sys.stderr)
    else:
        print(f"OK: {source_path.name} - {len(program.statements)} statement(s), no errors")

    return 1 if collector.has_errors else 0


def cmd_ast(args):
    """Print the syntax tree of a Khukuri file."""
    from . import parse_source, print_ast, KhukuriError

    source_path = Path(args.file)
    source = _read_source(source_path)
    if source is None:
        return 1

    try:
        program = parse_source(source, str(source_path))
    except KhukuriError as e:
        _report(e)
        return 1

    print_ast(program)
    return 0


def cmd_repl(args):
    """Start the interactive shell."""
    from . import create_context
    from .repl import Repl

    config = _load_config(args, Path.cwd())
    if config is None:
        return 1

    ctx = create_context(config=config, current_dir=Path.cwd())
    Repl(ctx).cmdloop()
    return 0


def _normalize_argv(argv):
    """Accept the short forms 'khukuri FILE' and 'khukuri --repl'."""
    if not argv:
        return argv
    if argv[0] == '--repl':
        return ['repl'] + argv[1:]
    if argv[0] not in COMMANDS and not argv[0].startswith('-'):
        return ['run'] + argv
    return argv


def main(argv=None):
    from . import __version__

    parser = argparse.ArgumentParser(
        prog='khukuri',
        description='Khukuri interpreter',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', metavar='FILE',
                        help='Project file (default: khukuri.yaml next to the program)')
    common.add_argument('-I', '--include', action='append', metavar='DIR',
                        help='Extra import directory (can be repeated)')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # run command
    run_parser = subparsers.add_parser('run', parents=[common], help='Run a Khukuri program')
    run_parser.add_argument('file', help='Khukuri source file (.nep)')
    run_parser.add_argument('--show-source', action='store_true',
                            help='Show the offending source line on error')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a file for syntax errors')
    check_parser.add_argument('file', help='Khukuri source file (.nep)')
    check_parser.add_argument('--json', action='store_true',
                              help='Print diagnostics as JSON')

    # ast command
    ast_parser = subparsers.add_parser('ast', help='Print the parsed syntax tree')
    ast_parser.add_argument('file', help='Khukuri source file (.nep)')

    # repl command
    subparsers.add_parser('repl', parents=[common], help='Start the interactive shell')

    raw = sys.argv[1:] if argv is None else list(argv)
    args = parser.parse_args(_normalize_argv(raw))

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'check':
        return cmd_check(args)
    elif args.action == 'ast':
        return cmd_ast(args)
    elif args.action == 'repl':
        return cmd_repl(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
