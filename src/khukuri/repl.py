"""Interactive mode for the Khukuri interpreter. Uses cmd as backend."""

import cmd
import sys

from .errors import KhukuriError, LexError
from .lexer import tokenize
from .tokens import TokenType
from .runtime import Interpreter, ValueKind, create_context

_OPENERS = {TokenType.LBRACE, TokenType.LPAREN, TokenType.LBRACKET}
_CLOSERS = {TokenType.RBRACE, TokenType.RPAREN, TokenType.RBRACKET}


def is_incomplete(text: str) -> bool:
    """True while text has more opening brackets than closing ones."""
    try:
        tokens = tokenize(text)
    except LexError:
        return False  # let the real run report it
    depth = 0
    for token in tokens:
        if token.type in _OPENERS:
            depth += 1
        elif token.type in _CLOSERS:
            depth -= 1
    return depth > 0


class Repl(cmd.Cmd):
    """Khukuri interpreter shell."""
    intro = "Khukuri REPL\nType 'exit' or press Ctrl-D to leave."
    prompt = ">> "
    secondary_prompt = ".. "  # used while a block is still open
    _tmp_prompt = ">> "

    def __init__(self, ctx=None, stdin=None, stdout=None, stderr=None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.stderr = stderr if stderr is not None else sys.stderr
        self.ctx = ctx if ctx is not None else create_context(output=self.stdout)
        self.interpreter = Interpreter()

        self._tmp_line = ""
        self.line_num = 0

    def onecmd(self, line):
        """
        Route a line without cmd's command-word parsing.

        Only a bare 'exit' (outside an open block) and the 'EOF' that
        cmdloop sends at end of input leave the shell; any other line,
        including ones starting with 'help' or 'exit', is Khukuri code.
        """
        stripped = line.strip()
        if stripped == "EOF":
            return self.do_EOF("")
        if stripped == "exit" and not self._tmp_line:
            return self.do_exit("")
        if not stripped and not self._tmp_line:
            return self.emptyline()
        return self.default(line)

    def default(self, line):
        """Runs a line (or a finished multi-line block) of Khukuri."""
        text = self._tmp_line + line + "\n"
        if is_incomplete(text):
            self._tmp_line = text
            self.prompt = self.secondary_prompt
            return

        self._tmp_line = ""
        self.prompt = self._tmp_prompt
        self.line_num += 1

        # cmd.Cmd would exit on an exception, so report and carry on
        saved = self.ctx.checkpoint()
        try:
            value = self.interpreter.run_source(text, self.ctx, f"<repl-{self.line_num}>")
        except KhukuriError as e:
            self.ctx.rollback(saved)
            self.ctx.record_error(e)
            print(e.diagnostic.one_line(), file=self.stderr)
            return

        if value.kind != ValueKind.NULL:
            print(value.display(), file=self.stdout)

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print(file=self.stdout)
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
