"""
Tests for the interactive shell.
"""

import io

from khukuri.repl import Repl, is_incomplete


def make_repl(stdin_text=""):
    out, err = io.StringIO(), io.StringIO()
    repl = Repl(stdin=io.StringIO(stdin_text), stdout=out, stderr=err)
    return repl, out, err


class TestIncomplete:
    """Test detection of unfinished input."""

    def test_complete_line(self):
        assert not is_incomplete("bhan 1\n")

    def test_open_block(self):
        assert is_incomplete("kaam f(n) {\n")

    def test_open_list(self):
        assert is_incomplete("maanau xs = [1,\n")

    def test_closed_block(self):
        assert not is_incomplete("kaam f(n) {\npathau n\n}\n")

    def test_lex_error_counts_as_complete(self):
        assert not is_incomplete('bhan "open {\n')


class TestRepl:
    """Test running lines through the shell."""

    def test_prints_non_null_values(self):
        repl, out, _ = make_repl()
        repl.onecmd("maanau x = 2")
        repl.onecmd("x * 21")
        assert out.getvalue() == "42\n"

    def test_bhan_output(self):
        repl, out, _ = make_repl()
        repl.onecmd('bhan "Namaste"')
        assert out.getvalue() == "Namaste\n"

    def test_state_survives_between_lines(self):
        repl, out, _ = make_repl()
        repl.onecmd("kaam dobber(n) { pathau n * 2 }")
        repl.onecmd("maanau xs = [1]")
        repl.onecmd("xs[0] = dobber(5)")
        repl.onecmd("xs")
        assert out.getvalue() == "[10]\n"

    def test_multi_line_block(self):
        repl, out, _ = make_repl()
        repl.onecmd("kaam jod(a, b) {")
        assert repl.prompt == repl.secondary_prompt
        repl.onecmd("pathau a + b")
        repl.onecmd("}")
        assert repl.prompt == ">> "
        repl.onecmd("jod(1, 2)")
        assert out.getvalue() == "3\n"

    def test_error_is_reported_and_loop_continues(self):
        repl, out, err = make_repl()
        repl.onecmd("bhan 1 / 0")
        assert err.getvalue().strip() == "<repl-1>:1:6: error[E405] DivisionByZero: division by zero"
        repl.onecmd("bhan 2")
        assert out.getvalue() == "2\n"
        assert repl.ctx.diagnostics.error_count == 1

    def test_failed_line_is_rolled_back(self):
        repl, out, err = make_repl()
        repl.onecmd("maanau x = 1")
        repl.onecmd('maanau x = 2 maanau y = 3 kaam f() { } bhan "pahile" bhan nai')
        assert out.getvalue() == "pahile\n"
        repl.onecmd("x")
        assert out.getvalue().endswith("1\n")
        repl.onecmd("y")
        assert "UndefinedVariable" in err.getvalue().splitlines()[-1]
        repl.onecmd("f()")
        assert "UndefinedFunction" in err.getvalue().splitlines()[-1]

    def test_empty_line_does_nothing(self):
        repl, out, _ = make_repl()
        repl.onecmd("bhan 1")
        repl.onecmd("")
        assert out.getvalue() == "1\n"

    def test_exit(self):
        repl, _, _ = make_repl()
        assert repl.onecmd("exit")

    def test_cmdloop_until_eof(self):
        repl, out, _ = make_repl("maanau x = 5\nx + 1\n")
        repl.cmdloop()
        text = out.getvalue()
        assert "6\n" in text
        assert text.startswith("Khukuri REPL")

    def test_failed_line_forgets_its_imports(self, tmp_path, monkeypatch):
        """A module imported by a failed line is imported again later."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "lib.nep").write_text("kaam dobber(n) { pathau n * 2 }", encoding="utf-8")
        repl, out, err = make_repl()
        repl.onecmd('aayaat "lib" bhan 1 / 0')
        assert "DivisionByZero" in err.getvalue()
        repl.onecmd('aayaat "lib"')
        repl.onecmd("bhan dobber(4)")
        assert out.getvalue() == "8\n"
        assert err.getvalue().count("\n") == 1

    def test_successful_import_is_kept(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "lib.nep").write_text('bhan "lib suru"', encoding="utf-8")
        repl, out, _ = make_repl()
        repl.onecmd('aayaat "lib"')
        repl.onecmd('aayaat "lib"')
        assert out.getvalue() == "lib suru\n"


class TestShellWords:
    """Lines starting with shell command words are still Khukuri code."""

    def test_help_is_a_variable(self):
        repl, out, _ = make_repl()
        repl.onecmd("maanau help = 20")
        repl.onecmd("help + 1")
        assert out.getvalue() == "21\n"

    def test_exit_prefix_is_code(self):
        repl, out, _ = make_repl()
        repl.onecmd("maanau exit = 2")
        assert not repl.onecmd("exit * 3")
        assert out.getvalue() == "6\n"

    def test_eof_prefix_is_code(self):
        repl, out, _ = make_repl()
        repl.onecmd("maanau EOF = 1")
        repl.onecmd("EOF + 1")
        assert out.getvalue() == "2\n"

    def test_exit_inside_open_block_is_buffered(self):
        repl, out, _ = make_repl()
        repl.onecmd("kaam f() {")
        assert not repl.onecmd("exit")
        repl.onecmd("}")
        assert repl.prompt == ">> "

    def test_help_line_in_cmdloop(self):
        repl, out, err = make_repl("help\nexit\nbhan 1\n")
        repl.cmdloop()
        assert "UndefinedVariable" in err.getvalue()
        assert "1\n" not in out.getvalue()
