"""
Tests for the khukuri command line.
"""

import json
from pathlib import Path

import pytest
from khukuri import __version__
from khukuri.__main__ import main
from khukuri.config import KHUKURI_PATH

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(KHUKURI_PATH, raising=False)
    return tmp_path


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestRunCommand:
    """Test `khukuri run`."""

    def test_run_prints_output(self, project, capsys):
        write(project / "main.nep", 'bhan "Namaste" bhan 1 + 1')
        assert main(["run", "main.nep"]) == 0
        captured = capsys.readouterr()
        assert captured.out == "Namaste\n2\n"
        assert captured.err == ""

    def test_bare_file_argument(self, project, capsys):
        write(project / "main.nep", "bhan sahi")
        assert main(["main.nep"]) == 0
        assert capsys.readouterr().out == "sahi\n"

    def test_runtime_error(self, project, capsys):
        write(project / "main.nep", 'bhan "pahile"\nbhan 1 / 0')
        assert main(["run", "main.nep"]) == 1
        captured = capsys.readouterr()
        assert captured.out == "pahile\n"
        assert captured.err.strip() == "main.nep:2:6: error[E405] DivisionByZero: division by zero"

    def test_lex_error(self, project, capsys):
        write(project / "main.nep", "maanau x = $")
        assert main(["run", "main.nep"]) == 1
        err = capsys.readouterr().err
        assert "main.nep:1:12" in err
        assert "LexError" in err

    def test_parse_error(self, project, capsys):
        write(project / "main.nep", "yedi x { }")
        assert main(["run", "main.nep"]) == 1
        err = capsys.readouterr().err
        assert "error[E101] ParseError" in err
        assert "'bhane'" in err

    def test_show_source(self, project, capsys):
        write(project / "main.nep", "maanau x = 1\nbhan x + nai")
        assert main(["run", "main.nep", "--show-source"]) == 1
        err = capsys.readouterr().err
        assert "bhan x + nai" in err
        assert "^^^" in err
        assert "hint:" in err

    def test_deeply_nested_expression(self, project, capsys):
        write(project / "main.nep", "bhan " + "(" * 20000 + "1" + ")" * 20000)
        assert main(["run", "main.nep"]) == 1
        err = capsys.readouterr().err.strip()
        assert err.startswith("main.nep:1:")
        assert "error[E104] ParseError: expression nested too deeply" in err
        assert "\n" not in err

    def test_missing_file(self, project, capsys):
        assert main(["run", "nai.nep"]) == 1
        assert "Error: File not found" in capsys.readouterr().err

    def test_include_directory(self, project, capsys):
        write(project / "lib" / "util.nep", 'maanau naam = "util"')
        write(project / "app" / "main.nep", 'aayaat "util" bhan naam')
        assert main(["run", "app/main.nep", "-I", "lib"]) == 0
        assert capsys.readouterr().out == "util\n"

    def test_khukuri_path_variable(self, project, capsys, monkeypatch):
        write(project / "lib" / "util.nep", "maanau n = 3")
        write(project / "app" / "main.nep", 'aayaat "util" bhan n')
        monkeypatch.setenv(KHUKURI_PATH, str(project / "lib"))
        assert main(["app/main.nep"]) == 0
        assert capsys.readouterr().out == "3\n"

    def test_config_next_to_program(self, project, capsys):
        write(project / "app" / "khukuri.yaml", "max_call_depth: 5\n")
        write(project / "app" / "main.nep", "kaam f(n) { pathau f(n + 1) } f(0)")
        assert main(["run", "app/main.nep"]) == 1
        assert "CallDepthExceeded" in capsys.readouterr().err

    def test_bad_config(self, project, capsys):
        write(project / "khukuri.yaml", "max_call_depth: -1\n")
        write(project / "main.nep", "bhan 1")
        assert main(["run", "main.nep"]) == 1
        assert "Error: max_call_depth" in capsys.readouterr().err

    def test_missing_explicit_config(self, project, capsys):
        write(project / "main.nep", "bhan 1")
        assert main(["run", "main.nep", "--config", "nai.yaml"]) == 1
        assert "Error:" in capsys.readouterr().err


class TestCheckAndAst:
    """Test `khukuri check` and `khukuri ast`."""

    def test_check_ok(self, project, capsys):
        write(project / "main.nep", "maanau x = 1\nbhan x / 0")
        assert main(["check", "main.nep"]) == 0
        assert capsys.readouterr().out.strip() == "OK: main.nep - 2 statement(s), no errors"

    def test_check_error(self, project, capsys):
        write(project / "main.nep", "maanau x = ")
        assert main(["check", "main.nep"]) == 1
        err = capsys.readouterr().err
        assert "E102" in err
        assert "1 error(s)" in err

    def test_check_json(self, project, capsys):
        write(project / "main.nep", 'bhan "open')
        assert main(["check", "main.nep", "--json"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert data["error_count"] == 1
        diag = data["diagnostics"][0]
        assert diag["code"] == "E002"
        assert diag["category"] == "LexError"
        assert diag["range"]["start"]["column"] == 6

    def test_check_missing_file(self, project, capsys):
        assert main(["check", "nai.nep"]) == 1
        assert "Error: File not found" in capsys.readouterr().err

    def test_ast(self, project, capsys):
        write(project / "main.nep", "kaam jod(a, b) { pathau a + b }")
        assert main(["ast", "main.nep"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Program")
        assert "FunctionDecl" in out
        assert "'jod'" in out

    def test_ast_parse_error(self, project, capsys):
        write(project / "main.nep", "kaam (")
        assert main(["ast", "main.nep"]) == 1
        assert "ParseError" in capsys.readouterr().err


class TestArguments:
    """Test argument handling."""

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_no_arguments(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 2


class TestExamples:
    """The bundled example programs run cleanly."""

    @pytest.mark.parametrize("name,expected", [
        ("discount.nep", ["Sasto cha, kinnu parchha!"]),
        ("fibonacci.nep", ["55"]),
        ("loops.nep", ["1", "3", "5", "ghumdai chha", "ghumdai chha", "ghumdai chha", "4"]),
        ("students.nep", [
            "Sita: pass", "Ram: thorai le fail", "Gita: pass",
            "2", "64.66666666666667", "82",
        ]),
    ])
    def test_example(self, name, expected, capsys, monkeypatch):
        monkeypatch.delenv(KHUKURI_PATH, raising=False)
        assert main(["run", str(EXAMPLES / name)]) == 0
        assert capsys.readouterr().out.splitlines() == expected

    def test_examples_pass_check(self, capsys):
        for path in sorted(EXAMPLES.rglob("*.nep")):
            assert main(["check", str(path)]) == 0, path
        capsys.readouterr()
