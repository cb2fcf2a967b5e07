"""Morph CLI Tests — CLI-001 through CLI-007."""

import json
import os

import pytest

from morph import __version__
from morph.cli import main, build_parser


def _main(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.fixture
def write(tmp_path):
    def _write(source: str, name: str = "prog.morph") -> str:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return str(path)
    return _write


class TestRun:
    """CLI-001: morph run."""

    def test_prints_result(self, write, capsys):
        path = write("proto main() { return 1 + 2 * 3 }")
        assert _main(["run", path]) == 0
        assert capsys.readouterr().out == "7\n"

    def test_unit_result_prints_nothing(self, write, capsys):
        path = write('proto main() { log("hello") }')
        assert _main(["run", path]) == 0
        assert capsys.readouterr().out == "hello\n"

    def test_runtime_error(self, write, capsys):
        path = write("proto main() { return 1 / 0 }")
        assert _main(["run", path]) == 1
        assert "Division by zero" in capsys.readouterr().out

    def test_type_errors_stop_the_run(self, write, capsys):
        path = write('proto main() { log("side effect")\n  return 1 + "a" }')
        assert _main(["run", path]) == 1
        out = capsys.readouterr().out
        assert "side effect" not in out
        assert "[type_error]" in out

    def test_no_check_runs_anyway(self, write, capsys):
        path = write('proto main() { return 1 + "a" }')
        assert _main(["run", "--no-check", path]) == 1
        assert "Cannot add Int and String" in capsys.readouterr().out

    def test_ghost_failure(self, write, capsys):
        path = write("proto main() { let pct: Int<Ghost: Max: 100> = 101 }")
        assert _main(["run", path]) == 1
        assert "greater than maximum 100" in capsys.readouterr().out


class TestCheck:
    """CLI-002: morph check."""

    def test_ok(self, write, capsys):
        path = write("proto main() { return 1 }")
        assert _main(["check", path]) == 0
        assert capsys.readouterr().out == f"OK: {path}\n"

    def test_errors_as_json(self, write, capsys):
        path = write("proto main() { return missing }")
        assert _main(["check", "--json", path]) == 1
        errors = json.loads(capsys.readouterr().out)
        assert errors[0]["kind"] == "type_error"
        assert errors[0]["variant"] == "undefined_variable"
        assert errors[0]["location"]["file"] == path

    def test_clean_json(self, write, capsys):
        path = write("proto main() { 1 }")
        assert _main(["check", "--json", path]) == 0
        assert json.loads(capsys.readouterr().out) == []

    def test_verify(self, write, capsys):
        path = write("solve s() {\n  let x = 1\n  ensure x > 2\n}")
        assert _main(["check", path]) == 0
        capsys.readouterr()
        assert _main(["check", "--verify", path]) == 1
        assert "can never hold" in capsys.readouterr().out

    def test_syntax_error(self, write, capsys):
        path = write("proto main() {")
        assert _main(["check", path]) == 1
        assert "[syntax_error]" in capsys.readouterr().out


class TestTokenizeAndParse:
    """CLI-003: morph tokenize / morph parse."""

    def test_tokenize(self, write, capsys):
        path = write("let x")
        assert _main(["tokenize", path]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "1:1\tLET\t'let'"
        assert lines[-1].split("\t")[1] == "EOF"

    def test_tokenize_lex_error(self, write, capsys):
        path = write('"open')
        assert _main(["tokenize", path]) == 1
        assert "Unterminated string literal" in capsys.readouterr().out

    def test_parse_round_trip(self, write, capsys):
        path = write("proto add(a: Int, b: Int) => Int { return a + b }")
        assert _main(["parse", path]) == 0
        assert "proto add(a: Int, b: Int) => Int" in capsys.readouterr().out


class TestExitCodes:
    """CLI-004: Missing files and missing commands."""

    def test_file_not_found(self, tmp_path, capsys):
        missing = str(tmp_path / "nope.morph")
        assert _main(["run", missing]) == 2
        assert capsys.readouterr().err == f"File not found: {missing}\n"

    def test_undecodable_file(self, tmp_path, capsys):
        path = tmp_path / "latin1.morph"
        path.write_bytes(b"proto main() { \xff\xfe }")
        assert _main(["check", str(path)]) == 1
        assert f"Cannot decode {path} as UTF-8" in capsys.readouterr().err

    def test_no_command(self, capsys):
        assert _main([]) == 1
        assert "usage:" in capsys.readouterr().out

    def test_version(self, capsys):
        assert _main(["--version"]) == 0
        assert capsys.readouterr().out.strip() == f"morph {__version__}"


class TestConfigIntegration:
    """CLI-005: Project config files change CLI behaviour."""

    def test_config_disables_ghost_validation(self, write, capsys):
        write("validate_ghosts: false\n", name=".morphrc.yml")
        path = write("proto main() { let pct: Int<Ghost: Max: 100> = 101; pct }")
        assert _main(["run", path]) == 0
        assert capsys.readouterr().out == "101\n"

    def test_config_json_format(self, write, capsys):
        write('{"format": "json"}', name=".morphrc.json")
        path = write("proto main() { return missing }")
        assert _main(["check", path]) == 1
        assert json.loads(capsys.readouterr().out)[0]["details"] == {"name": "missing"}

    def test_explicit_config_path(self, write, capsys):
        config = write("check_before_run: false\n", name="custom.yml")
        path = write('proto main() { return 1 + "a" }')
        assert _main(["--config", config, "run", path]) == 1
        assert "Cannot add Int and String" in capsys.readouterr().out


class TestParserBuild:
    """CLI-006: Argument parsing."""

    def test_run_flags(self):
        args = build_parser().parse_args(["-v", "run", "--no-check", "--verify", "x.morph"])
        assert args.verbose is True
        assert args.no_check is True
        assert args.verify is True
        assert args.file == "x.morph"


class TestExamplePrograms:
    """CLI-007: The bundled example programs run cleanly."""

    EXAMPLES = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "examples")

    def test_grades(self, capsys):
        assert _main(["run", os.path.join(self.EXAMPLES, "grades.morph")]) == 0
        assert capsys.readouterr().out == "95 A\n82 B\n40 C\n"

    def test_pricing_verifies(self, capsys):
        assert _main(["check", "--verify", os.path.join(self.EXAMPLES, "pricing.morph")]) == 0
        capsys.readouterr()
        assert _main(["run", os.path.join(self.EXAMPLES, "pricing.morph")]) == 0
        assert capsys.readouterr().out == "300\n"
