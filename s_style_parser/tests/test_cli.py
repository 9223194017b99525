"""
CLI テストスイート
"""

import io
import json
import math

import pytest
from rich.console import Console

from ..cli.main import SStyleParserCLI, parse_arguments, render_tree, run
from ..config.settings import settings
from ..core.parser import parse_source
from ..core.trace_logger import get_global_logger, set_global_logger


def make_console():
    return Console(file=io.StringIO(), color_system=None, width=120)


def output_of(console: Console) -> str:
    return console.file.getvalue()


@pytest.fixture
def console():
    return make_console()


@pytest.fixture(autouse=True)
def restore_global_logger():
    previous = get_global_logger()
    yield
    set_global_logger(previous)


class TestRenderTree:
    """ツリー表示のテスト"""

    def test_nested_tree(self, console):
        console.print(render_tree(parse_source("(+ (- 5 [x]) true)")))
        text = output_of(console)
        assert "List (3)" in text
        assert "Symbol('+')" in text
        assert "Symbol('[x]')" in text
        assert "Number(5.0)" in text
        assert "Bool(true)" in text

    def test_atom_root(self, console):
        console.print(render_tree(parse_source("hello")))
        assert "Symbol('hello')" in output_of(console)


class TestSStyleParserCLI:
    """対話CLIのテスト"""

    @pytest.fixture
    def cli(self, console):
        return SStyleParserCLI(console=console)

    def test_parse_line(self, cli):
        assert cli.handle_line("(+ 2 3)") is True
        assert "Number(2.0)" in output_of(cli.console)
        assert cli.session_history[0]["input"] == "(+ 2 3)"
        assert "result" in cli.session_history[0]

    def test_parse_error_recorded(self, cli):
        cli.handle_line("(= 2 3")
        assert "NoClosingParenthesis" in output_of(cli.console)
        assert "error" in cli.session_history[0]

    def test_parse_command_with_argument(self, cli):
        cli.handle_line("/parse (a b)")
        assert "Symbol('b')" in output_of(cli.console)

    def test_parse_command_prompts(self, console):
        cli = SStyleParserCLI(console=console, input_func=lambda prompt: "(q)")
        cli.handle_line("/parse")
        assert "Symbol('q')" in output_of(console)

    def test_tokens_command(self, cli):
        cli.handle_line("/tokens (a b)")
        assert "4 tokens" in output_of(cli.console)

    def test_exit_command(self, cli):
        assert cli.handle_line("/exit") is False

    def test_unknown_command(self, cli):
        assert cli.handle_line("/frobnicate") is True
        assert "frobnicate" in output_of(cli.console)

    def test_blank_line_ignored(self, cli):
        assert cli.handle_line("   ") is True
        assert cli.session_history == []

    def test_trace_disabled_message(self, cli):
        cli.handle_line("/trace")
        assert "--trace" in output_of(cli.console)

    def test_run_loop(self, console):
        lines = iter(["(a b)", "/history", "/exit"])
        cli = SStyleParserCLI(console=console, input_func=lambda prompt: next(lines))
        cli.run()
        text = output_of(console)
        assert "セッション履歴" in text
        assert "終了" in text

    def test_run_loop_stops_on_eof(self, console):
        def raise_eof(prompt):
            raise EOFError

        SStyleParserCLI(console=console, input_func=raise_eof).run()
        assert "終了" in output_of(console)


class TestRun:
    """ワンショット実行のテスト"""

    def test_expr(self, console):
        assert run(["--expr", "(+ 2 3)"], console) == 0
        assert "Symbol('+')" in output_of(console)

    def test_expr_error_exit_status(self, console):
        assert run(["--expr", "(+ 1 2 ))"], console) == 1
        assert "UnexpectedClosingParenthesis" in output_of(console)

    def test_json_output(self, console):
        assert run(["--expr", "(+ 2 3)", "--json"], console) == 0
        data = json.loads(output_of(console))
        assert data["success"] is True
        assert data["tree"] == ["+", 2.0, 3.0]

    def test_json_error(self, console):
        assert run(["--expr", "(= 2 3", "--json"], console) == 1
        data = json.loads(output_of(console))
        assert data["error_kind"] == "NoClosingParenthesis"

    def test_tokens_json(self, console):
        assert run(["--expr", "(a b)", "--tokens", "--json"], console) == 0
        assert json.loads(output_of(console))["count"] == 4

    def test_file_input(self, console, tmp_path):
        source = tmp_path / "prog.lisp"
        source.write_text("(define x\n  (* 12 7))\n", encoding="utf-8")
        assert run(["--file", str(source)], console) == 0
        assert "Number(12.0)" in output_of(console)

    def test_missing_file(self, console, tmp_path):
        assert run(["--file", str(tmp_path / "missing.lisp")], console) == 1

    def test_trace_file(self, console, tmp_path):
        log_file = tmp_path / "trace.jsonl"
        assert run(["--expr", "(a)", "--trace", str(log_file)], console) == 0
        records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        assert [r["operation"] for r in records] == ["atom", "list"]

    def test_expr_and_file_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_arguments(["--expr", "a", "--file", "b"])


class TestCLISettings:
    """設定値によるCLIの振る舞い"""

    def test_json_keeps_infinity(self, console):
        assert run(["--expr", "(a inf)", "--json"], console) == 0
        text = output_of(console)
        assert "Infinity" in text
        assert json.loads(text)["tree"] == ["a", math.inf]

    def test_debug_prints_traceback(self, console, monkeypatch):
        monkeypatch.setattr(settings.system, "debug", True)
        cli = SStyleParserCLI(console=console)
        success, node, error = cli.parse_safe("(= 2 3")
        assert success is False
        assert "Traceback" in output_of(console)
        assert "NoClosingParenthesis" in error

    def test_no_traceback_without_debug(self, console, monkeypatch):
        monkeypatch.setattr(settings.system, "debug", False)
        SStyleParserCLI(console=console).parse_safe("(= 2 3")
        assert "Traceback" not in output_of(console)

    def test_zero_history_limit_keeps_nothing(self, console, monkeypatch):
        monkeypatch.setattr(settings.system, "session_history_limit", 0)
        cli = SStyleParserCLI(console=console)
        for _ in range(5):
            cli.handle_line("(a)")
        assert cli.session_history == []

    def test_history_limit_keeps_latest(self, console, monkeypatch):
        monkeypatch.setattr(settings.system, "session_history_limit", 2)
        cli = SStyleParserCLI(console=console)
        for expr in ("(a)", "(b)", "(c)"):
            cli.handle_line(expr)
        assert [e["input"] for e in cli.session_history] == ["(b)", "(c)"]
