import builtins
import json
import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from tortuga import tortuga_repl
from tortuga.tortuga_engine import TurtleEngine
from tortuga.tortuga_repl import (
    bracket_depth,
    describe_state,
    handle_sugar_command,
    print_traceback,
    run_source,
    start_repl,
)
from tortuga.tortuga_uimap import UserInterfaceMapper

SRC_DIR = Path(__file__).resolve().parents[1] / "src"


@pytest.fixture(autouse=True)  # type: ignore[misc]
def fresh_uimap(monkeypatch: pytest.MonkeyPatch) -> UserInterfaceMapper:
    mapper = UserInterfaceMapper.from_canonical()
    monkeypatch.setattr(tortuga_repl, "uimap", mapper)
    monkeypatch.delenv(tortuga_repl.SUGAR_PATH_ENV, raising=False)
    return mapper


def feed(monkeypatch: pytest.MonkeyPatch, *lines: str) -> None:
    calls = iter(lines)
    monkeypatch.setattr(builtins, "input", lambda _: next(calls))


def test_repl_quit(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(builtins, "input", lambda _: "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "Tortuga REPL" in out
    assert "Exiting Tortuga REPL" in out


def test_repl_exit_case_insensitive(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "  EXIT ")
    start_repl()
    assert "Exiting Tortuga REPL" in capsys.readouterr().out


def test_repl_empty_input_skipped(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "   ", "# only a comment", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "[error]" not in out
    assert "Exiting Tortuga REPL" in out


def test_repl_keyboard_interrupt(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(
        builtins, "input", lambda _: (_ for _ in ()).throw(KeyboardInterrupt())
    )
    start_repl()
    assert "Exiting Tortuga REPL" in capsys.readouterr().out


def test_repl_eof(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(builtins, "input", lambda _: (_ for _ in ()).throw(EOFError()))
    start_repl()
    assert "Exiting Tortuga REPL" in capsys.readouterr().out


def test_repl_runs_program_and_keeps_state(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "FD 10", "LT 90 FD 20", "state", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert (
        "[state] >>> x=410.00 y=280.00 angle=90.00 pen=down color=#00FF00 "
        "size=2.0 drawing=2"
    ) in out


def test_repl_multiline_repeat(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    prompts: list[str] = []
    lines = iter(["REPEAT 4 [", "  FD 10", "  RT 90", "]", "state", "quit"])

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        return next(lines)

    monkeypatch.setattr(builtins, "input", fake_input)
    start_repl()
    out = capsys.readouterr().out
    assert prompts[:4] == [">>> ", "... ", "... ", "... "]
    assert "drawing=4" in out


def test_repl_reports_parse_errors(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "JUMP 10", "]", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "[error] >>> line 1: Unknown command: JUMP" in out
    assert "[error] >>> line 1: Unexpected ']' without matching '['" in out


def test_repl_reports_collision(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "FD 1000", "quit")
    start_repl()
    assert "[collision] >>> boundary at step 0" in capsys.readouterr().out


def test_repl_verbose_mode_toggle(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "verbose-mode", "FD 10", "verbose-mode", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "[mode] >>> Verbose mode ON" in out
    assert "[tree] >>> [Command(FORWARD, value=10.0)]" in out
    assert "[state] >>> x=410.00" in out
    assert "[mode] >>> Verbose mode OFF" in out


def test_repl_reset(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "COL 2 FD 10", "reset", "state", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "[ok] >>> Turtle reset." in out
    assert "x=400.00 y=300.00 angle=0.00 pen=down color=#FF3333" in out
    assert "drawing=0" in out


def test_repl_samples_listing(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "samples", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "square → REPEAT 4 [ FORWARD 100 RIGHT 90 ]" in out
    assert "flower → REPEAT 8 [" in out


def test_repl_runs_sample(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "sample Triangle", "state", "sample nope", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "drawing=3" in out
    assert "[error] >>> No sample named: nope" in out


def test_repl_sugar_command_updates_aliases(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    fresh_uimap: UserInterfaceMapper,
) -> None:
    feed(monkeypatch, 'SUGAR {"avanza, go": "FORWARD"}', "avanza 10 go 5", "state", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "[ok] >>> Sugar aliases updated." in out
    assert "AVANZA → FORWARD" in out
    assert "x=415.00" in out
    assert fresh_uimap.resolve("go") == "FORWARD"


def test_non_sugar_command_returns_false() -> None:
    assert handle_sugar_command("FD 10") is False


def test_empty_sugar_command_shows_report(capsys: pytest.CaptureFixture[str]) -> None:
    assert handle_sugar_command("SUGAR") is True
    out = capsys.readouterr().out
    assert "FD → FORWARD" in out
    assert "(slot 0)" in out


def test_invalid_sugar_json(capsys: pytest.CaptureFixture[str]) -> None:
    assert handle_sugar_command("SUGAR {invalid_syntax") is True
    assert "[error] >>> Failed to configure sugar aliases:" in capsys.readouterr().out


def test_sugar_requires_object(capsys: pytest.CaptureFixture[str]) -> None:
    assert handle_sugar_command('SUGAR ["go"]') is True
    assert "Sugar must be a JSON object" in capsys.readouterr().out


def test_sugar_conflict_is_listed(
    capsys: pytest.CaptureFixture[str], fresh_uimap: UserInterfaceMapper
) -> None:
    assert handle_sugar_command('SUGAR {"fd": "BACK"}') is True
    out = capsys.readouterr().out
    assert "Alias collision(s) detected" in out
    assert " - 'FD' → conflict between FORWARD and BACK" in out
    assert fresh_uimap.resolve("fd") == "FORWARD"


def test_sugar_unknown_command(capsys: pytest.CaptureFixture[str]) -> None:
    handle_sugar_command('SUGAR {"hop": "JUMP"}')
    assert "Unknown command name: JUMP" in capsys.readouterr().out


def test_sugar_loaded_from_env(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
    fresh_uimap: UserInterfaceMapper,
) -> None:
    path = tmp_path / "sugar.json"
    path.write_text(json.dumps({"adelante": "FORWARD"}))
    monkeypatch.setenv(tortuga_repl.SUGAR_PATH_ENV, str(path))
    feed(monkeypatch, "quit")
    start_repl()
    assert f"[ok] >>> Loaded sugar from env: {path}" in capsys.readouterr().out
    assert fresh_uimap.resolve("adelante") == "FORWARD"


def test_sugar_env_failure_is_reported(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    monkeypatch.setenv(tortuga_repl.SUGAR_PATH_ENV, str(tmp_path / "missing.json"))
    feed(monkeypatch, "quit")
    start_repl()
    out = capsys.readouterr().out
    assert f"[error] >>> Failed to load from {tortuga_repl.SUGAR_PATH_ENV}" in out
    assert "Exiting Tortuga REPL" in out


def test_run_source_engine_error_prints_traceback(
    capsys: pytest.CaptureFixture[str],
) -> None:
    engine = TurtleEngine(max_steps=3)
    run_source(engine, "REPEAT 10 [ FD 1 ]")
    out = capsys.readouterr().out
    assert "[error] >>>" in out
    assert "StepBudgetExceeded" in out
    assert engine.drawing == []


@pytest.mark.parametrize(  # type: ignore[misc]
    "line,depth",
    [("REPEAT 4 [", 1), ("[ [ ]", 1), ("]", -1), ("FD 10", 0), ("# [", 0)],
)
def test_bracket_depth(line: str, depth: int) -> None:
    assert bracket_depth(line) == depth


def test_describe_state_pen_up() -> None:
    engine = TurtleEngine()
    engine.turtle.pen_down = False
    assert "pen=up" in describe_state(engine)


def test_print_traceback_outputs_error() -> None:
    with patch("builtins.print") as mock_print:
        try:
            raise ValueError("intentional test error")
        except Exception:
            print_traceback()

    printed = [
        "".join(str(arg) for arg in call.args) for call in mock_print.call_args_list
    ]
    joined = "\n".join(printed).lower()

    assert "[error] >>>" in joined
    assert "valueerror" in joined
    assert "intentional test error" in joined


def test_repl_as_module_runs() -> None:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(SRC_DIR)
    env.pop(tortuga_repl.SUGAR_PATH_ENV, None)
    result = subprocess.run(
        [sys.executable, "-m", "tortuga.tortuga_repl"],
        input="FD 10\nstate\nquit\n",
        text=True,
        capture_output=True,
        env=env,
        timeout=30,
    )
    assert "Tortuga REPL" in result.stdout
    assert "x=410.00" in result.stdout
    assert "Exiting Tortuga REPL" in result.stdout
