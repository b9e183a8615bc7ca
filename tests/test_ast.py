import hypothesis.strategies as st
from hypothesis import given

from tortuga.tortuga_ast import Command, ParsedProgram, ParseError


def test_command_repr() -> None:
    assert repr(Command("PENUP")) == "Command(PENUP)"
    assert repr(Command("FORWARD", 10.0)) == "Command(FORWARD, value=10.0)"


def test_command_repr_truncates_children() -> None:
    body = [Command("FORWARD", float(i)) for i in range(5)]
    text = repr(Command("REPEAT", 2, body))
    assert text.startswith("Command(REPEAT, value=2, children=[")
    assert text.endswith(", ...])")


def test_command_eq() -> None:
    assert Command("RIGHT", 90.0) == Command("RIGHT", 90.0)
    assert Command("RIGHT", 90.0) != Command("LEFT", 90.0)
    assert Command("RIGHT", 90.0) != Command("RIGHT", 45.0)
    assert Command("RIGHT", 90.0, line=1) != Command("RIGHT", 90.0, line=2)
    assert Command("PENUP") != "PENUP"


def test_command_eq_children() -> None:
    a = Command("REPEAT", 2, [Command("FORWARD", 1.0)])
    b = Command("REPEAT", 2, [Command("FORWARD", 1.0)])
    c = Command("REPEAT", 2, [Command("FORWARD", 2.0)])
    assert a == b
    assert a != c


def test_command_to_dict_nested() -> None:
    node = Command("REPEAT", 3, [Command("LEFT", 120.0, line=1, col=11)], line=1, col=1)
    d = node.to_dict()
    assert d["kind"] == "REPEAT"
    assert d["value"] == 3
    assert d["line"] == 1
    assert d["children"][0] == {
        "kind": "LEFT",
        "value": 120.0,
        "line": 1,
        "col": 11,
        "children": [],
    }


def test_is_repeat() -> None:
    assert Command("REPEAT", 1, [Command("PENUP")]).is_repeat
    assert not Command("PENUP").is_repeat


def test_parse_error_str_and_eq() -> None:
    assert str(ParseError("boom")) == "boom"
    assert str(ParseError("boom", 3)) == "line 3: boom"
    assert repr(ParseError("boom", 3)) == "ParseError('boom', line=3)"
    assert ParseError("boom", 3) == ParseError("boom", 3)
    assert ParseError("boom", 3) != ParseError("boom")


def test_parsed_program_ok() -> None:
    assert ParsedProgram([Command("PENUP")]).ok
    assert not ParsedProgram([], [ParseError("bad")]).ok
    assert ParsedProgram().commands == []


@given(st.sampled_from(["FORWARD", "BACK", "LEFT", "RIGHT", "COL"]), st.floats(allow_nan=False))  # type: ignore[misc]
def test_command_eq_same_kind_value(kind: str, value: float) -> None:
    assert Command(kind, value) == Command(kind, value)
