"""
Shared constants for the TORTUGA turtle-graphics language.

This module is the single source of truth for the command keyword table,
command arities, the color palette and the canvas/runtime limits used by the
lexer, parser, engine and alias mapper.

Exports:
    - CANONICAL_COMMANDS: Ordered tuple of canonical command names.
    - CANONICAL_COMMAND_MAP: Default keyword table (alias → canonical command).
    - VALUE_COMMANDS: Commands requiring exactly one numeric argument.
    - NULLARY_COMMANDS: Commands taking no argument.
    - COLOR_PALETTE / COLOR_NAMES: The 16-entry pen palette.
    - SAMPLE_PROGRAMS: Ready-made programs for the REPL and CLI.
"""

CANONICAL_COMMANDS: tuple[str, ...] = (
    "FORWARD",
    "BACK",
    "LEFT",
    "RIGHT",
    "PENUP",
    "PENDOWN",
    "CLEAR",
    "COL",
    "REPEAT",
)

CANONICAL_COMMAND_MAP: dict[str, str] = {
    "FORWARD": "FORWARD",
    "FD": "FORWARD",
    "BACK": "BACK",
    "BK": "BACK",
    "LEFT": "LEFT",
    "LT": "LEFT",
    "RIGHT": "RIGHT",
    "RT": "RIGHT",
    "PENUP": "PENUP",
    "PU": "PENUP",
    "PENDOWN": "PENDOWN",
    "PD": "PENDOWN",
    "CLEAR": "CLEAR",
    "COL": "COL",
    "COLOR": "COL",
    "REPEAT": "REPEAT",
}

VALUE_COMMANDS: frozenset[str] = frozenset({"FORWARD", "BACK", "LEFT", "RIGHT", "COL"})
NULLARY_COMMANDS: frozenset[str] = frozenset({"PENUP", "PENDOWN", "CLEAR"})
MOVEMENT_COMMANDS: frozenset[str] = frozenset({"FORWARD", "BACK"})

COMMENT_CHARS = "#;"

REPEAT_MIN = 1
REPEAT_MAX = 1000

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600

DEFAULT_PEN_SIZE = 2.0
DEFAULT_ANIMATION_SPEED = 100  # ms
MIN_ANIMATION_SPEED = 10
MAX_ANIMATION_SPEED = 1000

COLOR_PALETTE: tuple[str, ...] = (
    "#00FF00",
    "#0066FF",
    "#FF3333",
    "#FF8800",
    "#8833FF",
    "#FF33CC",
    "#FFDD00",
    "#00FFFF",
    "#FF00FF",
    "#88FF00",
    "#003388",
    "#880033",
    "#228833",
    "#8B4513",
    "#666666",
    "#000000",
)

COLOR_NAMES: tuple[str, ...] = (
    "Bright Green",
    "Blue",
    "Red",
    "Orange",
    "Purple",
    "Pink",
    "Yellow",
    "Cyan",
    "Magenta",
    "Lime",
    "Dark Blue",
    "Dark Red",
    "Forest Green",
    "Brown",
    "Gray",
    "Black",
)

DEFAULT_COLOR = COLOR_PALETTE[0]

SAMPLE_PROGRAMS: dict[str, str] = {
    "square": "REPEAT 4 [ FORWARD 100 RIGHT 90 ]",
    "triangle": "REPEAT 3 [ FORWARD 100 RIGHT 120 ]",
    "circle": "REPEAT 36 [ FORWARD 10 RIGHT 10 ]",
    "star": "REPEAT 5 [ FORWARD 100 RIGHT 144 ]",
    "spiral": "REPEAT 50 [ FORWARD 5 RIGHT 91 ]",
    "house": (
        "FORWARD 100\nRIGHT 90\nFORWARD 100\nRIGHT 90\nFORWARD 100\n"
        "RIGHT 90\nFORWARD 100\nRIGHT 30\nFORWARD 60\nRIGHT 120\nFORWARD 60"
    ),
    "flower": "REPEAT 8 [\n  REPEAT 36 [ FORWARD 2 RIGHT 10 ]\n  RIGHT 45\n]",
}
