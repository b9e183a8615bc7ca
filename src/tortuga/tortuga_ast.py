"""
Defines the command tree produced by the TORTUGA parser.

Classes:
    Command:
        One node of the command tree. Primitive commands (`FORWARD`, `BACK`,
        `LEFT`, `RIGHT`, `PENUP`, `PENDOWN`, `CLEAR`, `COL`) are leaves;
        `REPEAT` nodes own the nested body in `children`.

    CommandDict:
        TypedDict representation for serializing Command instances to plain
        Python dictionaries, suitable for JSON output or debugging.

    ParseError:
        A single diagnostic collected while parsing.

    ParsedProgram:
        The parser result: the command tree plus every collected error.

Each Command tracks:
    kind (str): The canonical command name (e.g., "FORWARD", "REPEAT").
    value (float | int, optional): Distance, angle or palette index; the
        integer repeat count for REPEAT.
    children (list[Command]): The body of a REPEAT block.
    line (int): Source line number for error messages.
    col (int): Source column number for error messages.

Example:
    node = Command("REPEAT", 4, [Command("FORWARD", 100.0), Command("RIGHT", 90.0)])
"""

from typing import Any, TypedDict


class CommandDict(TypedDict, total=False):
    """
    TypedDict representation of a Command used for serialization.

    Fields:
        kind (str): The canonical command name.
        value (float | int | None): The numeric argument, if any.
        line (int): Line number in the source where the command starts.
        col (int): Column number in the source where the command starts.
        children (list[CommandDict]): Body of a REPEAT block.
    """

    kind: str
    value: float | int | None
    line: int
    col: int
    children: list["CommandDict"]


class Command:
    """
    Represents a node in the command tree.

    Args:
        kind (str): The canonical command name.
        value (float | int, optional): Numeric argument or repeat count.
        children (list[Command], optional): Body commands for REPEAT.
        line (int): Source line number (default is 0).
        col (int): Source column number (default is 0).

    Methods:
        __repr__(): Returns a structured string representation for debugging.
        __eq__(other): Checks structural equality with another Command.
        to_dict(): Converts the node (and all descendants) into a nested dictionary.
    """

    def __init__(
        self,
        kind: str,
        value: float | int | None = None,
        children: list["Command"] | None = None,
        line: int = 0,
        col: int = 0,
    ):
        self.kind = kind
        self.value = value
        self.children: list["Command"] = children or []
        self.line = line
        self.col = col

    @property
    def is_repeat(self) -> bool:
        return self.kind == "REPEAT"

    def __repr__(self) -> str:
        parts = [f"{self.kind}"]
        if self.value is not None:
            parts.append(f"value={repr(self.value)}")
        if self.children:
            preview = ", ".join(repr(c) for c in self.children[:3])
            if len(self.children) > 3:
                preview += ", ..."
            parts.append(f"children=[{preview}]")
        return f"Command({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Command):
            return False
        return (
            self.kind == other.kind
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
            and self.children == other.children
        )

    def to_dict(self) -> CommandDict:
        return {
            "kind": self.kind,
            "value": self.value,
            "line": self.line,
            "col": self.col,
            "children": [c.to_dict() for c in self.children],
        }


class ParseError:
    """A parse diagnostic with an optional 1-based source line."""

    def __init__(self, message: str, line: int | None = None):
        self.message = message
        self.line = line

    def __repr__(self) -> str:
        if self.line is None:
            return f"ParseError({self.message!r})"
        return f"ParseError({self.message!r}, line={self.line})"

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, ParseError)
            and self.message == other.message
            and self.line == other.line
        )


class ParsedProgram:
    """
    Result of one parse pass.

    Attributes:
        commands (list[Command]): The parsed command tree. May be partial when
            errors are present and must not be executed in that case.
        errors (list[ParseError]): Every diagnostic collected, in source order.
    """

    def __init__(
        self,
        commands: list[Command] | None = None,
        errors: list[ParseError] | None = None,
    ):
        self.commands: list[Command] = commands or []
        self.errors: list[ParseError] = errors or []

    @property
    def ok(self) -> bool:
        """True when the program may be executed."""
        return not self.errors

    def __repr__(self) -> str:
        return f"ParsedProgram(commands={self.commands!r}, errors={self.errors!r})"
