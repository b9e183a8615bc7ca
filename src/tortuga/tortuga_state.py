"""
Turtle state and execution records shared by the engine and its consumers.

Classes:
    TurtlePosition: Position and heading of the turtle.
    TurtleState: Position plus pen state, color and pen size.
    DrawingInstruction: One committed movement step (`line` or `move`).
    DrawingView: Read-only view of the drawing log at one moment.
    Obstacle: Axis-aligned collision rectangle supplied by a level.
    ExecutionStatus: How a run ended.
    ExecutionResult: Status of the last run plus the step it ended on.
    EngineSnapshot: Immutable view of the engine handed to observers.
"""

from __future__ import annotations

import enum
import itertools
from collections.abc import Iterator
from dataclasses import dataclass, replace
from typing import Any, Literal

from tortuga.tortuga_constants import DEFAULT_COLOR, DEFAULT_PEN_SIZE

Point = tuple[float, float]

InstructionKind = Literal["line", "move"]
ObstacleKind = Literal["wall", "goal", "hazard"]


@dataclass(frozen=True)
class TurtlePosition:
    x: float
    y: float
    angle: float = 0.0  # degrees, 0 = screen right, counter-clockwise

    @property
    def point(self) -> Point:
        return (self.x, self.y)


@dataclass
class TurtleState:
    position: TurtlePosition
    pen_down: bool = True
    color: str = DEFAULT_COLOR
    pen_size: float = DEFAULT_PEN_SIZE

    def copy(self) -> TurtleState:
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.position.x,
            "y": self.position.y,
            "angle": self.position.angle,
            "pen_down": self.pen_down,
            "color": self.color,
            "pen_size": self.pen_size,
        }


@dataclass(frozen=True)
class DrawingInstruction:
    kind: InstructionKind
    start: Point
    end: Point
    color: str
    pen_size: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "from": list(self.start),
            "to": list(self.end),
            "color": self.color,
            "pen_size": self.pen_size,
        }


class DrawingView:
    """Read-only prefix of a drawing log.

    The engine only appends to a log and replaces it on `CLEAR` or `reset`, so
    the first `length` entries never change once a view is taken.
    """

    __slots__ = ("_log", "_length")

    def __init__(self, log: list[DrawingInstruction]):
        self._log = log
        self._length = len(log)

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index: int) -> DrawingInstruction:
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("drawing index out of range")
        return self._log[index]

    def __iter__(self) -> Iterator[DrawingInstruction]:
        return itertools.islice(self._log, self._length)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, (DrawingView, tuple, list)):
            return NotImplemented
        return len(self) == len(other) and all(a == b for a, b in zip(self, other))

    def __hash__(self) -> int:
        return hash(tuple(self))

    def __repr__(self) -> str:
        return f"DrawingView({self._length} instructions)"


@dataclass(frozen=True)
class Obstacle:
    x: float
    y: float
    width: float
    height: float
    kind: ObstacleKind = "wall"

    def contains(self, point: Point) -> bool:
        """Inclusive point-in-rectangle test."""
        px, py = point
        return (
            self.x <= px <= self.x + self.width
            and self.y <= py <= self.y + self.height
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Obstacle:
        kind = data.get("kind", data.get("type", "wall"))
        if kind not in ("wall", "goal", "hazard"):
            raise ValueError(f"Unknown obstacle kind: {kind}")
        try:
            return cls(
                float(data["x"]),
                float(data["y"]),
                float(data["width"]),
                float(data["height"]),
                kind,
            )
        except KeyError as e:
            raise ValueError(f"Obstacle is missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Obstacle fields must be numbers: {e}") from e


class ExecutionStatus(enum.Enum):
    COMPLETED = "completed"
    STOPPED = "stopped"
    BOUNDARY = "boundary"
    OBSTACLE = "obstacle"

    @property
    def succeeded(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.STOPPED)


@dataclass(frozen=True)
class ExecutionResult:
    status: ExecutionStatus
    step: int  # index into the flattened sequence where the run ended
    obstacle: Obstacle | None = None


@dataclass(frozen=True)
class EngineSnapshot:
    turtle: TurtleState
    drawing: DrawingView
    running: bool
    current_step: int
    total_steps: int = 0
