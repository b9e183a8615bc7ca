"""
Objective checks over the engine's query surface.

Level systems describe what a player has to achieve with one of the tagged
objective variants below. Each variant carries only the fields its check
needs, and `check_objective` evaluates it against the final turtle state and
the drawing log. Scoring and level bookkeeping live with the caller.

Classes:
    MinLengthObjective: Total drawn length of at least `min_length`.
    ShapeObjective: A closed shape with `sides` strokes (e.g. square, triangle).
    GoalObjective: Finish within `radius` of a goal point.
    PatternObjective: A pattern of at least `min_strokes` strokes.

Functions:
    check_objective(objective, state, drawing) -> bool
    objective_from_dict(data) -> Objective
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Union

from tortuga.tortuga_engine import calculate_distance, stroke_count, total_path_length
from tortuga.tortuga_state import DrawingInstruction, TurtleState


@dataclass(frozen=True)
class MinLengthObjective:
    min_length: float
    kind: str = "min_length"


@dataclass(frozen=True)
class ShapeObjective:
    shape: str
    sides: int
    kind: str = "shape"


@dataclass(frozen=True)
class GoalObjective:
    x: float
    y: float
    radius: float = 30.0
    kind: str = "goal"


@dataclass(frozen=True)
class PatternObjective:
    pattern: str
    min_strokes: int = 50
    kind: str = "pattern"


Objective = Union[MinLengthObjective, ShapeObjective, GoalObjective, PatternObjective]


def check_objective(
    objective: Objective,
    state: TurtleState,
    drawing: Sequence[DrawingInstruction],
) -> bool:
    """Return True when `objective` is met by the final state and drawing log."""
    if isinstance(objective, MinLengthObjective):
        return total_path_length(drawing) >= objective.min_length
    if isinstance(objective, ShapeObjective):
        return stroke_count(drawing) >= objective.sides
    if isinstance(objective, GoalObjective):
        distance = calculate_distance(state.position.point, (objective.x, objective.y))
        return distance < objective.radius
    if isinstance(objective, PatternObjective):
        return stroke_count(drawing) >= objective.min_strokes
    raise TypeError(f"Unsupported objective: {objective!r}")


def objective_from_dict(data: dict[str, Any]) -> Objective:
    """Build an objective from its tagged dictionary form.

    Raises:
        ValueError: For an unknown `kind` or missing fields.
    """
    kind = data.get("kind")
    try:
        if kind == "min_length":
            return MinLengthObjective(float(data["min_length"]))
        if kind == "shape":
            return ShapeObjective(str(data["shape"]), int(data["sides"]))
        if kind == "goal":
            return GoalObjective(
                float(data["x"]), float(data["y"]), float(data.get("radius", 30.0))
            )
        if kind == "pattern":
            return PatternObjective(
                str(data["pattern"]), int(data.get("min_strokes", 50))
            )
    except KeyError as e:
        raise ValueError(f"Objective '{kind}' is missing field {e}") from e
    raise ValueError(f"Unknown objective kind: {kind}")
