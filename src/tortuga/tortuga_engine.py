"""
Execution engine for TORTUGA command trees.

The engine owns one turtle. A run flattens the command tree (every `REPEAT`
expanded into its repeated body) and then steps through the flat sequence,
checking each movement against the supplied obstacles and the canvas bounds
before committing it.

Classes:
    TurtleEngine: Owns the turtle state and the drawing log and runs programs.
    EngineError: Base class for engine contract errors.
    CommandContractError: A malformed command reached the engine.
    ExecutionInProgressError: A second run was started while one is active.
    StepBudgetExceeded: The flattened program is longer than the step budget.

Functions:
    calculate_distance, calculate_angle, total_path_length, stroke_count:
        Geometry helpers over points and drawing logs, used by objective checks.

Example:
    >>> engine = TurtleEngine()
    >>> program = parse_program("REPEAT 4 [ FD 100 RT 90 ]")
    >>> asyncio.run(engine.execute_program(program.commands))
    True
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable, Iterable, Sequence

from tortuga.tortuga_ast import Command
from tortuga.tortuga_constants import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    COLOR_NAMES,
    COLOR_PALETTE,
    DEFAULT_ANIMATION_SPEED,
    DEFAULT_PEN_SIZE,
    MAX_ANIMATION_SPEED,
    MIN_ANIMATION_SPEED,
    MOVEMENT_COMMANDS,
    REPEAT_MAX,
    REPEAT_MIN,
)
from tortuga.tortuga_state import (
    DrawingInstruction,
    DrawingView,
    EngineSnapshot,
    ExecutionResult,
    ExecutionStatus,
    Obstacle,
    Point,
    TurtlePosition,
    TurtleState,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[EngineSnapshot], None]


class EngineError(Exception):
    """Base class for engine contract violations."""


class CommandContractError(EngineError):
    """Raised when a command the parser would never produce reaches the engine.

    Attributes:
        command (Command | None): The offending command, when known.
    """

    def __init__(self, message: str, command: Command | None = None):
        super().__init__(message)
        self.command = command


class ExecutionInProgressError(EngineError):
    """Raised when `execute_program` is called while a run is still active."""


class StepBudgetExceeded(EngineError):
    """Raised before a run whose flattened length exceeds the engine's budget.

    Attributes:
        steps (int): Length of the flattened program.
        budget (int): The configured maximum.
    """

    def __init__(self, steps: int, budget: int):
        super().__init__(f"Program expands to {steps} steps, budget is {budget}")
        self.steps = steps
        self.budget = budget


def calculate_distance(start: Point, end: Point) -> float:
    return math.hypot(end[0] - start[0], end[1] - start[1])


def calculate_angle(start: Point, end: Point) -> float:
    """Heading in degrees from `start` to `end`, with screen Y pointing down."""
    return math.degrees(math.atan2(start[1] - end[1], end[0] - start[0]))


def total_path_length(
    drawing: Iterable[DrawingInstruction], kind: str | None = "line"
) -> float:
    """Sum of segment lengths; `kind=None` includes pen-up moves."""
    return sum(
        calculate_distance(inst.start, inst.end)
        for inst in drawing
        if kind is None or inst.kind == kind
    )


def stroke_count(drawing: Iterable[DrawingInstruction]) -> int:
    return sum(1 for inst in drawing if inst.kind == "line")


def normalize_angle(angle: float) -> float:
    """Map any angle into [0, 360)."""
    angle = angle % 360
    # float modulo can round a tiny negative up to exactly 360
    return 0.0 if angle >= 360 else angle


def clamp_speed(speed: int) -> int:
    return max(MIN_ANIMATION_SPEED, min(MAX_ANIMATION_SPEED, int(speed)))


class TurtleEngine:
    """Runs command trees against a single turtle.

    Attributes:
        turtle (TurtleState): Current turtle state. Mutated only by commands,
            `reset` and `set_color`.
        drawing (list[DrawingInstruction]): Append-only log of committed moves,
            replaced by an empty list on `CLEAR` and `reset`.
        is_running (bool): True while a run is active and not asked to stop.
        current_step (int): Index of the step being executed, -1 when idle.
        total_steps (int): Length of the flattened program of the current or
            last run.
        last_result (ExecutionResult | None): How the most recent run ended.
    """

    def __init__(
        self,
        canvas_width: float = CANVAS_WIDTH,
        canvas_height: float = CANVAS_HEIGHT,
        animation_speed: int = DEFAULT_ANIMATION_SPEED,
        palette: Sequence[str] = COLOR_PALETTE,
        max_steps: int | None = None,
        start_position: TurtlePosition | None = None,
    ) -> None:
        if not palette:
            raise ValueError("palette must contain at least one color")
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.colors: tuple[str, ...] = tuple(palette)
        self.max_steps = max_steps
        self.animation_speed = clamp_speed(animation_speed)
        self.turtle = TurtleState(
            start_position or self.center(), color=self.colors[0]
        )
        self.drawing: list[DrawingInstruction] = []
        self.is_running = False
        self.current_step = -1
        self.total_steps = 0
        self.last_result: ExecutionResult | None = None
        self._active = False
        self._subscribers: list[Subscriber] = []

    # -- configuration -------------------------------------------------

    def center(self) -> TurtlePosition:
        return TurtlePosition(self.canvas_width / 2, self.canvas_height / 2, 0.0)

    def reset(self, start_position: TurtlePosition | None = None) -> None:
        """Return the turtle to `start_position` (canvas centre by default).

        The pen color survives the reset; everything else goes back to defaults
        and the drawing log is emptied.
        """
        position = start_position or self.center()
        self.turtle = TurtleState(
            TurtlePosition(position.x, position.y, normalize_angle(position.angle)),
            pen_down=True,
            color=self.turtle.color,
            pen_size=DEFAULT_PEN_SIZE,
        )
        self.drawing = []
        self.is_running = False
        self.current_step = -1
        self._notify()

    def set_color(self, color: str) -> None:
        self.turtle.color = color

    def set_animation_speed(self, speed: int) -> int:
        self.animation_speed = clamp_speed(speed)
        return self.animation_speed

    @property
    def step_delay(self) -> float:
        """Seconds to wait between steps."""
        return max(1.0, self.animation_speed / 10) / 1000

    def get_color_by_index(self, index: float) -> str:
        n = len(self.colors)
        safe_index = ((math.floor(index) % n) + n) % n
        return self.colors[safe_index]

    def palette(self) -> list[tuple[int, str, str]]:
        return [
            (i, color, COLOR_NAMES[i] if i < len(COLOR_NAMES) else f"Color {i}")
            for i, color in enumerate(self.colors)
        ]

    # -- observation ---------------------------------------------------

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            turtle=self.turtle.copy(),
            drawing=DrawingView(self.drawing),
            running=self.is_running,
            current_step=self.current_step,
            total_steps=self.total_steps,
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback` for snapshots; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snap = self.snapshot()
        for callback in list(self._subscribers):
            callback(snap)

    # -- geometry ------------------------------------------------------

    def destination(self, command: Command) -> Point:
        """Where a FORWARD/BACK command would move the turtle."""
        if command.value is None:
            raise CommandContractError(f"{command.kind} without a value", command)
        distance = -command.value if command.kind == "BACK" else command.value
        pos = self.turtle.position
        radians = math.radians(pos.angle)
        return (
            pos.x + math.cos(radians) * distance,
            pos.y - math.sin(radians) * distance,
        )

    def within_bounds(self, point: Point) -> bool:
        x, y = point
        return 0 <= x <= self.canvas_width and 0 <= y <= self.canvas_height

    @staticmethod
    def find_obstacle(point: Point, obstacles: Iterable[Obstacle]) -> Obstacle | None:
        for obstacle in obstacles:
            if obstacle.contains(point):
                return obstacle
        return None

    # -- execution -----------------------------------------------------

    @classmethod
    def flatten(cls, commands: Sequence[Command]) -> list[Command]:
        """Expand every REPEAT into `count` copies of its flattened body."""
        flat: list[Command] = []
        for command in commands:
            if not command.is_repeat:
                flat.append(command)
                continue
            count = command.value
            if (
                not isinstance(count, int)
                or not REPEAT_MIN <= count <= REPEAT_MAX
                or not command.children
            ):
                raise CommandContractError(f"Malformed REPEAT: {command!r}", command)
            body = cls.flatten(command.children)
            flat.extend(body * count)
        return flat

    @classmethod
    def count_steps(cls, commands: Sequence[Command]) -> int:
        """Length of the flattened sequence, computed without expanding it."""
        total = 0
        for command in commands:
            if command.is_repeat:
                total += int(command.value or 0) * cls.count_steps(command.children)
            else:
                total += 1
        return total

    def apply_command(self, command: Command) -> bool:
        """Apply one primitive command to the turtle.

        Returns:
            False if a movement would leave the canvas; nothing is committed then.

        Raises:
            CommandContractError: For REPEAT, unknown kinds or missing values.
        """
        kind = command.kind
        turtle = self.turtle
        pos = turtle.position

        if kind in MOVEMENT_COMMANDS:
            end = self.destination(command)
            if not self.within_bounds(end):
                return False
            self.drawing.append(
                DrawingInstruction(
                    "line" if turtle.pen_down else "move",
                    pos.point,
                    end,
                    turtle.color,
                    turtle.pen_size,
                )
            )
            turtle.position = TurtlePosition(end[0], end[1], pos.angle)
        elif kind in ("LEFT", "RIGHT"):
            if command.value is None:
                raise CommandContractError(f"{kind} without a value", command)
            if kind == "LEFT":
                angle = normalize_angle(pos.angle + command.value)
            else:
                angle = normalize_angle(pos.angle - command.value + 360)
            turtle.position = TurtlePosition(pos.x, pos.y, angle)
        elif kind == "PENUP":
            turtle.pen_down = False
        elif kind == "PENDOWN":
            turtle.pen_down = True
        elif kind == "CLEAR":
            self.drawing = []
        elif kind == "COL":
            if command.value is None:
                raise CommandContractError("COL without a value", command)
            turtle.color = self.get_color_by_index(command.value)
        else:
            raise CommandContractError(f"Cannot execute {kind} as a step", command)
        return True

    def stop_execution(self) -> None:
        """Ask the active run to stop before its next step."""
        if self.is_running:
            logger.debug("stop requested at step %d", self.current_step)
        self.is_running = False

    def _finish(
        self, status: ExecutionStatus, step: int, obstacle: Obstacle | None = None
    ) -> bool:
        self.last_result = ExecutionResult(status, step, obstacle)
        logger.info("run %s at step %d of %d", status.value, step, self.total_steps)
        return status.succeeded

    async def execute_program(
        self, commands: Sequence[Command], obstacles: Iterable[Obstacle] = ()
    ) -> bool:
        """Run a parsed command tree step by step.

        Args:
            commands: A command tree from a parse pass without errors.
            obstacles: Collision rectangles; copied once for the whole run.

        Returns:
            False if a movement hit an obstacle or left the canvas, True when the
            program completed or was stopped. `last_result` tells which.

        Raises:
            ExecutionInProgressError: If another run is active on this engine.
            CommandContractError: If the tree holds a malformed command.
            StepBudgetExceeded: If `max_steps` is set and the program is longer.
        """
        if self._active:
            raise ExecutionInProgressError("A program is already running")
        snapshot = tuple(obstacles)
        if self.max_steps is not None:
            steps = self.count_steps(commands)
            if steps > self.max_steps:
                raise StepBudgetExceeded(steps, self.max_steps)
        flat = self.flatten(commands)

        failed = False
        self._active = True
        self.is_running = True
        self.current_step = 0
        self.total_steps = len(flat)
        logger.debug("running %d steps against %d obstacles", len(flat), len(snapshot))
        try:
            for index, command in enumerate(flat):
                if not self.is_running:
                    return self._finish(ExecutionStatus.STOPPED, index)
                self.current_step = index

                if command.kind in MOVEMENT_COMMANDS:
                    hit = self.find_obstacle(self.destination(command), snapshot)
                    if hit is not None:
                        return self._finish(ExecutionStatus.OBSTACLE, index, hit)

                if not self.apply_command(command):
                    return self._finish(ExecutionStatus.BOUNDARY, index)

                self._notify()
                await asyncio.sleep(self.step_delay)

            if not self.is_running:
                return self._finish(ExecutionStatus.STOPPED, len(flat))
            return self._finish(ExecutionStatus.COMPLETED, len(flat))
        except asyncio.CancelledError:
            self._finish(ExecutionStatus.STOPPED, self.current_step)
            raise
        except Exception:
            failed = True
            raise
        finally:
            self._active = False
            self.is_running = False
            self.current_step = -1
            if not failed:
                self._notify()
