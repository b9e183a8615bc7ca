"""
TORTUGA CLI Entrypoint.

This module provides the command-line interface for running TORTUGA programs
without a canvas. It parses a program, runs it on a fresh engine and reports
the outcome, the final turtle state and optionally the full drawing log.

Features:
    - Read source from `.turtle` files or inline strings.
    - Lex, parse and report every parse error in one pass.
    - Run against obstacles loaded from a JSON file.
    - Load user command aliases from a JSON sugar file.
    - Print the result as text or JSON.
    - Launch an interactive REPL.

Example usage:
    tortuga square.turtle
    tortuga -s "REPEAT 4 [ FD 100 RT 90 ]" --json
    tortuga maze.turtle --start 50,150,0 --obstacles maze.json
    tortuga --repl

Exit codes:
    0: program completed (or was stopped)
    1: parse errors, nothing executed
    2: the turtle hit an obstacle or the canvas edge
"""

import argparse
import asyncio
import json
import logging
import sys

from tortuga.tortuga_ast import ParsedProgram
from tortuga.tortuga_engine import TurtleEngine
from tortuga.tortuga_parser import parse_program
from tortuga.tortuga_state import Obstacle, TurtlePosition
from tortuga.tortuga_uimap import MappingError, UserInterfaceMapper

EXIT_OK = 0
EXIT_PARSE_ERROR = 1
EXIT_COLLISION = 2


def parse_start(text: str) -> TurtlePosition:
    """Parse `X,Y[,ANGLE]` into a start position.

    Raises:
        ValueError: If the text does not hold two or three numbers.
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) not in (2, 3):
        raise ValueError(f"Start position must be X,Y[,ANGLE], got {text!r}")
    numbers = [float(p) for p in parts]
    return TurtlePosition(*numbers)


def load_obstacles(path: str) -> list[Obstacle]:
    """Load a JSON list of obstacle objects.

    Raises:
        ValueError: If the file is not a list of valid obstacles.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError("Obstacle file must contain a JSON list")
    obstacles: list[Obstacle] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"Obstacle #{index} must be a JSON object")
        obstacles.append(Obstacle.from_dict(item))
    return obstacles


def format_errors(program: ParsedProgram) -> str:
    return "\n".join(f"[error] >>> {err}" for err in program.errors)


def run_tortuga(
    source: str,
    is_string: bool = False,
    speed: int = 10,
    start: TurtlePosition | None = None,
    obstacles: list[Obstacle] | None = None,
    mapper: UserInterfaceMapper | None = None,
    as_json: bool = False,
) -> int:
    """
    Run a TORTUGA program: lex, parse, execute and print the outcome.

    Args:
        source (str): Program text or path to a `.turtle` file.
        is_string (bool): If True, treats `source` as program text.
        speed (int): Animation speed in milliseconds (clamped to [10, 1000]).
        start (TurtlePosition | None): Start position, canvas centre if None.
        obstacles (list[Obstacle] | None): Collision rectangles for the run.
        mapper (UserInterfaceMapper | None): Alias table, defaults to the canonical one.
        as_json (bool): Print a JSON document instead of text.

    Returns:
        int: Process exit code.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.turtle'.
    """
    if not is_string and not source.endswith(".turtle"):
        raise ValueError("Only .turtle files are supported.")
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    mapper = mapper or UserInterfaceMapper.from_canonical()
    program = parse_program(source, mapper.token_map)

    if not program.ok:
        if as_json:
            payload = {
                "status": "parse_error",
                "errors": [{"message": e.message, "line": e.line} for e in program.errors],
            }
            print(json.dumps(payload, indent=2))
        else:
            print(format_errors(program))
        return EXIT_PARSE_ERROR

    engine = TurtleEngine(animation_speed=speed, start_position=start)
    ok = asyncio.run(engine.execute_program(program.commands, obstacles or []))
    result = engine.last_result
    assert result is not None  # for mypy

    if as_json:
        payload = {
            "status": result.status.value,
            "step": result.step,
            "turtle": engine.turtle.to_dict(),
            "drawing": [inst.to_dict() for inst in engine.drawing],
        }
        print(json.dumps(payload, indent=2))
    else:
        pos = engine.turtle.position
        if ok:
            print(f"[ok] >>> {result.status.value} after {engine.total_steps} steps")
        else:
            print(f"[collision] >>> {result.status.value} at step {result.step}")
        print(
            f"turtle at ({pos.x:.2f}, {pos.y:.2f}) heading {pos.angle:.2f}°, "
            f"{len(engine.drawing)} drawing instructions"
        )
    return EXIT_OK if ok else EXIT_COLLISION


def main() -> int:
    """
    Entry point for the TORTUGA CLI.

    - Launches the REPL if no arguments are passed or `--repl` is specified.
    - Otherwise runs the given program and returns its exit code.
    """
    if len(sys.argv) == 1:
        from tortuga.tortuga_repl import start_repl

        start_repl()
        return EXIT_OK
    parser = argparse.ArgumentParser(prog="tortuga")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "--speed", type=int, default=10, help="Milliseconds per step (10-1000)"
    )
    parser.add_argument("--start", metavar="X,Y[,ANGLE]", help="Start position")
    parser.add_argument(
        "--obstacles", metavar="FILE", help="JSON list of obstacle rectangles"
    )
    parser.add_argument("--sugar", metavar="FILE", help="JSON command alias file")
    parser.add_argument(
        "--json", dest="as_json", action="store_true", help="Print a JSON report"
    )
    parser.add_argument(
        "--repl", action="store_true", help="Launch interactive REPL instead"
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.repl or args.source is None:
        from tortuga.tortuga_repl import start_repl

        start_repl(verbose=args.verbose)
        return EXIT_OK

    mapper = UserInterfaceMapper.from_canonical()
    try:
        if args.sugar:
            mapper.load_from_json(args.sugar)
        start = parse_start(args.start) if args.start else None
        obstacles = load_obstacles(args.obstacles) if args.obstacles else None
        return run_tortuga(
            source=args.source,
            is_string=args.string,
            speed=args.speed,
            start=start,
            obstacles=obstacles,
            mapper=mapper,
            as_json=args.as_json,
        )
    except (OSError, ValueError, MappingError) as e:
        print(f"tortuga: {e}", file=sys.stderr)
        return EXIT_PARSE_ERROR


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    sys.exit(main())
