import asyncio
import io
import json
import os
import traceback

from tortuga.tortuga_constants import SAMPLE_PROGRAMS
from tortuga.tortuga_engine import EngineError, TurtleEngine
from tortuga.tortuga_lexer import tokenize
from tortuga.tortuga_parser import parse_program
from tortuga.tortuga_uimap import MappingError, UserInterfaceMapper

SUGAR_PATH_ENV = "TORTUGA_SUGAR_PATH"

uimap = UserInterfaceMapper.from_canonical()


def print_traceback() -> None:
    buf = io.StringIO()
    traceback.print_exc(file=buf)
    print("[error] >>>")
    print(buf.getvalue())


def bracket_depth(line: str) -> int:
    tokens = tokenize(line)
    return tokens.count("[") - tokens.count("]")


def describe_state(engine: TurtleEngine) -> str:
    turtle = engine.turtle
    pos = turtle.position
    pen = "down" if turtle.pen_down else "up"
    return (
        f"[state] >>> x={pos.x:.2f} y={pos.y:.2f} angle={pos.angle:.2f} "
        f"pen={pen} color={turtle.color} size={turtle.pen_size} "
        f"drawing={len(engine.drawing)}"
    )


def handle_sugar_command(src: str) -> bool:
    src = src.strip()
    if not src.upper().startswith("SUGAR"):
        return False
    command = src[5:].strip()
    if command == "":
        print(uimap.report(verbose=True))
        return True
    try:
        raw_map = json.loads(command)
        if not isinstance(raw_map, dict):
            raise MappingError("Sugar must be a JSON object")
        final_mapping: dict[tuple[str, ...], str] = {
            tuple(alias.strip() for alias in key.split(",")): sym
            for key, sym in raw_map.items()
        }
        uimap.configure(final_mapping)
        print("[ok] >>> Sugar aliases updated.")
        print(
            "\n".join(
                f"{alias:>12} → {sym}" for alias, sym in sorted(uimap.session_diff().items())
            )
        )
    except (ValueError, MappingError) as e:
        print("[error] >>> Failed to configure sugar aliases:")
        print(e)
        for conflict in getattr(e, "conflicts", []):
            print(" -", conflict)
    return True


def load_sugar_from_env() -> None:
    path = os.getenv(SUGAR_PATH_ENV)
    if not path:
        return
    try:
        uimap.load_from_json(path)
        print(f"[ok] >>> Loaded sugar from env: {path}")
    except MappingError as e:
        print(f"[error] >>> Failed to load from {SUGAR_PATH_ENV}: {e}")


def run_source(engine: TurtleEngine, src: str, verbose: bool = False) -> None:
    program = parse_program(src, uimap.token_map)
    if not program.ok:
        for err in program.errors:
            print(f"[error] >>> {err}")
        return
    if verbose:
        print(f"[tree] >>> {program.commands}")
    try:
        ok = asyncio.run(engine.execute_program(program.commands))
    except EngineError:
        print_traceback()
        return
    result = engine.last_result
    if not ok and result is not None:
        print(f"[collision] >>> {result.status.value} at step {result.step}")
    if verbose:
        print(describe_state(engine))


def start_repl(verbose: bool = False, speed: int = 10) -> None:
    print("Tortuga REPL. Type 'exit' or 'quit' to leave.")
    load_sugar_from_env()
    engine = TurtleEngine(animation_speed=speed)

    while True:
        try:
            src_lines: list[str] = []
            depth = 0
            while True:
                prompt = ">>> " if not src_lines else "... "
                line = input(prompt)
                if line.strip().lower() in ("exit", "quit") and not src_lines:
                    print("Exiting Tortuga REPL.")
                    return
                src_lines.append(line)
                depth += bracket_depth(line)
                if depth <= 0:
                    break
            src = "\n".join(src_lines).strip()
            if not src:
                continue
            lowered = src.lower()
            if lowered == "verbose-mode":
                verbose = not verbose
                print(f"[mode] >>> Verbose mode {'ON' if verbose else 'OFF'}")
                continue
            if lowered == "state":
                print(describe_state(engine))
                continue
            if lowered == "reset":
                engine.reset()
                print("[ok] >>> Turtle reset.")
                continue
            if lowered == "samples":
                for name, program in SAMPLE_PROGRAMS.items():
                    first_line = program.splitlines()[0]
                    print(f"{name:>10} → {first_line}")
                continue
            if lowered.startswith("sample "):
                name = lowered.split(maxsplit=1)[1]
                if name not in SAMPLE_PROGRAMS:
                    print(f"[error] >>> No sample named: {name}")
                    continue
                run_source(engine, SAMPLE_PROGRAMS[name], verbose)
                continue
            if handle_sugar_command(src):
                continue
            run_source(engine, src, verbose)

        except (KeyboardInterrupt, EOFError):
            print("\nExiting Tortuga REPL.")
            break


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
