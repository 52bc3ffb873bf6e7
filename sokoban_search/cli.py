from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Callable

from .board.drawing import (
    DRAWING_FORMATS,
    BoardDrawing,
    collect_board_errors,
    load_board,
    parse_board,
)
from .board.grid import SokobanSearchError
from .board.vision import write_frames
from .config import (
    DUPLICATE_STRATEGIES,
    SEARCH_MODES,
    SolverConfig,
    load_config,
    merge_dicts,
)
from .progress import build_search_progress_reporter
from .report import format_elapsed, format_solution, result_to_json
from .search.engine import solve

logger = logging.getLogger("sokoban_search")

_BREADTH_FIRST_COMMANDS = {"bf", "bfs"}


def _read_board_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _add_board_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "board",
        nargs="?",
        default="-",
        help="Board file to read; '-' reads standard input (default).",
    )
    parser.add_argument(
        "--format",
        dest="board_format",
        choices=DRAWING_FORMATS,
        default="drawing",
        help=(
            "Board legend: 'drawing' uses # wall, * target, b box, @ box on target, "
            "& mover and ends at a 'go' line; 'xsb' uses the standard XSB symbols."
        ),
    )


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key in (
        "mode",
        "duplicate_strategy",
        "max_nodes",
        "time_limit_s",
        "progress",
        "progress_refresh_s",
    ):
        value = getattr(args, key, None)
        if value is not None:
            overrides[key] = value
    return overrides


def resolve_solver_config(
    args: argparse.Namespace, drawing: BoardDrawing | None = None
) -> SolverConfig:
    """Merge defaults, the ``--config`` file, and CLI flags (highest wins)."""
    file_config: dict[str, Any] = {}
    if args.config:
        file_config = load_config(args.config)
        file_config = file_config.get("solver", file_config)
    merged = merge_dicts(file_config, _cli_overrides(args))
    if "mode" not in merged and drawing is not None:
        # Command words other than bf keep the default mode.
        if drawing.command in _BREADTH_FIRST_COMMANDS:
            merged["mode"] = "breadth-first"
    return SolverConfig.from_mapping(merged)


def _resolve_progress(config: SolverConfig) -> tuple[bool, bool]:
    if config.progress is not None:
        return config.progress, True
    return bool(sys.stderr.isatty()), False


def solve_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="sokoban-search solve",
        description="Find a sequence of box pushes that solves a Sokoban board.",
    )
    _add_board_arguments(parser)
    parser.add_argument("--config", help="Path to JSON solver config.")
    parser.add_argument("--mode", choices=SEARCH_MODES, default=None)
    parser.add_argument(
        "--duplicate-strategy",
        choices=DUPLICATE_STRATEGIES,
        default=None,
        help="How repeated board states are detected (default: index).",
    )
    parser.add_argument(
        "--max-nodes",
        type=int,
        default=None,
        help="Stop after visiting this many search nodes.",
    )
    parser.add_argument(
        "--time-limit-s",
        type=float,
        default=None,
        help="Stop the search after this many seconds.",
    )
    parser.add_argument("--output", choices=["text", "json"], default="text")
    parser.add_argument(
        "--show-board",
        action="store_true",
        help="Print the final board after the move list.",
    )
    parser.add_argument(
        "--frames-dir",
        default=None,
        help="Write one PNG per push of the result into this directory.",
    )
    parser.add_argument(
        "--progress",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show node expansion progress. Defaults to enabled on TTY stderr.",
    )
    parser.add_argument("--progress-refresh-s", type=float, default=None)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    started = time.monotonic()
    try:
        state, drawing = load_board(
            _read_board_text(args.board), fmt=args.board_format
        )
        config = resolve_solver_config(args, drawing)
    except (SokobanSearchError, OSError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    enabled, explicit = _resolve_progress(config)
    reporter = build_search_progress_reporter(
        enabled=enabled,
        refresh_s=config.progress_refresh_s,
        explicit_request=explicit,
    )
    try:
        result = solve(state, config, progress=reporter)
    except SokobanSearchError as exc:
        logger.error("search aborted: %s", exc)
        print(str(exc), file=sys.stderr)
        return 2
    finally:
        reporter.close()

    if args.frames_dir:
        try:
            frames = write_frames(result.states(), args.frames_dir)
        except (RuntimeError, OSError) as exc:
            print(str(exc), file=sys.stderr)
            return 2
        logger.info("wrote %d frames to %s", len(frames), args.frames_dir)

    if args.output == "json":
        print(result_to_json(result))
    else:
        print(f"{config.mode} search")
        print()
        print(format_solution(result, show_board=args.show_board))
        print()
        print(f"Time (h:min:sec): {format_elapsed(time.monotonic() - started)}")
    return 0 if result.solved else 1


def validate_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="sokoban-search validate",
        description="Check that a board drawing is an enclosed, playable puzzle.",
    )
    _add_board_arguments(parser)
    args = parser.parse_args(argv)

    try:
        drawing = parse_board(_read_board_text(args.board), fmt=args.board_format)
    except (SokobanSearchError, OSError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    errors = collect_board_errors(drawing.cells, drawing.mover)
    if errors:
        print("Board validation failed:")
        for error in errors:
            print(f"- {error}")
        return 2

    state = drawing.to_state()
    print(
        f"Board validation passed: {state.box_count} boxes, "
        f"{state.boxes_on_targets} already on targets."
    )
    return 0


COMMANDS: dict[str, tuple[str, Callable[[list[str] | None], int]]] = {
    "solve": ("Solve a board and print the push sequence", solve_main),
    "validate": ("Validate a board drawing", validate_main),
}


def _print_help() -> None:
    print("sokoban-search <command> [args]\n")
    print("Commands:")
    for name, (desc, _) in COMMANDS.items():
        print(f"  {name:20s} {desc}")


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] in {"-h", "--help"}:
        _print_help()
        return 0

    command = args.pop(0)
    if command not in COMMANDS:
        print(f"Unknown command: {command}\n")
        _print_help()
        return 2

    _, handler = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
