"""Board model, board drawings and rendering."""

from __future__ import annotations

from .drawing import (
    DRAWING_FORMATS,
    BoardDrawing,
    collect_board_errors,
    format_board,
    load_board,
    parse_board,
    parse_drawing,
    parse_xsb,
    validate_board,
)
from .grid import (
    DIRECTION_DELTAS,
    DIRECTIONS,
    Cell,
    ConfigError,
    Direction,
    Grid,
    InvalidBoardError,
    InvalidStateError,
    Position,
    SokobanSearchError,
)
from .state import BoardState, Move, Reachability, find_reachable
from .vision import StateImage, render_board_image, write_frames

__all__ = [
    "DIRECTION_DELTAS",
    "DIRECTIONS",
    "DRAWING_FORMATS",
    "BoardDrawing",
    "BoardState",
    "Cell",
    "ConfigError",
    "Direction",
    "Grid",
    "InvalidBoardError",
    "InvalidStateError",
    "Move",
    "Position",
    "Reachability",
    "SokobanSearchError",
    "StateImage",
    "collect_board_errors",
    "find_reachable",
    "format_board",
    "load_board",
    "parse_board",
    "parse_drawing",
    "parse_xsb",
    "render_board_image",
    "validate_board",
    "write_frames",
]
