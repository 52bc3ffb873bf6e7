"""Sokoban push-sequence solver."""

from __future__ import annotations

from .board import BoardState, Cell, Move, Position, load_board
from .config import SolverConfig
from .search import NodeStatus, SearchResult, solve

__all__ = [
    "BoardState",
    "Cell",
    "Move",
    "NodeStatus",
    "Position",
    "SearchResult",
    "SolverConfig",
    "load_board",
    "solve",
]
