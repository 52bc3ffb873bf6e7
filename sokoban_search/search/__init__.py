"""Push generation, deadlock pruning and solution-tree search."""

from __future__ import annotations

from .deadlock import (
    filter_moves,
    is_cluster_trap,
    is_corner_trap,
    is_deadlock_move,
    is_wall_line_trap,
)
from .engine import SearchLimits, SearchResult, SolutionSearch, solve
from .moves import generate_moves
from .tree import DuplicateDetector, NodeStatus, SearchNode, SearchTree

__all__ = [
    "DuplicateDetector",
    "NodeStatus",
    "SearchLimits",
    "SearchNode",
    "SearchResult",
    "SearchTree",
    "SolutionSearch",
    "filter_moves",
    "generate_moves",
    "is_cluster_trap",
    "is_corner_trap",
    "is_deadlock_move",
    "is_wall_line_trap",
    "solve",
]
