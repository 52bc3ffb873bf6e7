from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from ..board.state import BoardState, Move
from ..config import DuplicateStrategy, SearchMode, SolverConfig
from ..progress import NoopSearchProgressReporter, SearchProgressReporter
from .deadlock import filter_moves
from .moves import generate_moves
from .tree import (
    DuplicateDetector,
    NodeHandle,
    NodeStatus,
    SearchNode,
    SearchTree,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SearchLimits:
    max_nodes: int | None = None
    time_limit_s: float | None = None

    def __post_init__(self) -> None:
        if self.max_nodes is not None and self.max_nodes < 1:
            raise ValueError("max_nodes must be >= 1")
        if self.time_limit_s is not None and self.time_limit_s <= 0:
            raise ValueError("time_limit_s must be > 0")


@dataclass(slots=True)
class SearchResult:
    tree: SearchTree
    terminal: NodeHandle
    mode: SearchMode
    cancelled: bool
    nodes_expanded: int
    elapsed_s: float

    @property
    def node(self) -> SearchNode:
        return self.tree[self.terminal]

    @property
    def status(self) -> NodeStatus:
        return self.node.status

    @property
    def solved(self) -> bool:
        return self.node.status is NodeStatus.SOLVED

    @property
    def state(self) -> BoardState:
        return self.node.state

    def moves(self) -> list[Move]:
        return self.tree.moves_to(self.terminal)

    def states(self) -> list[BoardState]:
        """Board states from the root to the terminal node."""
        path = [self.tree[h].state for h in self.tree.ancestors(self.terminal)]
        path.reverse()
        return path

    def to_dict(self) -> dict[str, Any]:
        return {
            "solved": self.solved,
            "status": self.status.value,
            "mode": self.mode,
            "cancelled": self.cancelled,
            "nodes_expanded": self.nodes_expanded,
            "tree_size": len(self.tree),
            "elapsed_s": round(self.elapsed_s, 6),
            "moves": [move.to_dict() for move in self.moves()],
        }


class SolutionSearch:
    """Build the search tree for one board, depth-first or breadth-first.

    Every node visit runs the same expansion: reachability, push
    generation, deadlock filtering, state transition, then duplicate
    pruning. Limits and ``should_stop`` are polled before each visit.
    """

    def __init__(
        self,
        root: BoardState,
        *,
        duplicate_strategy: DuplicateStrategy = "index",
        limits: SearchLimits | None = None,
        should_stop: Callable[[], bool] | None = None,
        progress: SearchProgressReporter | None = None,
    ) -> None:
        self.tree = SearchTree(root)
        self.duplicates = DuplicateDetector(self.tree, strategy=duplicate_strategy)
        self.limits = limits or SearchLimits()
        self.should_stop = should_stop
        self.progress = progress or NoopSearchProgressReporter()
        self.nodes_expanded = 0
        self._started_at: float | None = None

    def expand(self, handle: NodeHandle) -> NodeStatus:
        node = self.tree[handle]
        state = node.state
        if state.is_solved():
            node.status = NodeStatus.SOLVED
            return node.status

        node.status = NodeStatus.HAS_POTENTIAL
        reachable = state.reachable
        moves = filter_moves(state, generate_moves(state, reachable))
        candidates = [self.tree.new_node(handle, state.apply(move), move) for move in moves]
        for child in self.duplicates.filter(candidates):
            self.duplicates.register(self.tree.attach(child))

        if not node.children:
            node.status = NodeStatus.BLOCKED
        logger.debug(
            "node %d depth=%d pushes=%d kept=%d status=%s",
            handle,
            node.depth,
            len(moves),
            len(node.children),
            node.status.value,
        )
        return node.status

    def _visit(self, handle: NodeHandle, *, frontier: int) -> NodeStatus:
        status = self.expand(handle)
        self.nodes_expanded += 1
        self.progress.on_node(
            depth=self.tree[handle].depth,
            frontier=frontier,
            solved=status is NodeStatus.SOLVED,
        )
        return status

    def _stop_requested(self) -> bool:
        if (
            self.limits.max_nodes is not None
            and self.nodes_expanded >= self.limits.max_nodes
        ):
            logger.info("search stopped after %d nodes", self.nodes_expanded)
            return True
        if self.limits.time_limit_s is not None and self._started_at is not None:
            if time.monotonic() - self._started_at >= self.limits.time_limit_s:
                logger.info("search stopped after %.3fs", self.limits.time_limit_s)
                return True
        if self.should_stop is not None and self.should_stop():
            logger.info("search cancelled by caller")
            return True
        return False

    def _result(
        self, terminal: NodeHandle, *, mode: SearchMode, cancelled: bool
    ) -> SearchResult:
        elapsed = time.monotonic() - (self._started_at or time.monotonic())
        result = SearchResult(
            tree=self.tree,
            terminal=terminal,
            mode=mode,
            cancelled=cancelled,
            nodes_expanded=self.nodes_expanded,
            elapsed_s=elapsed,
        )
        logger.info(
            "%s search finished: status=%s nodes=%d tree=%d pushes=%d",
            mode,
            result.status.value,
            result.nodes_expanded,
            len(self.tree),
            len(result.moves()),
        )
        return result

    def depth_first(self) -> SearchResult:
        """Descend children in generation order; the first solved node wins.

        When nothing is solved the result is the last node visited, the same
        node a recursive descent would hand back up to the root.
        """
        self._started_at = time.monotonic()
        root = SearchTree.ROOT
        if self._stop_requested():
            return self._result(root, mode="depth-first", cancelled=True)
        if self._visit(root, frontier=0) is not NodeStatus.HAS_POTENTIAL:
            return self._result(root, mode="depth-first", cancelled=False)

        last = root
        stack: list[Iterator[NodeHandle]] = [iter(self.tree[root].children)]
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                continue
            if self._stop_requested():
                return self._result(last, mode="depth-first", cancelled=True)
            last = child
            status = self._visit(child, frontier=len(stack))
            if status is NodeStatus.SOLVED:
                return self._result(child, mode="depth-first", cancelled=False)
            if status is NodeStatus.HAS_POTENTIAL:
                stack.append(iter(self.tree[child].children))
        return self._result(last, mode="depth-first", cancelled=False)

    def breadth_first(self) -> SearchResult:
        """Expand nodes level by level; the first solved node has fewest pushes."""
        self._started_at = time.monotonic()
        last = SearchTree.ROOT
        queue: deque[NodeHandle] = deque([SearchTree.ROOT])
        while queue:
            if self._stop_requested():
                return self._result(last, mode="breadth-first", cancelled=True)
            handle = queue.popleft()
            last = handle
            status = self._visit(handle, frontier=len(queue))
            if status is NodeStatus.SOLVED:
                return self._result(handle, mode="breadth-first", cancelled=False)
            if status is NodeStatus.HAS_POTENTIAL:
                queue.extend(self.tree[handle].children)
        return self._result(last, mode="breadth-first", cancelled=False)

    def run(self, mode: SearchMode = "depth-first") -> SearchResult:
        if mode == "depth-first":
            return self.depth_first()
        if mode == "breadth-first":
            return self.breadth_first()
        raise ValueError(f"unknown search mode: {mode!r}")


def solve(
    state: BoardState,
    config: SolverConfig | None = None,
    *,
    should_stop: Callable[[], bool] | None = None,
    progress: SearchProgressReporter | None = None,
) -> SearchResult:
    config = config or SolverConfig()
    logger.info(
        "starting %s search: boxes=%d cells=%d",
        config.mode,
        state.box_count,
        len(state.grid),
    )
    search = SolutionSearch(
        state,
        duplicate_strategy=config.duplicate_strategy,
        limits=SearchLimits(
            max_nodes=config.max_nodes, time_limit_s=config.time_limit_s
        ),
        should_stop=should_stop,
        progress=progress,
    )
    return search.run(config.mode)
