from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, TypeAlias

from ..board.state import BoardState, Move
from ..config import DUPLICATE_STRATEGIES, DuplicateStrategy

NodeHandle: TypeAlias = int


class NodeStatus(Enum):
    OPEN = "open"
    HAS_POTENTIAL = "has_potential"
    SOLVED = "solved"
    BLOCKED = "blocked"


@dataclass(slots=True)
class SearchNode:
    state: BoardState
    move: Move | None
    parent: NodeHandle | None
    depth: int
    children: list[NodeHandle] = field(default_factory=list)
    status: NodeStatus = NodeStatus.OPEN


class SearchTree:
    """Arena of search nodes addressed by integer handles.

    Nodes are never removed; parents keep child handles and children keep
    their parent handle, so both the downward duplicate scan and the upward
    path walk work without object cycles.
    """

    ROOT: NodeHandle = 0

    def __init__(self, root: BoardState) -> None:
        self._nodes: list[SearchNode] = [
            SearchNode(state=root, move=None, parent=None, depth=0)
        ]

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, handle: NodeHandle) -> SearchNode:
        return self._nodes[handle]

    @property
    def root(self) -> SearchNode:
        return self._nodes[self.ROOT]

    def new_node(self, parent: NodeHandle, state: BoardState, move: Move) -> SearchNode:
        """Create a detached node; it joins the tree through ``attach``."""
        return SearchNode(
            state=state,
            move=move,
            parent=parent,
            depth=self._nodes[parent].depth + 1,
        )

    def attach(self, node: SearchNode) -> NodeHandle:
        if node.parent is None:
            raise ValueError("only the root may lack a parent")
        handle = len(self._nodes)
        self._nodes.append(node)
        self._nodes[node.parent].children.append(handle)
        return handle

    def ancestors(self, handle: NodeHandle) -> Iterator[NodeHandle]:
        """Yield ``handle`` and every ancestor up to the root."""
        current: NodeHandle | None = handle
        while current is not None:
            yield current
            current = self._nodes[current].parent

    def preorder(
        self, start: NodeHandle = ROOT, *, max_depth: int | None = None
    ) -> Iterator[NodeHandle]:
        stack = [start]
        while stack:
            handle = stack.pop()
            yield handle
            node = self._nodes[handle]
            if max_depth is not None and node.depth >= max_depth:
                continue
            stack.extend(reversed(node.children))

    def moves_to(self, handle: NodeHandle) -> list[Move]:
        moves: list[Move] = []
        for h in self.ancestors(handle):
            move = self._nodes[h].move
            if move is not None:
                moves.append(move)
        moves.reverse()
        return moves


class DuplicateDetector:
    """Discard candidate nodes whose state already appears higher in the tree.

    A candidate at depth ``d`` is compared with every attached node of depth
    below ``d``. The ``scan`` strategy walks the tree from the root; the
    ``index`` strategy answers the same question from a signature table kept
    in step with ``register``.
    """

    def __init__(self, tree: SearchTree, *, strategy: DuplicateStrategy = "index") -> None:
        if strategy not in DUPLICATE_STRATEGIES:
            raise ValueError(f"unknown duplicate strategy: {strategy!r}")
        self.tree = tree
        self.strategy = strategy
        self._shallowest: dict[BoardState, int] = {}
        self.register(SearchTree.ROOT)

    def register(self, handle: NodeHandle) -> None:
        node = self.tree[handle]
        known = self._shallowest.get(node.state)
        if known is None or node.depth < known:
            self._shallowest[node.state] = node.depth

    def is_duplicate(self, candidate: SearchNode) -> bool:
        if self.strategy == "index":
            known = self._shallowest.get(candidate.state)
            return known is not None and known < candidate.depth
        for handle in self.tree.preorder(SearchTree.ROOT, max_depth=candidate.depth - 1):
            if self.tree[handle].state == candidate.state:
                return True
        return False

    def filter(self, candidates: list[SearchNode]) -> list[SearchNode]:
        return [node for node in candidates if not self.is_duplicate(node)]
