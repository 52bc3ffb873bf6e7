from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable

from .grid import (
    DIRECTIONS,
    Cell,
    CellTriple,
    Direction,
    Grid,
    InvalidStateError,
    Position,
)

_VACATED: dict[Cell, Cell] = {
    Cell.BOX: Cell.EMPTY,
    Cell.BOX_ON_TARGET: Cell.TARGET,
}

_FILLED: dict[Cell, Cell] = {
    Cell.EMPTY: Cell.BOX,
    Cell.TARGET: Cell.BOX_ON_TARGET,
}


def vacated_content(cell: Cell) -> Cell:
    """Content left behind when a box is pushed off ``cell``."""
    try:
        return _VACATED[cell]
    except KeyError:
        raise InvalidStateError(f"only a box can be moved, found {cell.name}") from None


def filled_content(cell: Cell) -> Cell:
    """Content produced when a box is pushed onto ``cell``."""
    try:
        return _FILLED[cell]
    except KeyError:
        raise InvalidStateError(
            f"only empty or target cells can accept a box, found {cell.name}"
        ) from None


@dataclass(frozen=True, slots=True)
class Move:
    source: Position
    destination: Position

    @property
    def direction(self) -> Direction:
        dx = self.destination.x - self.source.x
        dy = self.destination.y - self.source.y
        for direction in DIRECTIONS:
            if self.source.neighbor(direction) == self.destination:
                return direction
        raise InvalidStateError(f"move {self} is not a single orthogonal step ({dx}, {dy})")

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": list(self.source),
            "to": list(self.destination),
            "direction": self.direction,
        }

    def __str__(self) -> str:
        return f"{self.source} -> {self.destination}"


@dataclass(frozen=True, slots=True)
class Reachability:
    positions: frozenset[Position]
    boxes: tuple[Position, ...]


def find_reachable(grid: Grid, mover: Position) -> Reachability:
    """Flood-fill the walkable region around ``mover``.

    The mover's own cell counts as reachable. Boxes bordering the region are
    collected in discovery order but never expanded.
    """
    visited: set[Position] = {mover}
    boxes: dict[Position, None] = {}
    queue: deque[Position] = deque([mover])
    while queue:
        current = queue.popleft()
        for direction in DIRECTIONS:
            nxt = current.neighbor(direction)
            content = grid.get(nxt)
            if content.is_walkable:
                if nxt not in visited:
                    visited.add(nxt)
                    queue.append(nxt)
            elif content.has_box:
                boxes.setdefault(nxt, None)
    return Reachability(positions=frozenset(visited), boxes=tuple(boxes))


@dataclass(frozen=True, slots=True, eq=False)
class BoardState:
    """Immutable board layout plus the mover's position.

    Two states are equal when their cell layouts match and the mover can
    reach the same set of positions in both. Box placement alone is not
    enough: the mover may be sealed on a different side of the boxes.
    """

    grid: Grid
    mover: Position
    _reachable: Reachability | None = field(
        default=None, init=False, repr=False, compare=False
    )
    _signature: tuple[frozenset[tuple[Position, Cell]], frozenset[Position]] | None = (
        field(default=None, init=False, repr=False, compare=False)
    )

    @classmethod
    def from_triples(
        cls, triples: Iterable[CellTriple], mover: tuple[int, int]
    ) -> BoardState:
        return cls(grid=Grid.from_triples(triples), mover=Position(*mover))

    def get(self, pos: Position) -> Cell:
        return self.grid.get(pos)

    @property
    def reachable(self) -> Reachability:
        if self._reachable is None:
            object.__setattr__(self, "_reachable", find_reachable(self.grid, self.mover))
        return self._reachable  # type: ignore[return-value]

    @property
    def signature(
        self,
    ) -> tuple[frozenset[tuple[Position, Cell]], frozenset[Position]]:
        if self._signature is None:
            layout = frozenset(self.grid.items())
            object.__setattr__(self, "_signature", (layout, self.reachable.positions))
        return self._signature  # type: ignore[return-value]

    @property
    def box_count(self) -> int:
        return self.grid.count(Cell.BOX, Cell.BOX_ON_TARGET)

    @property
    def target_count(self) -> int:
        return self.grid.count(Cell.TARGET, Cell.BOX_ON_TARGET)

    @property
    def boxes_on_targets(self) -> int:
        return self.grid.count(Cell.BOX_ON_TARGET)

    def is_solved(self) -> bool:
        return self.grid.count(Cell.BOX) == 0

    def apply(self, move: Move) -> BoardState:
        """Return the state after pushing the box at ``move.source``.

        The mover ends on the cell the box left.
        """
        changes = {
            move.source: vacated_content(self.grid.get(move.source)),
            move.destination: filled_content(self.grid.get(move.destination)),
        }
        return BoardState(grid=self.grid.with_changes(changes), mover=move.source)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoardState):
            return NotImplemented
        if self is other:
            return True
        if self.grid != other.grid:
            return False
        return self.reachable.positions == other.reachable.positions

    def __hash__(self) -> int:
        return hash(self.signature)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mover": list(self.mover),
            "cells": [
                [x, y, cell.value] for x, y, cell in sorted(self.grid.snapshot(), key=_yx)
            ],
        }


def _yx(triple: CellTriple) -> tuple[int, int]:
    return (triple[1], triple[0])
