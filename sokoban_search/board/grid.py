from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator, Literal, NamedTuple, TypeAlias

Direction: TypeAlias = Literal["up", "down", "left", "right"]

DIRECTIONS: tuple[Direction, ...] = ("up", "down", "left", "right")

DIRECTION_DELTAS: dict[Direction, tuple[int, int]] = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}

OPPOSITE_DIRECTION: dict[Direction, Direction] = {
    "up": "down",
    "down": "up",
    "left": "right",
    "right": "left",
}


class SokobanSearchError(Exception):
    """Base exception for solver errors."""


class InvalidStateError(SokobanSearchError, RuntimeError):
    """Raised when a board state violates an internal contract."""


class InvalidBoardError(SokobanSearchError, ValueError):
    """Raised when a board drawing does not describe a playable puzzle."""


class ConfigError(SokobanSearchError, ValueError):
    """Raised when solver configuration values are invalid."""


class Position(NamedTuple):
    x: int
    y: int

    def neighbor(self, direction: Direction, distance: int = 1) -> Position:
        dx, dy = DIRECTION_DELTAS[direction]
        return Position(self.x + dx * distance, self.y + dy * distance)

    def __str__(self) -> str:
        return f"(X-{self.x}, Y-{self.y})"


class Cell(Enum):
    NOT_IN_BOARD = "not_in_board"
    EMPTY = "empty"
    WALL = "wall"
    TARGET = "target"
    BOX = "box"
    BOX_ON_TARGET = "box_on_target"

    @property
    def is_walkable(self) -> bool:
        return self in (Cell.EMPTY, Cell.TARGET)

    @property
    def has_box(self) -> bool:
        return self in (Cell.BOX, Cell.BOX_ON_TARGET)

    @property
    def has_target(self) -> bool:
        return self in (Cell.TARGET, Cell.BOX_ON_TARGET)


CellTriple: TypeAlias = tuple[int, int, Cell]


class Grid:
    """Sparse playfield map; positions outside it read as ``NOT_IN_BOARD``."""

    __slots__ = ("_cells",)

    def __init__(self, cells: dict[Position, Cell] | None = None) -> None:
        self._cells: dict[Position, Cell] = {}
        for pos, cell in (cells or {}).items():
            self._store(Position(*pos), cell)

    @classmethod
    def from_triples(cls, triples: Iterable[CellTriple]) -> Grid:
        grid = cls()
        for x, y, cell in triples:
            grid._store(Position(x, y), cell)
        return grid

    def _store(self, pos: Position, cell: Cell) -> None:
        if not isinstance(cell, Cell):
            raise InvalidStateError(f"unknown cell content {cell!r} at {pos}")
        if cell is Cell.NOT_IN_BOARD:
            raise InvalidStateError(f"cannot store NOT_IN_BOARD at {pos}")
        self._cells[pos] = cell

    def with_changes(self, changes: dict[Position, Cell]) -> Grid:
        """Return a copy of this grid with ``changes`` applied."""
        clone = Grid()
        clone._cells = dict(self._cells)
        for pos, cell in changes.items():
            clone._store(pos, cell)
        return clone

    def get(self, pos: Position) -> Cell:
        return self._cells.get(pos, Cell.NOT_IN_BOARD)

    def __contains__(self, pos: object) -> bool:
        return pos in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Position]:
        return iter(self._cells)

    def items(self) -> Iterator[tuple[Position, Cell]]:
        return iter(self._cells.items())

    def count(self, *contents: Cell) -> int:
        return sum(1 for cell in self._cells.values() if cell in contents)

    def snapshot(self) -> tuple[CellTriple, ...]:
        return tuple((pos.x, pos.y, cell) for pos, cell in self._cells.items())

    def bounds(self) -> tuple[int, int, int, int]:
        """Return ``(min_x, min_y, max_x, max_y)`` of the stored cells."""
        if not self._cells:
            return (0, 0, 0, 0)
        xs = [pos.x for pos in self._cells]
        ys = [pos.y for pos in self._cells]
        return (min(xs), min(ys), max(xs), max(ys))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._cells == other._cells

    def __hash__(self) -> int:
        return hash(frozenset(self._cells.items()))

    def __repr__(self) -> str:
        return f"Grid({len(self._cells)} cells)"
