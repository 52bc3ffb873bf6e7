from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Literal, TypeAlias

from .grid import Cell, CellTriple, InvalidBoardError, Position
from .state import BoardState

DrawingFormat: TypeAlias = Literal["drawing", "xsb"]

DRAWING_FORMATS: tuple[DrawingFormat, ...] = ("drawing", "xsb")

MOVER_SYMBOL = "&"

DRAWING_LEGEND: dict[str, Cell] = {
    " ": Cell.EMPTY,
    MOVER_SYMBOL: Cell.EMPTY,
    "#": Cell.WALL,
    "*": Cell.TARGET,
    "b": Cell.BOX,
    "@": Cell.BOX_ON_TARGET,
}

_DRAWING_SYMBOLS: dict[Cell, str] = {
    Cell.EMPTY: " ",
    Cell.WALL: "#",
    Cell.TARGET: "*",
    Cell.BOX: "b",
    Cell.BOX_ON_TARGET: "@",
}

XSB_LEGEND: dict[str, Cell] = {
    " ": Cell.EMPTY,
    "-": Cell.EMPTY,
    "_": Cell.EMPTY,
    "@": Cell.EMPTY,
    "#": Cell.WALL,
    ".": Cell.TARGET,
    "+": Cell.TARGET,
    "$": Cell.BOX,
    "*": Cell.BOX_ON_TARGET,
}

_XSB_MOVERS = {"@", "+"}


@dataclass(frozen=True, slots=True)
class BoardDrawing:
    cells: tuple[CellTriple, ...]
    mover: Position | None
    command: str | None = None

    def to_state(self) -> BoardState:
        if self.mover is None:
            raise InvalidBoardError("board drawing has no mover position")
        return BoardState.from_triples(self.cells, self.mover)


def _trim_blank_lines(lines: list[str]) -> list[str]:
    start = 0
    end = len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def _parse_rows(
    lines: list[str],
    *,
    legend: dict[str, Cell],
    movers: set[str],
) -> tuple[tuple[CellTriple, ...], Position | None]:
    cells: list[CellTriple] = []
    mover: Position | None = None
    for y, raw_line in enumerate(_trim_blank_lines(lines), start=1):
        line = raw_line.rstrip()
        # Leading blanks sit outside the playfield.
        first = len(line) - len(line.lstrip(" "))
        for x, char in enumerate(line, start=1):
            if x <= first:
                continue
            content = legend.get(char)
            if content is None:
                raise InvalidBoardError(f"invalid character {char!r} at (X-{x}, Y-{y})")
            if char in movers:
                if mover is not None:
                    raise InvalidBoardError("board drawing has multiple mover positions")
                mover = Position(x, y)
            cells.append((x, y, content))
    return tuple(cells), mover


def parse_drawing(text: str) -> BoardDrawing:
    """Parse a board drawn with ``#``, ``*``, ``b``, ``@``, ``&`` and spaces.

    Reading stops at a line holding ``go``; a word after it (``go bf``)
    is kept as the drawing's command.
    """
    lines: list[str] = []
    command: str | None = None
    for raw_line in text.splitlines():
        words = raw_line.split()
        if words and words[0].lower() == "go":
            command = " ".join(words[1:]).lower() or None
            break
        lines.append(raw_line)
    cells, mover = _parse_rows(lines, legend=DRAWING_LEGEND, movers={MOVER_SYMBOL})
    if not cells:
        raise InvalidBoardError("board drawing is empty")
    return BoardDrawing(cells=cells, mover=mover, command=command)


def parse_xsb(text: str) -> BoardDrawing:
    """Parse the first level of an XSB file; ``;`` lines are comments."""
    lines: list[str] = []
    for raw_line in text.splitlines():
        if raw_line.lstrip().startswith(";"):
            if lines:
                break
            continue
        if not raw_line.strip():
            if lines:
                break
            continue
        lines.append(raw_line)
    cells, mover = _parse_rows(lines, legend=XSB_LEGEND, movers=_XSB_MOVERS)
    if not cells:
        raise InvalidBoardError("no level found in XSB content")
    return BoardDrawing(cells=cells, mover=mover)


def parse_board(text: str, *, fmt: DrawingFormat = "drawing") -> BoardDrawing:
    if fmt == "drawing":
        return parse_drawing(text)
    if fmt == "xsb":
        return parse_xsb(text)
    raise InvalidBoardError(f"unknown board format: {fmt!r}")


def _wall_runs(row: list[tuple[int, Cell]]) -> tuple[tuple[int, int], tuple[int, int]] | None:
    if row[0][1] is not Cell.WALL or row[-1][1] is not Cell.WALL:
        return None
    lead_end = row[0][0]
    for (prev_x, _), (x, cell) in zip(row, row[1:]):
        if cell is not Cell.WALL or x != prev_x + 1:
            break
        lead_end = x
    trail_start = row[-1][0]
    for (x, cell), (next_x, _) in zip(reversed(row[:-1]), reversed(row[1:])):
        if cell is not Cell.WALL or x != next_x - 1:
            break
        trail_start = x
    return (row[0][0], lead_end), (trail_start, row[-1][0])


def _overlaps(first: tuple[int, int], second: tuple[int, int]) -> bool:
    return first[0] <= second[1] and second[0] <= first[1]


def collect_board_errors(
    cells: Iterable[CellTriple], mover: tuple[int, int] | None
) -> list[str]:
    errors: list[str] = []
    layout: dict[Position, Cell] = {}
    for x, y, content in cells:
        pos = Position(x, y)
        if pos in layout:
            errors.append(f"position {pos} is defined twice")
            continue
        layout[pos] = content

    if not layout:
        return ["board has no cells"]

    if mover is None:
        errors.append("mover position is missing")
    elif layout.get(Position(*mover)) is not Cell.EMPTY:
        errors.append(f"mover position {Position(*mover)} must be an empty cell")

    boxes = sum(1 for cell in layout.values() if cell is Cell.BOX)
    targets = sum(1 for cell in layout.values() if cell is Cell.TARGET)
    settled = sum(1 for cell in layout.values() if cell is Cell.BOX_ON_TARGET)
    if boxes + settled < 1:
        errors.append("board has no boxes")
    if boxes != targets:
        errors.append(
            f"board has {boxes + settled} boxes but {targets + settled} targets"
        )

    rows: dict[int, list[tuple[int, Cell]]] = defaultdict(list)
    for pos, content in layout.items():
        rows[pos.y].append((pos.x, content))
    ys = sorted(rows)
    missing = sorted(set(range(ys[0], ys[-1] + 1)) - set(ys))
    if missing:
        errors.append(f"rows {missing} have no cells")
        return errors

    for y in (ys[0], ys[-1]):
        if any(content is not Cell.WALL for _, content in rows[y]):
            errors.append(f"row {y} must contain only walls")

    runs: dict[int, tuple[tuple[int, int], tuple[int, int]]] = {}
    for y in ys:
        row = sorted(rows[y])
        row_runs = _wall_runs(row)
        if row_runs is None:
            errors.append(f"row {y} must start and end with a wall")
            continue
        runs[y] = row_runs

    for y in ys[:-1]:
        if y not in runs or y + 1 not in runs:
            continue
        (lead, trail), (next_lead, next_trail) = runs[y], runs[y + 1]
        if not _overlaps(lead, next_lead):
            errors.append(f"left wall is broken between rows {y} and {y + 1}")
        if not _overlaps(trail, next_trail):
            errors.append(f"right wall is broken between rows {y} and {y + 1}")
    return errors


def validate_board(cells: Iterable[CellTriple], mover: tuple[int, int] | None) -> None:
    errors = collect_board_errors(cells, mover)
    if errors:
        bullet_list = "\n".join(f"- {error}" for error in errors)
        raise InvalidBoardError(f"board validation failed:\n{bullet_list}")


def load_board(
    text: str, *, fmt: DrawingFormat = "drawing", validate: bool = True
) -> tuple[BoardState, BoardDrawing]:
    drawing = parse_board(text, fmt=fmt)
    if validate:
        validate_board(drawing.cells, drawing.mover)
    return drawing.to_state(), drawing


def format_board(state: BoardState) -> str:
    """Redraw ``state`` with the ``drawing`` legend."""
    if not len(state.grid):
        return ""
    min_x, min_y, max_x, max_y = state.grid.bounds()
    lines: list[str] = []
    for y in range(min(1, min_y), max_y + 1):
        chars = []
        for x in range(min(1, min_x), max_x + 1):
            pos = Position(x, y)
            if pos == state.mover:
                chars.append(MOVER_SYMBOL)
                continue
            content = state.get(pos)
            chars.append(_DRAWING_SYMBOLS.get(content, " "))
        lines.append("".join(chars).rstrip())
    return "\n".join(lines)
