from __future__ import annotations

from typing import Callable, TypeAlias

from ..board.grid import DIRECTIONS, Cell, Direction, InvalidStateError, Position
from ..board.state import BoardState, Move, vacated_content

Lookup: TypeAlias = Callable[[Position], Cell]

_BLOCKING: frozenset[Cell] = frozenset({Cell.BOX, Cell.WALL, Cell.BOX_ON_TARGET})
_BLOCKING_DIAGONAL: frozenset[Cell] = _BLOCKING | {Cell.NOT_IN_BOARD}

_VERTICAL: tuple[Direction, Direction] = ("up", "down")
_HORIZONTAL: tuple[Direction, Direction] = ("left", "right")

_PERPENDICULAR: dict[Direction, tuple[Direction, Direction]] = {
    "up": _HORIZONTAL,
    "down": _HORIZONTAL,
    "left": _VERTICAL,
    "right": _VERTICAL,
}


def _lookup_without_box(state: BoardState, source: Position) -> Lookup:
    vacated = vacated_content(state.get(source))

    def lookup(pos: Position) -> Cell:
        if pos == source:
            return vacated
        return state.get(pos)

    return lookup


def is_corner_trap(*, lookup: Lookup, destination: Position) -> bool:
    vertical_wall = any(
        lookup(destination.neighbor(direction)) is Cell.WALL for direction in _VERTICAL
    )
    if not vertical_wall:
        return False
    return any(
        lookup(destination.neighbor(direction)) is Cell.WALL
        for direction in _HORIZONTAL
    )


def is_cluster_trap(*, lookup: Lookup, destination: Position) -> bool:
    """Check the four 2x2 windows that contain ``destination``."""
    for vertical in _VERTICAL:
        above_or_below = destination.neighbor(vertical)
        if lookup(above_or_below) not in _BLOCKING:
            continue
        for horizontal in _HORIZONTAL:
            if lookup(destination.neighbor(horizontal)) not in _BLOCKING:
                continue
            if lookup(above_or_below.neighbor(horizontal)) in _BLOCKING_DIAGONAL:
                return True
    return False


def _walk_to_wall(
    *, lookup: Lookup, start: Position, direction: Direction
) -> tuple[int, int, int]:
    steps = boxes = targets = 0
    pos = start
    while True:
        pos = pos.neighbor(direction)
        steps += 1
        content = lookup(pos)
        if content is Cell.WALL:
            steps -= 1
            return steps, boxes, targets
        if content is Cell.NOT_IN_BOARD:
            raise InvalidStateError(f"wall line from {start} leaves the board at {pos}")
        if content.has_box:
            boxes += 1
        if content.has_target:
            targets += 1


def _is_wall_run_unbroken(
    *,
    lookup: Lookup,
    destination: Position,
    wall_side: Direction,
    backward: Direction,
    forward: Direction,
    backward_steps: int,
    forward_steps: int,
) -> bool:
    behind = destination.neighbor(wall_side)
    span = [behind.neighbor(backward, step) for step in range(backward_steps, 0, -1)]
    span.append(behind)
    span.extend(behind.neighbor(forward, step) for step in range(1, forward_steps + 1))
    for pos in span:
        content = lookup(pos)
        if content is Cell.NOT_IN_BOARD:
            raise InvalidStateError(f"wall run behind {destination} leaves the board at {pos}")
        if content is not Cell.WALL:
            return False
    return True


def is_wall_line_trap(*, lookup: Lookup, destination: Position) -> bool:
    """Detect a box pushed against a gapless wall run with too few targets."""
    for wall_side in DIRECTIONS:
        if lookup(destination.neighbor(wall_side)) is not Cell.WALL:
            continue
        backward, forward = _PERPENDICULAR[wall_side]
        back_steps, back_boxes, back_targets = _walk_to_wall(
            lookup=lookup, start=destination, direction=backward
        )
        fwd_steps, fwd_boxes, fwd_targets = _walk_to_wall(
            lookup=lookup, start=destination, direction=forward
        )
        if back_boxes + fwd_boxes + 1 <= back_targets + fwd_targets:
            continue
        if _is_wall_run_unbroken(
            lookup=lookup,
            destination=destination,
            wall_side=wall_side,
            backward=backward,
            forward=forward,
            backward_steps=back_steps,
            forward_steps=fwd_steps,
        ):
            return True
    return False


def is_deadlock_move(state: BoardState, move: Move) -> bool:
    lookup = _lookup_without_box(state, move.source)
    if lookup(move.destination) is Cell.TARGET:
        return False
    if is_corner_trap(lookup=lookup, destination=move.destination):
        return True
    if is_cluster_trap(lookup=lookup, destination=move.destination):
        return True
    return is_wall_line_trap(lookup=lookup, destination=move.destination)


def filter_moves(state: BoardState, moves: list[Move]) -> list[Move]:
    return [move for move in moves if not is_deadlock_move(state, move)]
