from __future__ import annotations

from ..board.grid import DIRECTIONS, OPPOSITE_DIRECTION
from ..board.state import BoardState, Move, Reachability


def generate_moves(state: BoardState, reachable: Reachability | None = None) -> list[Move]:
    """List every single-step push available to the mover.

    A push is legal when the cell beyond the box is empty or a target and the
    mover can reach the cell on the opposite side. Boxes are visited in
    discovery order, directions as up, down, left, right.
    """
    if reachable is None:
        reachable = state.reachable

    moves: list[Move] = []
    for box in reachable.boxes:
        for direction in DIRECTIONS:
            destination = box.neighbor(direction)
            if not state.get(destination).is_walkable:
                continue
            stand = box.neighbor(OPPOSITE_DIRECTION[direction])
            if stand not in reachable.positions:
                continue
            moves.append(Move(source=box, destination=destination))
    return moves
