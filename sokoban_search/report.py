from __future__ import annotations

import json
from typing import Any

from .board.drawing import format_board
from .search.engine import SearchResult


def format_elapsed(seconds: float) -> str:
    total = int(round(seconds))
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_solution(result: SearchResult, *, show_board: bool = False) -> str:
    lines: list[str] = []
    if result.solved:
        lines.append("***** Solved *****")
    elif result.cancelled:
        lines.append("***** Search stopped before a solution was found *****")
    else:
        lines.append("***** Solution not found *****")

    if result.solved:
        for index, move in enumerate(result.moves(), start=1):
            lines.append(f"{index}. {move}")
    if show_board:
        lines.append("")
        lines.append(format_board(result.state))
    return "\n".join(lines)


def result_to_dict(result: SearchResult, *, include_board: bool = True) -> dict[str, Any]:
    payload = result.to_dict()
    if not result.solved:
        payload["moves"] = []
    if include_board:
        payload["final_board"] = format_board(result.state)
    return payload


def result_to_json(result: SearchResult, *, include_board: bool = True) -> str:
    return json.dumps(result_to_dict(result, include_board=include_board), indent=2)
