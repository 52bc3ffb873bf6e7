from __future__ import annotations

import importlib
import sys
from typing import Any


class SearchProgressReporter:
    def on_node(self, *, depth: int, frontier: int, solved: bool) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class NoopSearchProgressReporter(SearchProgressReporter):
    def on_node(self, *, depth: int, frontier: int, solved: bool) -> None:  # noqa: ARG002
        return

    def close(self) -> None:
        return


class TqdmSearchProgressReporter(SearchProgressReporter):
    def __init__(self, *, refresh_s: float, tqdm_cls: Any) -> None:
        self._visited = 0
        self._max_depth = 0
        self._bar = tqdm_cls(
            total=None,
            desc="Nodes",
            unit="node",
            dynamic_ncols=True,
            mininterval=float(refresh_s),
            file=sys.stderr,
            leave=False,
        )

    def on_node(self, *, depth: int, frontier: int, solved: bool) -> None:
        self._visited += 1
        self._max_depth = max(self._max_depth, depth)
        self._bar.set_postfix(
            {
                "depth": str(depth),
                "max_depth": str(self._max_depth),
                "frontier": str(frontier),
                "solved": "yes" if solved else "no",
            },
            refresh=False,
        )
        self._bar.update(1)

    def close(self) -> None:
        self._bar.close()


def build_search_progress_reporter(
    *,
    enabled: bool,
    refresh_s: float,
    explicit_request: bool,
) -> SearchProgressReporter:
    if not enabled:
        return NoopSearchProgressReporter()

    try:
        tqdm_module = importlib.import_module("tqdm")
    except ImportError:
        if explicit_request:
            print(
                "Progress requested but missing dependency: tqdm. Install with "
                "pip install tqdm.",
                file=sys.stderr,
                flush=True,
            )
        return NoopSearchProgressReporter()

    tqdm_cls = getattr(tqdm_module, "tqdm", None)
    if tqdm_cls is None:
        if explicit_request:
            print(
                "Progress requested but tqdm could not be loaded. Install with "
                "pip install tqdm.",
                file=sys.stderr,
                flush=True,
            )
        return NoopSearchProgressReporter()
    return TqdmSearchProgressReporter(refresh_s=refresh_s, tqdm_cls=tqdm_cls)
