from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Literal, TypeAlias

from .board.grid import ConfigError

SearchMode: TypeAlias = Literal["depth-first", "breadth-first"]
DuplicateStrategy: TypeAlias = Literal["index", "scan"]

SEARCH_MODES: tuple[SearchMode, ...] = ("depth-first", "breadth-first")
DUPLICATE_STRATEGIES: tuple[DuplicateStrategy, ...] = ("index", "scan")


def load_config(path: str | Path) -> dict[str, Any]:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")
    return _expand_env_vars(data)


def _expand_env_vars(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _expand_env_vars(v) for k, v in value.items()}
    return value


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {**base}
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


@dataclass(frozen=True, slots=True)
class SolverConfig:
    mode: SearchMode = "depth-first"
    duplicate_strategy: DuplicateStrategy = "index"
    max_nodes: int | None = None
    time_limit_s: float | None = None
    progress: bool | None = None
    progress_refresh_s: float = 0.25

    @classmethod
    def from_mapping(cls, raw: dict[str, Any]) -> SolverConfig:
        known = {f.name for f in fields(cls)}
        normalized = {str(key).replace("-", "_"): value for key, value in raw.items()}
        unknown = sorted(set(normalized) - known)
        if unknown:
            raise ConfigError(f"unknown solver config keys: {', '.join(unknown)}")

        mode = normalized.get("mode", "depth-first")
        if mode in {"bf", "bfs"}:
            mode = "breadth-first"
        elif mode in {"df", "dfs"}:
            mode = "depth-first"
        if mode not in SEARCH_MODES:
            raise ConfigError(
                f"mode must be one of: {', '.join(SEARCH_MODES)}; got {mode!r}"
            )

        strategy = normalized.get("duplicate_strategy", "index")
        if strategy not in DUPLICATE_STRATEGIES:
            raise ConfigError(
                "duplicate_strategy must be one of: "
                f"{', '.join(DUPLICATE_STRATEGIES)}; got {strategy!r}"
            )

        max_nodes = normalized.get("max_nodes")
        if max_nodes is not None:
            if isinstance(max_nodes, bool) or not isinstance(max_nodes, int):
                raise ConfigError("max_nodes must be an integer")
            if max_nodes < 1:
                raise ConfigError("max_nodes must be >= 1")

        time_limit_s = _optional_positive_float(
            normalized.get("time_limit_s"), name="time_limit_s"
        )
        refresh_s = _optional_positive_float(
            normalized.get("progress_refresh_s", 0.25), name="progress_refresh_s"
        )

        progress = normalized.get("progress")
        if progress is not None and not isinstance(progress, bool):
            raise ConfigError("progress must be a boolean")

        return cls(
            mode=mode,
            duplicate_strategy=strategy,
            max_nodes=max_nodes,
            time_limit_s=time_limit_s,
            progress=progress,
            progress_refresh_s=0.25 if refresh_s is None else refresh_s,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _optional_positive_float(value: Any, *, name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a positive number") from exc
    if number <= 0:
        raise ConfigError(f"{name} must be > 0")
    return number
