from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .grid import Cell, Position
from .state import BoardState


@dataclass(frozen=True, slots=True)
class StateImage:
    mime_type: str
    data_base64: str
    data_url: str
    width: int
    height: int

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data_base64)


COLORS: dict[str, str] = {
    "floor": "#f4efe2",
    "wall": "#2f3542",
    "target": "#ffd166",
    "box": "#9c6644",
    "box_on_target": "#2a9d8f",
    "mover": "#e63946",
    "grid": "#d9d2c5",
    "border": "#7a7468",
    "text": "#1f2937",
}


def _safe_inset(tile_size: int, desired: int) -> int:
    # Keep inner geometry non-inverted for small tiles.
    return min(max(desired, 0), max(0, (tile_size - 1) // 2))


def render_board_image(
    state: BoardState,
    *,
    tile_size: int = 48,
    label_grid: bool = True,
    background: str = "white",
) -> StateImage:
    """Render ``state`` as a PNG; grid labels use the board's 1-based X/Y."""
    if tile_size < 8:
        raise ValueError("tile_size must be >= 8")

    try:
        from PIL import Image, ImageDraw, ImageFont
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError(
            "Missing pillow. Install with: pip install pillow"
        ) from exc

    min_x, min_y, max_x, max_y = state.grid.bounds()
    columns = max_x - min_x + 1
    rows = max_y - min_y + 1
    board_width = columns * tile_size
    board_height = rows * tile_size
    outer_pad = max(2, tile_size // 12)
    top_gutter = tile_size if label_grid else 0
    left_gutter = tile_size if label_grid else 0

    width = left_gutter + board_width + outer_pad * 2
    height = top_gutter + board_height + outer_pad * 2
    origin_x = left_gutter + outer_pad
    origin_y = top_gutter + outer_pad

    img = Image.new("RGB", (width, height), background)
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    def tile(pos: Position) -> tuple[int, int, int, int]:
        x0 = origin_x + (pos.x - min_x) * tile_size
        y0 = origin_y + (pos.y - min_y) * tile_size
        return (x0, y0, x0 + tile_size - 1, y0 + tile_size - 1)

    box_inset = _safe_inset(tile_size, max(2, tile_size // 8))
    target_inset = _safe_inset(tile_size, max(1, tile_size // 4))
    for pos, content in state.grid.items():
        x0, y0, x1, y1 = tile(pos)
        if content is Cell.WALL:
            draw.rectangle((x0, y0, x1, y1), fill=COLORS["wall"], outline="#1b1f28")
            continue
        draw.rectangle((x0, y0, x1, y1), fill=COLORS["floor"])
        if content.has_target:
            draw.ellipse(
                (x0 + target_inset, y0 + target_inset, x1 - target_inset, y1 - target_inset),
                fill=COLORS["target"],
                outline=COLORS["border"],
            )
        if content.has_box:
            fill = COLORS["box_on_target"] if content is Cell.BOX_ON_TARGET else COLORS["box"]
            draw.rectangle(
                (x0 + box_inset, y0 + box_inset, x1 - box_inset, y1 - box_inset),
                fill=fill,
                outline=COLORS["border"],
            )

    mx0, my0, mx1, my1 = tile(state.mover)
    mover_inset = _safe_inset(tile_size, max(3, tile_size // 5))
    draw.ellipse(
        (mx0 + mover_inset, my0 + mover_inset, mx1 - mover_inset, my1 - mover_inset),
        fill=COLORS["mover"],
        outline=COLORS["border"],
    )

    for row in range(rows + 1):
        y = origin_y + row * tile_size
        draw.line((origin_x, y, origin_x + board_width, y), fill=COLORS["grid"], width=1)
    for col in range(columns + 1):
        x = origin_x + col * tile_size
        draw.line((x, origin_y, x, origin_y + board_height), fill=COLORS["grid"], width=1)

    if label_grid:
        for col in range(columns):
            label = str(min_x + col)
            x = origin_x + col * tile_size + tile_size // 2
            bbox = draw.textbbox((0, 0), label, font=font)
            label_w = bbox[2] - bbox[0]
            label_h = bbox[3] - bbox[1]
            draw.text(
                (x - label_w / 2, max(0, outer_pad + (top_gutter - label_h) / 2)),
                label,
                fill=COLORS["text"],
                font=font,
            )
        for row in range(rows):
            label = str(min_y + row)
            y = origin_y + row * tile_size + tile_size // 2
            bbox = draw.textbbox((0, 0), label, font=font)
            label_w = bbox[2] - bbox[0]
            label_h = bbox[3] - bbox[1]
            draw.text(
                (max(0, outer_pad + (left_gutter - label_w) / 2), y - label_h / 2),
                label,
                fill=COLORS["text"],
                font=font,
            )

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    data_base64 = base64.b64encode(buffer.getvalue()).decode("ascii")
    return StateImage(
        mime_type="image/png",
        data_base64=data_base64,
        data_url=f"data:image/png;base64,{data_base64}",
        width=width,
        height=height,
    )


def write_frames(
    states: Iterable[BoardState],
    out_dir: str | Path,
    *,
    prefix: str = "push",
    **kwargs: object,
) -> list[Path]:
    """Write one PNG per state as ``<prefix>_000.png``, ``<prefix>_001.png``..."""
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for index, state in enumerate(states):
        image = render_board_image(state, **kwargs)  # type: ignore[arg-type]
        frame = out_path / f"{prefix}_{index:03d}.png"
        frame.write_bytes(image.to_bytes())
        written.append(frame)
    return written
