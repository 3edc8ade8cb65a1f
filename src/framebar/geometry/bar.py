"""Progress bar geometry.

Maps a step in the frame sequence to the pixel rectangle of the bar drawn on
that step. Everything here is pure and cheap, so callers recompute a rectangle
per step instead of caching it.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Literal

BarPosition = Literal["top", "bottom"]

BAR_POSITIONS: tuple[str, ...] = ("top", "bottom")


@dataclass(frozen=True, slots=True)
class Canvas:
    """Pixel size shared by every frame of a run."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Canvas size must be positive, got {self.width}x{self.height}")


@dataclass(frozen=True, slots=True)
class BarRect:
    """Half-open pixel rectangle [x0, x1) x [y0, y1)."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def is_empty(self) -> bool:
        return self.x1 <= self.x0 or self.y1 <= self.y0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_bar_width(canvas_width: int, total_steps: int, step_index: int) -> int:
    """Return the bar width in pixels for one step.

    The last step always spans the full canvas and the first step carries no
    bar. With a single frame (``total_steps == 0``) both hold for index 0 and
    the full bar wins. Intermediate widths use real division before rounding.
    """

    if total_steps < 0:
        raise ValueError(f"total_steps must be >= 0, got {total_steps}")
    if step_index < 0 or step_index > total_steps:
        raise ValueError(f"step_index {step_index} outside [0, {total_steps}]")

    if step_index == total_steps:
        return canvas_width
    if step_index == 0:
        return 0
    return _round_half_up(canvas_width / total_steps * step_index)


def bar_height_px(canvas_height: int, height_percent: float) -> int:
    """Bar thickness in pixels for a percentage of the canvas height."""

    if not 0 < height_percent <= 100:
        raise ValueError(f"height_percent must be in (0, 100], got {height_percent}")
    return min(canvas_height, math.floor(canvas_height * height_percent / 100))


def compute_bar_band(
    canvas_height: int,
    height_percent: float,
    position: BarPosition,
) -> tuple[int, int]:
    """Return the vertical band ``(y_start, y_end)`` occupied by the bar."""

    px = bar_height_px(canvas_height, height_percent)
    if position == "top":
        return 0, px
    if position == "bottom":
        return canvas_height - px, canvas_height
    known = ", ".join(BAR_POSITIONS)
    raise ValueError(f"Unknown bar position '{position}'. Expected one of: {known}")


def compute_bar_rect(
    canvas: Canvas,
    height_percent: float,
    position: BarPosition,
    step_index: int,
    total_steps: int,
) -> BarRect:
    """Full bar rectangle for one step on a canvas."""

    width = compute_bar_width(canvas.width, total_steps, step_index)
    y_start, y_end = compute_bar_band(canvas.height, height_percent, position)
    return BarRect(x0=0, y0=y_start, x1=width, y1=y_end)
