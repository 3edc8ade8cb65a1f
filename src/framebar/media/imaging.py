"""Pillow and numpy helpers for sniffing, bar overlays and alpha compositing."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from framebar.geometry.bar import BarRect, Canvas


def sniff_image(path: Path) -> str | None:
    """Return the image MIME type if Pillow recognises the file content."""

    try:
        with Image.open(path) as image:
            fmt = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        return None
    if fmt is None:
        return None
    return Image.MIME.get(fmt, f"image/{fmt.lower()}")


def frame_size(path: Path) -> Canvas:
    with Image.open(path) as image:
        return Canvas(width=image.width, height=image.height)


def render_rect(canvas: Canvas, rect: BarRect, color: tuple[int, int, int, int]) -> Image.Image:
    """Transparent RGBA overlay with only ``rect`` filled."""

    pixels = np.zeros((canvas.height, canvas.width, 4), dtype=np.uint8)
    if not rect.is_empty:
        pixels[rect.y0:rect.y1, rect.x0:rect.x1] = np.asarray(color, dtype=np.uint8)
    return Image.fromarray(pixels)


def composite(source: Path, overlay: Image.Image, out_path: Path) -> Path:
    """Alpha-composite ``overlay`` over the frame at ``source`` and save a PNG."""

    with Image.open(source) as image:
        base = image.convert("RGBA")
    if base.size != overlay.size:
        raise ValueError(
            f"Overlay size {overlay.size[0]}x{overlay.size[1]} does not match "
            f"frame {base.size[0]}x{base.size[1]}: {source}"
        )
    fused = Image.alpha_composite(base, overlay.convert("RGBA"))
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fused.save(out_path, format="PNG")
    return out_path
