"""Assemble fused frames into the final GIF or QuickTime artifact."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Sequence

from framebar.media.backend import MediaBackend
from framebar.observability.logging import get_logger, log_event
from framebar.pipeline.compositor import fused_path_for, fused_pattern
from framebar.pipeline.stage import FusedFrame
from framebar.storage.atomic import publish_file


_LOGGER = get_logger("framebar.encoder")

DIRECT_CONTAINERS = {".mov"}
INTERMEDIATE_NAME = "intermediate.mov"
PALETTE_NAME = "palette.png"


@dataclass(frozen=True, slots=True)
class Artifact:
    """Published output; owned by the caller once returned."""

    path: Path
    frame_count: int
    container: str
    quantized: bool


def frame_rate_for_delay(frame_delay_seconds: float | Fraction) -> Fraction:
    """Frames per second for a per-frame delay, e.g. 1.5s -> 2/3."""

    delay = Fraction(frame_delay_seconds)
    if delay <= 0:
        raise ValueError(f"Frame delay must be > 0 seconds, got {frame_delay_seconds}")
    return (1 / delay).limit_denominator(1000)


def is_direct_container(output_path: Path) -> bool:
    return output_path.suffix.lower() in DIRECT_CONTAINERS


def _check_frames(fused_frames: Sequence[FusedFrame]) -> Path:
    if not fused_frames:
        raise ValueError("No frames to encode.")
    frame_dir = fused_frames[0].path.parent
    for position, frame in enumerate(fused_frames):
        if frame.index != position:
            raise ValueError(
                f"Fused frames must be contiguous and ordered; position {position} holds step {frame.index}"
            )
        expected = fused_path_for(frame_dir, frame.index)
        if frame.path != expected:
            raise ValueError(f"Fused frame {frame.path} does not follow the naming of {expected}")
    return frame_dir


def encode(
    fused_frames: Sequence[FusedFrame],
    frame_delay_seconds: float | Fraction,
    output_path: Path,
    backend: MediaBackend,
    workdir: Path,
) -> Artifact:
    """Encode frames in step order and publish the result to ``output_path``.

    ``.mov`` outputs keep the lossless intermediate container as-is. Every
    other suffix goes through palette generation and palette application.
    Nothing is written at ``output_path`` unless every pass succeeds.
    """

    frame_dir = _check_frames(fused_frames)
    rate = frame_rate_for_delay(frame_delay_seconds)
    workdir.mkdir(parents=True, exist_ok=True)

    intermediate = workdir / INTERMEDIATE_NAME
    backend.encode(fused_pattern(frame_dir), len(fused_frames), rate, intermediate)

    if is_direct_container(output_path):
        final = intermediate
        container = output_path.suffix.lower().lstrip(".")
        quantized = False
    else:
        palette = workdir / PALETTE_NAME
        final = workdir / f"final{output_path.suffix or '.gif'}"
        backend.generate_palette(intermediate, palette)
        backend.apply_palette(intermediate, palette, final)
        container = output_path.suffix.lower().lstrip(".") or "gif"
        quantized = True

    published = publish_file(final, output_path)
    log_event(
        _LOGGER,
        "artifact_published",
        path=str(published),
        frame_count=len(fused_frames),
        container=container,
        quantized=quantized,
        frame_rate=str(rate),
    )
    return Artifact(path=published, frame_count=len(fused_frames), container=container, quantized=quantized)
