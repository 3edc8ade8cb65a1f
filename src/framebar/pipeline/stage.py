"""Per-step models shared by the compositor and the encoder."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from framebar.ingest.resolver import FrameRef


SORT_KEY_DIGITS = 6


def sort_key_for(index: int, digits: int = SORT_KEY_DIGITS) -> str:
    """Zero-padded display/file key; ordering itself always uses the integer index."""

    return f"{index:0{digits}d}"


@dataclass(frozen=True, slots=True)
class Step:
    """One ordinal position in the output sequence."""

    index: int
    total_steps: int
    source: FrameRef

    @property
    def sort_key(self) -> str:
        return sort_key_for(self.index)


@dataclass(frozen=True, slots=True)
class FusedFrame:
    """A source frame with the bar composited onto it."""

    index: int
    path: Path


def build_steps(frames: Sequence[FrameRef]) -> list[Step]:
    """Create one immutable step per source frame, in order."""

    total_steps = len(frames) - 1
    return [
        Step(index=idx, total_steps=total_steps, source=frame)
        for idx, frame in enumerate(frames)
    ]
