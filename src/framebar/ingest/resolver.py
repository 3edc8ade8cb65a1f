"""Classify inputs and build the ordered source frame list."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Literal, Sequence

from framebar.errors import InvalidInputKind
from framebar.ingest.sequence import find_missing_indices, parse_frame_index
from framebar.media.backend import MediaBackend
from framebar.observability.logging import get_logger, log_event


_LOGGER = get_logger("framebar.resolver")

SourceKind = Literal["images", "video"]


@dataclass(frozen=True, slots=True)
class FrameRef:
    frame_idx: int
    path: Path


@dataclass(frozen=True, slots=True)
class ResolvedSource:
    kind: SourceKind
    frames: list[FrameRef]
    frame_rate: Fraction | None = None

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def total_steps(self) -> int:
        return len(self.frames) - 1


def _is_image(content_type: str | None) -> bool:
    return content_type is not None and content_type.startswith("image/")


def _is_video(content_type: str | None) -> bool:
    return content_type is not None and content_type.startswith("video/")


def _check_exists(path: Path) -> None:
    if not path.exists():
        raise FileNotFoundError(f"Input does not exist: {path}")
    if not path.is_file():
        raise InvalidInputKind(f"Input is not a regular file: {path}")


def order_extracted_frames(frame_dir: Path) -> list[FrameRef]:
    """Read extracted frames back in numeric index order, rejecting gaps."""

    parsed: list[FrameRef] = []
    for child in frame_dir.iterdir():
        if not child.is_file():
            continue
        idx = parse_frame_index(child)
        if idx is None:
            continue
        parsed.append(FrameRef(frame_idx=idx, path=child))

    parsed.sort(key=lambda item: item.frame_idx)
    missing = find_missing_indices([item.frame_idx for item in parsed])
    if missing:
        joined = ", ".join(str(x) for x in missing[:20])
        suffix = "" if len(missing) <= 20 else ", ..."
        raise ValueError(f"Extracted frame sequence has gaps: {joined}{suffix}")

    # Re-key from zero so frame_idx equals the step index.
    return [FrameRef(frame_idx=pos, path=item.path) for pos, item in enumerate(parsed)]


def _resolve_video(video: Path, workdir: Path, backend: MediaBackend) -> ResolvedSource:
    info = backend.probe(video)
    backend.extract_frames(video, workdir)
    frames = order_extracted_frames(workdir)
    if not frames:
        raise InvalidInputKind(f"No frames could be extracted from video: {video}")
    log_event(_LOGGER, "frames_extracted", video=str(video), frame_count=len(frames))
    rate = info.frame_rate if info is not None else None
    return ResolvedSource(kind="video", frames=frames, frame_rate=rate)


def resolve(inputs: Sequence[Path], workdir: Path, backend: MediaBackend) -> ResolvedSource:
    """Return one video's extracted frames or the given images in argument order.

    A single input may be a video or an image; several inputs must all be
    images. Anything else raises InvalidInputKind.
    """

    if not inputs:
        raise InvalidInputKind("No input files given.")
    paths = [Path(item) for item in inputs]
    for path in paths:
        _check_exists(path)

    if len(paths) == 1:
        path = paths[0]
        content_type = backend.sniff(path)
        if _is_video(content_type):
            source = _resolve_video(path, workdir, backend)
        elif _is_image(content_type):
            source = ResolvedSource(kind="images", frames=[FrameRef(frame_idx=0, path=path)])
        else:
            raise InvalidInputKind(
                f"Input is neither a video nor an image ({content_type or 'unknown type'}): {path}"
            )
    else:
        frames: list[FrameRef] = []
        for idx, path in enumerate(paths):
            content_type = backend.sniff(path)
            if not _is_image(content_type):
                raise InvalidInputKind(
                    f"All inputs must be images when several are given; "
                    f"{path} is {content_type or 'of unknown type'}"
                )
            frames.append(FrameRef(frame_idx=idx, path=path))
        source = ResolvedSource(kind="images", frames=frames)

    log_event(
        _LOGGER,
        "source_resolved",
        kind=source.kind,
        frame_count=source.frame_count,
        frame_rate=str(source.frame_rate) if source.frame_rate is not None else None,
    )
    return source
