"""Render the bar for each step and fuse it onto the source frame."""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
import logging
from pathlib import Path
from typing import Callable, Sequence

from framebar.config.schema import BarConfig
from framebar.errors import CompositingFailure, FrameSizeMismatch, FramebarError
from framebar.geometry.bar import Canvas, compute_bar_rect
from framebar.media.backend import MediaBackend
from framebar.observability.logging import get_logger, log_event
from framebar.pipeline.stage import SORT_KEY_DIGITS, FusedFrame, Step, sort_key_for
from framebar.workers.pool import normalize_worker_count


_LOGGER = get_logger("framebar.compositor")

FUSED_PREFIX = "fused_"
FUSED_SUFFIX = ".png"


def fused_path_for(out_dir: Path, index: int) -> Path:
    return out_dir / f"{FUSED_PREFIX}{sort_key_for(index)}{FUSED_SUFFIX}"


def fused_pattern(out_dir: Path) -> Path:
    """printf-style pattern matching every fused frame path in ``out_dir``."""

    return out_dir / f"{FUSED_PREFIX}%0{SORT_KEY_DIGITS}d{FUSED_SUFFIX}"


def composite_step(
    step: Step,
    canvas: Canvas,
    bar: BarConfig,
    color: tuple[int, int, int, int],
    backend: MediaBackend,
    out_dir: Path,
) -> FusedFrame:
    """Render and fuse one step; safe to call concurrently for distinct steps."""

    size = backend.frame_size(step.source.path)
    if size != canvas:
        raise FrameSizeMismatch(
            f"Frame {step.source.path} is {size.width}x{size.height}, "
            f"expected {canvas.width}x{canvas.height} like the first frame"
        )
    rect = compute_bar_rect(canvas, bar.height_percent, bar.position, step.index, step.total_steps)
    overlay = backend.render_rect(canvas, rect, color)
    out_path = backend.composite(step.source.path, overlay, fused_path_for(out_dir, step.index))
    log_event(
        _LOGGER,
        "step_composited",
        level=logging.DEBUG,
        step=step.index,
        bar_width=rect.x1,
        path=str(out_path),
    )
    return FusedFrame(index=step.index, path=out_path)


def composite(
    canvas: Canvas,
    bar: BarConfig,
    steps: Sequence[Step],
    backend: MediaBackend,
    out_dir: Path,
    *,
    workers: int | None = None,
    on_step: Callable[[int], None] | None = None,
) -> list[FusedFrame]:
    """Fuse the bar onto every step, returning frames sorted by step index.

    The first failing step aborts the run: steps not yet started are
    cancelled and the error is raised as CompositingFailure.
    """

    if not steps:
        return []
    color = bar.rgba()
    out_dir.mkdir(parents=True, exist_ok=True)
    max_workers = normalize_worker_count(workers, jobs=len(steps))

    fused: list[FusedFrame] = []
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="framebar")
    try:
        future_map: dict[Future[FusedFrame], Step] = {
            executor.submit(composite_step, step, canvas, bar, color, backend, out_dir): step
            for step in steps
        }
        pending = set(future_map)
        while pending:
            done, pending = wait(pending, return_when=FIRST_EXCEPTION)
            for future in done:
                step = future_map[future]
                exc = future.exception()
                if exc is None:
                    fused.append(future.result())
                    if on_step is not None:
                        on_step(step.index)
                    continue
                if isinstance(exc, FrameSizeMismatch):
                    raise exc
                if isinstance(exc, FramebarError):
                    raise CompositingFailure(step.index, str(exc)) from exc
                raise CompositingFailure(step.index, f"{type(exc).__name__}: {exc}") from exc
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    fused.sort(key=lambda item: item.index)
    log_event(_LOGGER, "compositing_finished", frame_count=len(fused), workers=max_workers)
    return fused
