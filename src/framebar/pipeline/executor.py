"""End-to-end pipeline run: resolve, composite, encode, publish."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from fractions import Fraction
import logging
from pathlib import Path
import signal
import threading
import time
from typing import Callable, Iterator, Sequence

from framebar.config.schema import PipelineConfig, validate_pipeline_config
from framebar.errors import PipelineInterrupted
from framebar.ingest.resolver import ResolvedSource, resolve
from framebar.media.backend import DefaultMediaBackend, MediaBackend
from framebar.media.deps import check_dependencies
from framebar.observability.logging import get_logger, log_event
from framebar.pipeline.compositor import composite
from framebar.pipeline.encoder import Artifact, encode
from framebar.pipeline.stage import build_steps
from framebar.storage.workspace import Workspace


_LOGGER = get_logger("framebar.executor")


@dataclass(frozen=True, slots=True)
class RunResult:
    artifact: Artifact
    kind: str
    frame_count: int
    frame_delay: Fraction
    seconds: float


def frame_delay_for(source: ResolvedSource, config: PipelineConfig) -> Fraction:
    """Video runs keep the source rate; image runs use the configured delay."""

    if source.kind == "video" and source.frame_rate is not None:
        return 1 / source.frame_rate
    return Fraction(config.encode.delay_seconds).limit_denominator(1000)


@contextmanager
def interrupt_on_signals() -> Iterator[None]:
    """Turn SIGINT/SIGTERM into PipelineInterrupted while the block runs."""

    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handle_signal(signum: int, _frame: object) -> None:
        raise PipelineInterrupted(f"Interrupted by signal {signal.Signals(signum).name}")

    previous = {
        sig: signal.signal(sig, _handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def run_pipeline(
    inputs: Sequence[Path],
    config: PipelineConfig,
    *,
    backend: MediaBackend | None = None,
    check_tools: bool = True,
    workspace_root: Path | None = None,
    on_start: Callable[[int], None] | None = None,
    on_step: Callable[[int], None] | None = None,
) -> RunResult:
    """Produce the progress-bar artifact for ``inputs`` at ``config.encode.output``.

    All intermediate files live in a scoped workspace that is removed on
    success, failure or interruption. The output path is only touched by the
    final atomic publish.
    """

    validate_pipeline_config(config)
    if check_tools:
        check_dependencies()
    if backend is None:
        backend = DefaultMediaBackend(
            palette_sample_fps=config.encode.palette_sample_fps,
            timeout_seconds=config.encode.timeout_seconds,
        )

    started = time.perf_counter()
    log_event(
        _LOGGER,
        "pipeline_started",
        inputs=[str(path) for path in inputs],
        output=str(config.encode.output),
    )
    try:
        with interrupt_on_signals(), Workspace(base_dir=workspace_root) as paths:
            source = resolve(inputs, paths.source, backend)
            canvas = backend.frame_size(source.frames[0].path)
            steps = build_steps(source.frames)
            if on_start is not None:
                on_start(len(steps))
            fused = composite(
                canvas,
                config.bar,
                steps,
                backend,
                paths.fused,
                workers=config.workers,
                on_step=on_step,
            )
            delay = frame_delay_for(source, config)
            artifact = encode(fused, delay, config.encode.output, backend, paths.encode)
    except BaseException as exc:
        log_event(
            _LOGGER,
            "pipeline_failed",
            level=logging.ERROR,
            error=f"{type(exc).__name__}: {exc}",
        )
        raise

    return RunResult(
        artifact=artifact,
        kind=source.kind,
        frame_count=len(fused),
        frame_delay=delay,
        seconds=time.perf_counter() - started,
    )
