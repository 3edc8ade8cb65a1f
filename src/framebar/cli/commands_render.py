"""`framebar` render command."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Callable, Literal

import tyro

from framebar.config.schema import (
    DEFAULT_BAR_COLOR,
    DEFAULT_BAR_HEIGHT,
    DEFAULT_BAR_POSITION,
    DEFAULT_DELAY_SECONDS,
    DEFAULT_OUTPUT,
    BarConfig,
    EncodeConfig,
    PipelineConfig,
    validate_pipeline_config,
)
from framebar.errors import UsageError
from framebar.geometry.bar import BarPosition
from framebar.pipeline.executor import RunResult, run_pipeline


@dataclass(slots=True)
class RenderCommand:
    """Composite a growing progress bar onto a video or a set of images and write a GIF (or .mov)."""

    inputs: Annotated[
        tyro.conf.Positional[tuple[Path, ...]],
        tyro.conf.arg(metavar="VIDEO | IMAGE...", help="One video file, or image files in display order."),
    ]
    bar_color: Annotated[str, tyro.conf.arg(aliases=("-c",), help="Fill color of the bar.")] = DEFAULT_BAR_COLOR
    bar_height: Annotated[
        float, tyro.conf.arg(aliases=("-s",), help="Bar height in percent of the frame height.")
    ] = DEFAULT_BAR_HEIGHT
    bar_position: Annotated[
        BarPosition, tyro.conf.arg(aliases=("-p",), help="Bar placement.")
    ] = DEFAULT_BAR_POSITION
    delay: Annotated[
        float, tyro.conf.arg(aliases=("-d",), help="Seconds each image is shown (images mode).")
    ] = DEFAULT_DELAY_SECONDS
    output_file: Annotated[
        Path, tyro.conf.arg(aliases=("-o",), help="Output path; .mov skips GIF palette quantization.")
    ] = DEFAULT_OUTPUT
    workers: Annotated[
        int | None,
        tyro.conf.arg(aliases=("-w",), help="Compositing threads; defaults to the CPU count, explicit values are not capped."),
    ] = None
    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR"], tyro.conf.arg(help="Structured log level on stderr.")
    ] = "WARNING"


def to_pipeline_config(command: RenderCommand) -> PipelineConfig:
    """Map CLI flags onto a validated PipelineConfig."""

    config = PipelineConfig(
        bar=BarConfig(
            color=command.bar_color,
            height_percent=command.bar_height,
            position=command.bar_position,
        ),
        encode=EncodeConfig(
            output=command.output_file,
            delay_seconds=command.delay,
        ),
        workers=command.workers,
    )
    try:
        return validate_pipeline_config(config)
    except ValueError as exc:
        raise UsageError(str(exc)) from exc


def execute(
    command: RenderCommand,
    *,
    on_start: Callable[[int], None] | None = None,
    on_step: Callable[[int], None] | None = None,
) -> RunResult:
    if not command.inputs:
        raise UsageError("Expected one video file or one or more image files.")
    config = to_pipeline_config(command)
    return run_pipeline(
        list(command.inputs),
        config,
        on_start=on_start,
        on_step=on_step,
    )
