"""Dataclass-based configuration schema for Framebar."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from PIL import ImageColor

from framebar.geometry.bar import BAR_POSITIONS, BarPosition


DEFAULT_BAR_COLOR = "#f12b24"
DEFAULT_BAR_HEIGHT = 1.0
DEFAULT_BAR_POSITION: BarPosition = "bottom"
DEFAULT_DELAY_SECONDS = 1.5
DEFAULT_OUTPUT = Path("output.gif")


@dataclass(slots=True)
class BarConfig:
    """Appearance of the progress bar."""

    color: str = DEFAULT_BAR_COLOR
    height_percent: float = DEFAULT_BAR_HEIGHT
    position: BarPosition = DEFAULT_BAR_POSITION

    def rgba(self) -> tuple[int, int, int, int]:
        """Parse ``color`` into an opaque-by-default RGBA tuple."""

        rgb = ImageColor.getrgb(self.color)
        if len(rgb) == 4:
            return rgb  # type: ignore[return-value]
        return (rgb[0], rgb[1], rgb[2], 255)


@dataclass(slots=True)
class EncodeConfig:
    """Output encoding options."""

    output: Path = DEFAULT_OUTPUT
    delay_seconds: float = DEFAULT_DELAY_SECONDS
    palette_sample_fps: int = 10
    timeout_seconds: float | None = None


@dataclass(slots=True)
class PipelineConfig:
    """Top-level pipeline configuration."""

    bar: BarConfig = field(default_factory=BarConfig)
    encode: EncodeConfig = field(default_factory=EncodeConfig)
    workers: int | None = None


def validate_pipeline_config(config: PipelineConfig) -> PipelineConfig:
    """Check value ranges, raising ValueError on the first bad field."""

    try:
        config.bar.rgba()
    except ValueError as exc:
        raise ValueError(f"Invalid bar color '{config.bar.color}': {exc}") from exc
    if not 0 < config.bar.height_percent <= 100:
        raise ValueError(
            f"Bar height must be in (0, 100] percent, got {config.bar.height_percent}"
        )
    if config.bar.position not in BAR_POSITIONS:
        known = ", ".join(BAR_POSITIONS)
        raise ValueError(f"Unknown bar position '{config.bar.position}'. Expected one of: {known}")
    if config.encode.delay_seconds <= 0:
        raise ValueError(f"Delay must be > 0 seconds, got {config.encode.delay_seconds}")
    if config.encode.palette_sample_fps <= 0:
        raise ValueError(
            f"Palette sample rate must be > 0, got {config.encode.palette_sample_fps}"
        )
    if config.encode.timeout_seconds is not None and config.encode.timeout_seconds <= 0:
        raise ValueError(f"Timeout must be > 0 seconds, got {config.encode.timeout_seconds}")
    if config.workers is not None and config.workers < 1:
        raise ValueError(f"workers must be >= 1, got {config.workers}")
    return config
