"""Media capability interface and its default Pillow + ffmpeg implementation."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Protocol

from PIL import Image

from framebar.geometry.bar import BarRect, Canvas
from framebar.media import ffmpeg, imaging


@dataclass(frozen=True, slots=True)
class MediaInfo:
    """Probe result for a media file."""

    format_name: str
    has_video: bool
    frame_rate: Fraction | None = None
    width: int | None = None
    height: int | None = None


class MediaBackend(Protocol):
    """Every external media capability the pipeline relies on."""

    def sniff(self, path: Path) -> str | None:
        """Return a MIME-like content type (``image/png``, ``video/mp4``) or None."""
        ...

    def probe(self, path: Path) -> MediaInfo | None:
        ...

    def frame_size(self, path: Path) -> Canvas:
        ...

    def extract_frames(self, video: Path, out_dir: Path) -> list[Path]:
        ...

    def render_rect(self, canvas: Canvas, rect: BarRect, color: tuple[int, int, int, int]) -> Image.Image:
        ...

    def composite(self, source: Path, overlay: Image.Image, out_path: Path) -> Path:
        ...

    def encode(self, pattern: Path, frame_count: int, frame_rate: Fraction, out_path: Path) -> Path:
        ...

    def generate_palette(self, source: Path, palette_path: Path) -> Path:
        ...

    def apply_palette(self, source: Path, palette_path: Path, out_path: Path) -> Path:
        ...


class DefaultMediaBackend:
    """Pillow/numpy for pixels, ffmpeg/ffprobe subprocesses for containers."""

    def __init__(
        self,
        *,
        palette_sample_fps: int = 10,
        timeout_seconds: float | None = None,
    ) -> None:
        self.palette_sample_fps = palette_sample_fps
        self.timeout_seconds = timeout_seconds

    def sniff(self, path: Path) -> str | None:
        image_type = imaging.sniff_image(path)
        if image_type is not None:
            return image_type
        info = self.probe(path)
        if info is None or not info.has_video:
            return None
        if ffmpeg.is_image_format(info.format_name) or ffmpeg.is_text_format(info.format_name):
            return None
        return f"video/{info.format_name.split(',')[0]}"

    def probe(self, path: Path) -> MediaInfo | None:
        payload = ffmpeg.probe(path, timeout=self.timeout_seconds)
        if payload is None:
            return None
        return media_info_from_probe(payload)

    def frame_size(self, path: Path) -> Canvas:
        return imaging.frame_size(path)

    def extract_frames(self, video: Path, out_dir: Path) -> list[Path]:
        ffmpeg.run_ffmpeg(ffmpeg.build_extract_cmd(video, out_dir), timeout=self.timeout_seconds)
        return sorted(out_dir.glob(f"*{ffmpeg.FRAME_SUFFIX}"))

    def render_rect(self, canvas: Canvas, rect: BarRect, color: tuple[int, int, int, int]) -> Image.Image:
        return imaging.render_rect(canvas, rect, color)

    def composite(self, source: Path, overlay: Image.Image, out_path: Path) -> Path:
        return imaging.composite(source, overlay, out_path)

    def encode(self, pattern: Path, frame_count: int, frame_rate: Fraction, out_path: Path) -> Path:
        cmd = ffmpeg.build_assemble_cmd(pattern, frame_count, frame_rate, out_path)
        ffmpeg.run_ffmpeg(cmd, timeout=self.timeout_seconds)
        return out_path

    def generate_palette(self, source: Path, palette_path: Path) -> Path:
        cmd = ffmpeg.build_palettegen_cmd(source, palette_path, sample_fps=self.palette_sample_fps)
        ffmpeg.run_ffmpeg(cmd, timeout=self.timeout_seconds)
        return palette_path

    def apply_palette(self, source: Path, palette_path: Path, out_path: Path) -> Path:
        cmd = ffmpeg.build_paletteuse_cmd(source, palette_path, out_path)
        ffmpeg.run_ffmpeg(cmd, timeout=self.timeout_seconds)
        return out_path


def _parse_rate(value: object) -> Fraction | None:
    if not isinstance(value, str) or "/" not in value:
        return None
    num, den = value.split("/", maxsplit=1)
    try:
        rate = Fraction(int(num), int(den))
    except (ValueError, ZeroDivisionError):
        return None
    return rate if rate > 0 else None


def _is_moving_video(stream: dict[str, object]) -> bool:
    """True for real video streams; embedded cover art reports as video too."""

    if stream.get("codec_type") != "video":
        return False
    disposition = stream.get("disposition")
    return not (isinstance(disposition, dict) and disposition.get("attached_pic"))


def media_info_from_probe(payload: dict[str, object]) -> MediaInfo:
    """Build MediaInfo from ``ffprobe -of json`` output."""

    fmt = payload.get("format") if isinstance(payload.get("format"), dict) else {}
    streams = payload.get("streams") if isinstance(payload.get("streams"), list) else []
    video = next((s for s in streams if isinstance(s, dict) and _is_moving_video(s)), None)
    if video is None:
        return MediaInfo(format_name=str(fmt.get("format_name", "")), has_video=False)

    rate = _parse_rate(video.get("avg_frame_rate")) or _parse_rate(video.get("r_frame_rate"))
    width = video.get("width")
    height = video.get("height")
    return MediaInfo(
        format_name=str(fmt.get("format_name", "")),
        has_video=True,
        frame_rate=rate,
        width=int(width) if isinstance(width, int) else None,
        height=int(height) if isinstance(height, int) else None,
    )
