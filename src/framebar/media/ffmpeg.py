"""ffmpeg / ffprobe command builders and runners."""

from __future__ import annotations

from fractions import Fraction
import json
from pathlib import Path
import subprocess
import time
from typing import Any

from framebar.errors import EncodingFailure
from framebar.observability.logging import get_logger, log_event


_LOGGER = get_logger("framebar.ffmpeg")

FFMPEG = "ffmpeg"
FFPROBE = "ffprobe"
REQUIRED_TOOLS = (FFMPEG, FFPROBE)

FRAME_PREFIX = "frame_"
FRAME_SUFFIX = ".png"
FRAME_DIGITS = 6

_BASE = [FFMPEG, "-y", "-hide_banner", "-loglevel", "error", "-nostdin"]

# Demuxers ffprobe reports for still images; these never count as video.
_IMAGE_FORMATS = {"image2", "gif", "apng", "webp_pipe"}
# Demuxers that synthesize a video stream from non-video content (text, ANSI art).
_TEXT_FORMATS = {"tty"}


def is_image_format(format_name: str) -> bool:
    names = {part.strip() for part in format_name.split(",") if part.strip()}
    if not names:
        return True
    return all(name in _IMAGE_FORMATS or name.endswith("_pipe") for name in names)


def is_text_format(format_name: str) -> bool:
    return any(part.strip() in _TEXT_FORMATS for part in format_name.split(","))


def format_rate(rate: Fraction) -> str:
    return f"{rate.numerator}/{rate.denominator}"


def build_extract_cmd(video: Path, out_dir: Path) -> list[str]:
    """Decode every video frame to ``frame_000001.png``, ``frame_000002.png``, ..."""

    pattern = out_dir / f"{FRAME_PREFIX}%0{FRAME_DIGITS}d{FRAME_SUFFIX}"
    return _BASE + ["-i", str(video), "-vsync", "passthrough", str(pattern)]


def build_assemble_cmd(
    pattern: Path,
    frame_count: int,
    frame_rate: Fraction,
    out_path: Path,
) -> list[str]:
    """Pack a numbered PNG sequence into a lossless PNG-in-QuickTime container."""

    return _BASE + [
        "-framerate",
        format_rate(frame_rate),
        "-start_number",
        "0",
        "-i",
        str(pattern),
        "-frames:v",
        str(frame_count),
        "-c:v",
        "png",
        str(out_path),
    ]


def build_palettegen_cmd(source: Path, palette_path: Path, sample_fps: int = 10) -> list[str]:
    """Pass 1: derive one optimal palette from the whole sequence."""

    filters = f"fps={sample_fps},scale=iw:-1:flags=lanczos,palettegen"
    return _BASE + ["-i", str(source), "-vf", filters, "-frames:v", "1", "-update", "1", str(palette_path)]


def build_paletteuse_cmd(source: Path, palette_path: Path, out_path: Path) -> list[str]:
    """Pass 2: remap every frame onto the palette and write the GIF."""

    graph = "[0:v]scale=iw:-1:flags=lanczos[x];[x][1:v]paletteuse"
    return _BASE + [
        "-i",
        str(source),
        "-i",
        str(palette_path),
        "-lavfi",
        graph,
        "-loop",
        "0",
        str(out_path),
    ]


def build_probe_cmd(path: Path) -> list[str]:
    return [
        FFPROBE,
        "-v",
        "error",
        "-show_entries",
        "format=format_name:stream=codec_type,avg_frame_rate,r_frame_rate,width,height"
        ":stream_disposition=attached_pic",
        "-of",
        "json",
        str(path),
    ]


def _stderr_tail(stderr: str | bytes | None, limit: int = 400) -> str:
    if stderr is None:
        return ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    text = stderr.strip()
    return text[-limit:]


def run_ffmpeg(cmd: list[str], timeout: float | None = None) -> None:
    """Run one encoder command to completion, raising EncodingFailure on error."""

    started = time.perf_counter()
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as exc:
        raise EncodingFailure(f"Encoder not found: {cmd[0]}", command=cmd) from exc
    except subprocess.TimeoutExpired as exc:
        raise EncodingFailure(
            f"{cmd[0]} timed out after {timeout}s",
            command=cmd,
            stderr=_stderr_tail(exc.stderr),
        ) from exc
    except subprocess.CalledProcessError as exc:
        tail = _stderr_tail(exc.stderr)
        detail = f": {tail}" if tail else ""
        raise EncodingFailure(
            f"{cmd[0]} exited with status {exc.returncode}{detail}",
            command=cmd,
            stderr=tail,
        ) from exc
    log_event(
        _LOGGER,
        "encode_pass",
        tool=cmd[0],
        output=cmd[-1],
        seconds=round(time.perf_counter() - started, 3),
    )


def probe(path: Path, timeout: float | None = None) -> dict[str, Any] | None:
    """Return parsed ffprobe output, or None when the file is not media ffprobe reads."""

    try:
        result = subprocess.run(
            build_probe_cmd(path),
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError:
        return None
    except FileNotFoundError as exc:
        raise EncodingFailure(f"Probe tool not found: {FFPROBE}") from exc
    except subprocess.TimeoutExpired as exc:
        raise EncodingFailure(f"{FFPROBE} timed out after {timeout}s on {path}") from exc
    try:
        payload = json.loads(result.stdout or "{}")
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None
