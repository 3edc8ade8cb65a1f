"""Shared fixtures: real tiny images and a recording media backend."""

from __future__ import annotations

from fractions import Fraction
from pathlib import Path
import shutil
import threading

from PIL import Image
import pytest

from framebar.geometry.bar import BarRect, Canvas
from framebar.media import imaging
from framebar.media.backend import MediaInfo


IMAGE_SUFFIXES = {".png": "image/png", ".jpg": "image/jpeg", ".jpeg": "image/jpeg"}
VIDEO_SUFFIXES = {".mp4": "video/mp4", ".mkv": "video/matroska", ".webm": "video/webm"}


def write_image(path: Path, size: tuple[int, int] = (100, 100), color: str = "white") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path)
    return path


class FakeBackend:
    """Media backend that records calls and never shells out.

    Pixel work goes through the real Pillow helpers so fused frames can be
    inspected; container steps just write marker files.
    """

    def __init__(
        self,
        *,
        extract_count: int = 10,
        canvas: Canvas = Canvas(100, 100),
        frame_rate: Fraction | None = Fraction(25),
        fail_on: str | None = None,
    ) -> None:
        self.extract_count = extract_count
        self.canvas = canvas
        self.frame_rate = frame_rate
        self.fail_on = fail_on
        self.calls: list[tuple[str, object]] = []
        self.rects: dict[int, BarRect] = {}
        self._lock = threading.Lock()

    def _record(self, name: str, payload: object) -> None:
        with self._lock:
            self.calls.append((name, payload))
        if self.fail_on == name:
            raise RuntimeError(f"{name} failed")

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def sniff(self, path: Path) -> str | None:
        suffix = path.suffix.lower()
        return IMAGE_SUFFIXES.get(suffix) or VIDEO_SUFFIXES.get(suffix)

    def probe(self, path: Path) -> MediaInfo | None:
        self._record("probe", path)
        return MediaInfo(format_name="mov,mp4", has_video=True, frame_rate=self.frame_rate)

    def frame_size(self, path: Path) -> Canvas:
        return imaging.frame_size(path)

    def extract_frames(self, video: Path, out_dir: Path) -> list[Path]:
        self._record("extract_frames", video)
        frames = []
        for idx in range(1, self.extract_count + 1):
            frames.append(
                write_image(out_dir / f"frame_{idx:06d}.png", (self.canvas.width, self.canvas.height))
            )
        return frames

    def render_rect(self, canvas: Canvas, rect: BarRect, color: tuple[int, int, int, int]) -> Image.Image:
        self._record("render_rect", rect)
        return imaging.render_rect(canvas, rect, color)

    def composite(self, source: Path, overlay: Image.Image, out_path: Path) -> Path:
        self._record("composite", out_path)
        return imaging.composite(source, overlay, out_path)

    def encode(self, pattern: Path, frame_count: int, frame_rate: Fraction, out_path: Path) -> Path:
        self._record("encode", (pattern, frame_count, frame_rate))
        names = []
        for idx in range(frame_count):
            frame = Path(str(pattern) % idx)
            assert frame.exists(), frame
            names.append(frame.name)
        out_path.write_text("\n".join(names) + "\n", encoding="utf-8")
        return out_path

    def generate_palette(self, source: Path, palette_path: Path) -> Path:
        self._record("generate_palette", source)
        palette_path.write_text("palette\n", encoding="utf-8")
        return palette_path

    def apply_palette(self, source: Path, palette_path: Path, out_path: Path) -> Path:
        self._record("apply_palette", (source, palette_path))
        shutil.copyfile(source, out_path)
        return out_path


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def three_images(tmp_path: Path) -> list[Path]:
    return [
        write_image(tmp_path / "in" / f"{name}.png", color=color)
        for name, color in (("c", "white"), ("a", "black"), ("b", "blue"))
    ]
