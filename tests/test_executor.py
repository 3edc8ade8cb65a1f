"""End-to-end pipeline runs against the recording backend."""

from fractions import Fraction
import signal

import numpy as np
from PIL import Image
import pytest

from conftest import FakeBackend, write_image
from framebar.config.schema import BarConfig, EncodeConfig, PipelineConfig
from framebar.errors import FrameSizeMismatch, InvalidInputKind, PipelineInterrupted
from framebar.pipeline.executor import frame_delay_for, interrupt_on_signals, run_pipeline
from framebar.ingest.resolver import FrameRef, ResolvedSource


def _config(output, **bar):
    return PipelineConfig(bar=BarConfig(**bar), encode=EncodeConfig(output=output), workers=2)


class _WidthRecorder(FakeBackend):
    """Keeps the bar width rendered for each fused output."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.widths = {}

    def render_rect(self, canvas, rect, color):
        overlay = super().render_rect(canvas, rect, color)
        alpha = np.asarray(overlay)[..., 3]
        self.widths[len(self.widths)] = int(alpha.any(axis=0).sum())
        return overlay


class TestRunPipeline:
    def test_images_to_gif(self, tmp_path, three_images, backend):
        output = tmp_path / "out.gif"
        work_root = tmp_path / "ws"
        work_root.mkdir()

        result = run_pipeline(
            three_images,
            _config(output, height_percent=10),
            backend=backend,
            check_tools=False,
            workspace_root=work_root,
        )

        assert result.kind == "images"
        assert result.frame_count == 3
        assert result.frame_delay == Fraction(3, 2)
        assert result.artifact.path == output
        assert result.artifact.quantized
        assert output.read_text(encoding="utf-8").split() == [f"fused_{i:06d}.png" for i in range(3)]
        names = backend.call_names()
        assert names.count("generate_palette") == 1
        assert names.count("apply_palette") == 1
        assert list(work_root.iterdir()) == []

    def test_video_scenario_widths(self, tmp_path):
        backend = _WidthRecorder(extract_count=10, frame_rate=Fraction(25))
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"\x00")

        result = run_pipeline(
            [video],
            PipelineConfig(encode=EncodeConfig(output=tmp_path / "out.mov"), workers=1),
            backend=backend,
            check_tools=False,
        )

        assert result.kind == "video"
        assert result.frame_count == 10
        assert result.frame_delay == Fraction(1, 25)
        assert sorted(backend.widths.values()) == [0, 11, 22, 33, 44, 56, 67, 78, 89, 100]
        assert "generate_palette" not in backend.call_names()
        assert not result.artifact.quantized

    def test_progress_callbacks(self, tmp_path, three_images, backend):
        totals, steps = [], []
        run_pipeline(
            three_images,
            _config(tmp_path / "out.gif"),
            backend=backend,
            check_tools=False,
            on_start=totals.append,
            on_step=steps.append,
        )
        assert totals == [3]
        assert sorted(steps) == [0, 1, 2]

    def test_mixed_inputs_write_nothing(self, tmp_path, three_images, backend):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"\x00")
        output = tmp_path / "out.gif"
        work_root = tmp_path / "ws"
        work_root.mkdir()
        with pytest.raises(InvalidInputKind):
            run_pipeline(
                [three_images[0], video],
                _config(output),
                backend=backend,
                check_tools=False,
                workspace_root=work_root,
            )
        assert not output.exists()
        assert list(work_root.iterdir()) == []

    def test_size_mismatch_writes_nothing(self, tmp_path, three_images, backend):
        odd = write_image(tmp_path / "in" / "odd.png", (64, 64))
        output = tmp_path / "out.gif"
        with pytest.raises(FrameSizeMismatch):
            run_pipeline([*three_images, odd], _config(output), backend=backend, check_tools=False)
        assert not output.exists()

    def test_encoder_failure_writes_nothing(self, tmp_path, three_images):
        output = tmp_path / "out.gif"
        with pytest.raises(RuntimeError, match="generate_palette failed"):
            run_pipeline(
                three_images,
                _config(output),
                backend=FakeBackend(fail_on="generate_palette"),
                check_tools=False,
            )
        assert not output.exists()

    def test_invalid_config_fails_before_work(self, tmp_path, three_images, backend):
        with pytest.raises(ValueError, match="Bar height"):
            run_pipeline(
                three_images,
                _config(tmp_path / "o.gif", height_percent=0),
                backend=backend,
                check_tools=False,
            )
        assert backend.calls == []

    def test_fused_frames_carry_the_bar(self, tmp_path, three_images):
        captured = {}

        class _Keep(FakeBackend):
            def encode(self, pattern, frame_count, frame_rate, out_path):
                with Image.open(str(pattern) % 1) as image:
                    captured["middle"] = np.asarray(image.convert("RGB"))
                return super().encode(pattern, frame_count, frame_rate, out_path)

        run_pipeline(
            three_images,
            _config(tmp_path / "o.gif", height_percent=10, color="#f12b24"),
            backend=_Keep(),
            check_tools=False,
        )
        row = captured["middle"][95]
        assert (row[:50] == [241, 43, 36]).all()
        assert (row[50:] == [0, 0, 0]).all()


class TestFrameDelay:
    def test_video_uses_source_rate(self):
        source = ResolvedSource(kind="video", frames=[], frame_rate=Fraction(30000, 1001))
        assert frame_delay_for(source, PipelineConfig()) == Fraction(1001, 30000)

    def test_video_without_rate_uses_delay(self):
        source = ResolvedSource(kind="video", frames=[])
        assert frame_delay_for(source, PipelineConfig()) == Fraction(3, 2)

    def test_images_use_delay(self, tmp_path):
        source = ResolvedSource(kind="images", frames=[FrameRef(0, tmp_path)], frame_rate=Fraction(5))
        config = PipelineConfig(encode=EncodeConfig(delay_seconds=0.25))
        assert frame_delay_for(source, config) == Fraction(1, 4)


class TestInterrupts:
    def test_signal_raises_pipeline_interrupted(self):
        with pytest.raises(PipelineInterrupted, match="SIGTERM"):
            with interrupt_on_signals():
                signal.raise_signal(signal.SIGTERM)

    def test_interrupt_during_compositing_cleans_up(self, tmp_path, three_images):
        class _Interrupting(FakeBackend):
            def composite(self, source, overlay, out_path):
                fused = super().composite(source, overlay, out_path)
                if out_path.name == "fused_000000.png":
                    signal.raise_signal(signal.SIGINT)
                return fused

        backend = _Interrupting()
        before = signal.getsignal(signal.SIGINT)
        output = tmp_path / "out.gif"
        work_root = tmp_path / "ws"
        work_root.mkdir()
        with pytest.raises(PipelineInterrupted, match="SIGINT"):
            run_pipeline(
                three_images,
                PipelineConfig(encode=EncodeConfig(output=output), workers=1),
                backend=backend,
                check_tools=False,
                workspace_root=work_root,
            )
        assert list(work_root.iterdir()) == []
        assert not output.exists()
        assert "encode" not in backend.call_names()
        assert signal.getsignal(signal.SIGINT) is before

    def test_handlers_are_restored(self):
        before = signal.getsignal(signal.SIGTERM)
        with interrupt_on_signals():
            pass
        assert signal.getsignal(signal.SIGTERM) is before
