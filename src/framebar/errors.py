"""Error taxonomy for the progress-bar pipeline."""

from __future__ import annotations


class FramebarError(Exception):
    """Base class for every fatal pipeline failure."""


class InvalidInputKind(FramebarError):
    """Inputs are not one video or a set of images."""


class MissingDependency(FramebarError):
    """A required external tool is not installed."""

    def __init__(self, tools: list[str]) -> None:
        self.tools = list(tools)
        joined = ", ".join(self.tools)
        super().__init__(f"Missing required tools: {joined}")


class UsageError(FramebarError):
    """Unrecognized flag or wrong argument shape on the command line."""


class EncodingFailure(FramebarError):
    """An external encoder invocation failed."""

    def __init__(self, message: str, *, command: list[str] | None = None, stderr: str = "") -> None:
        self.command = list(command or [])
        self.stderr = stderr
        super().__init__(message)


class CompositingFailure(FramebarError):
    """Rendering or fusing the bar onto a frame failed."""

    def __init__(self, step_index: int, message: str) -> None:
        self.step_index = step_index
        super().__init__(f"Step {step_index}: {message}")


class FrameSizeMismatch(FramebarError):
    """A source frame does not match the canvas size of the first frame."""


class PipelineInterrupted(FramebarError):
    """The run was stopped by a signal."""
