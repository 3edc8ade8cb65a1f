"""Tyro CLI application entrypoint."""

from __future__ import annotations

import sys

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.text import Text
import tyro

from framebar.cli import commands_render
from framebar.errors import FramebarError
from framebar.observability.logging import configure_logging


EXIT_FAILURE = 1


def _error_console() -> Console:
    return Console(stderr=True)


def parse_args(argv: list[str] | None = None) -> commands_render.RenderCommand:
    """Parse CLI arguments; bad flags exit with status 1, ``--help`` with 0."""

    try:
        return tyro.cli(commands_render.RenderCommand, args=argv)
    except SystemExit as exc:
        if exc.code in (0, None):
            raise
        raise SystemExit(EXIT_FAILURE) from exc


def run(command: commands_render.RenderCommand, console: Console) -> int:
    """Run one render with a progress display; return the process exit code."""

    progress = Progress(
        TextColumn("compositing"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    task = progress.add_task("compositing", total=None)

    def _on_start(total: int) -> None:
        progress.update(task, total=total)

    def _on_step(_index: int) -> None:
        progress.advance(task)

    try:
        with progress:
            result = commands_render.execute(command, on_start=_on_start, on_step=_on_step)
    except (FramebarError, OSError, ValueError) as exc:
        console.print(Text.assemble(("error: ", "bold red"), str(exc)))
        return EXIT_FAILURE

    artifact = result.artifact
    console.print(
        Text(
            f"wrote {artifact.path} frames={artifact.frame_count} "
            f"container={artifact.container} seconds={result.seconds:.1f}"
        )
    )
    return 0


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run the pipeline."""

    command = parse_args(argv)
    configure_logging(command.log_level)
    code = run(command, _error_console())
    if code:
        sys.exit(code)
