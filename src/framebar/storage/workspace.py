"""Scoped temporary storage for one pipeline run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import shutil
import tempfile
from types import TracebackType

from framebar.observability.logging import get_logger, log_event


_LOGGER = get_logger("framebar.workspace")


@dataclass(frozen=True, slots=True)
class WorkspacePaths:
    """Directory layout inside a run workspace."""

    root: Path
    source: Path
    fused: Path
    encode: Path


class Workspace:
    """Temp directory tree removed on exit, whatever the outcome.

    ``source`` receives extracted video frames, ``fused`` the composited
    frames and ``encode`` intermediate containers and palettes.
    """

    def __init__(self, base_dir: Path | None = None, prefix: str = "framebar_") -> None:
        self.base_dir = base_dir
        self.prefix = prefix
        self._paths: WorkspacePaths | None = None

    @property
    def paths(self) -> WorkspacePaths:
        if self._paths is None:
            raise RuntimeError("Workspace is not open.")
        return self._paths

    def open(self) -> WorkspacePaths:
        if self._paths is not None:
            return self._paths
        base = str(self.base_dir) if self.base_dir is not None else None
        root = Path(tempfile.mkdtemp(prefix=self.prefix, dir=base))
        paths = WorkspacePaths(
            root=root,
            source=root / "source",
            fused=root / "fused",
            encode=root / "encode",
        )
        for directory in (paths.source, paths.fused, paths.encode):
            directory.mkdir()
        self._paths = paths
        log_event(_LOGGER, "workspace_created", root=str(root))
        return paths

    def cleanup(self) -> None:
        if self._paths is None:
            return
        root = self._paths.root
        self._paths = None
        shutil.rmtree(root, ignore_errors=True)
        log_event(_LOGGER, "workspace_cleaned", root=str(root))

    def __enter__(self) -> WorkspacePaths:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()
