"""Atomic filesystem write helpers."""

from __future__ import annotations

from pathlib import Path
import os
import shutil
import tempfile


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def publish_file(src: Path, dst: Path) -> Path:
    """Copy ``src`` next to ``dst`` under a temp name, then rename it into place.

    The destination either keeps its previous content or holds the complete
    new file; a partial copy never appears at ``dst``. The published file
    gets the usual ``0o666 & ~umask`` mode, not the private mode of the temp.
    """

    dst.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dst.name}.", dir=str(dst.parent))
    os.close(fd)
    try:
        shutil.copyfile(src, tmp_name)
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, dst)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
    return dst
