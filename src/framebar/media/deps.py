"""Up-front check for the external tools a run shells out to."""

from __future__ import annotations

import shutil
from typing import Iterable

from framebar.errors import MissingDependency
from framebar.media.ffmpeg import REQUIRED_TOOLS


def missing_tools(tools: Iterable[str] = REQUIRED_TOOLS) -> list[str]:
    return [tool for tool in tools if shutil.which(tool) is None]


def check_dependencies(tools: Iterable[str] = REQUIRED_TOOLS) -> None:
    """Raise MissingDependency naming every absent tool."""

    missing = missing_tools(tools)
    if missing:
        raise MissingDependency(missing)
