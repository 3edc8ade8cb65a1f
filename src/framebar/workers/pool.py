"""Worker pool helper utilities."""

from __future__ import annotations

import os


def normalize_worker_count(requested: int | None, jobs: int | None = None) -> int:
    """Return a thread count: the requested value, or the CPU count by default.

    An explicit request is honoured above the CPU count, since compositing
    threads spend most of their time in image I/O. The result is never
    larger than ``jobs`` when that is given, so tiny inputs do not spin up
    idle threads.
    """

    workers = (os.cpu_count() or 1) if requested is None else max(1, int(requested))
    if jobs is not None:
        workers = min(workers, max(1, jobs))
    return workers
