"""psutil-backed memory introspection for the current process."""
from __future__ import annotations

import psutil

from perfwatch.models import MemoryReading


class ProcessMemoryProbe:
    """Report resident, virtual and available memory for this process.

    ``used`` is the resident set size, ``total`` the virtual size and
    ``limit`` the physical memory of the host.
    """

    def __init__(self, process: psutil.Process | None = None) -> None:
        self._process = process or psutil.Process()

    def __call__(self) -> MemoryReading:
        info = self._process.memory_info()
        return MemoryReading(
            used_bytes=float(info.rss),
            total_bytes=float(info.vms),
            limit_bytes=float(psutil.virtual_memory().total),
        )
