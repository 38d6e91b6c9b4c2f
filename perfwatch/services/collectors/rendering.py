"""Paint timing collector."""
from __future__ import annotations

from typing import Iterable

from perfwatch.models import MetricCategory, TimingEntry
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.collectors.base import Collector


class RenderingCollector(Collector):
    name = "rendering"

    def is_supported(self, capabilities: CapabilityProvider) -> bool:
        return capabilities.has_performance_timing_api

    def _start(self) -> None:
        self._track(self._context.capabilities.timing.subscribe(self._guard(self._on_entries)))

    def _on_entries(self, entries: Iterable[TimingEntry]) -> None:
        for entry in entries:
            if entry.entry_type != "paint":
                continue
            self._record(MetricCategory.RENDERING, entry.name, {
                "start_time": entry.start_time,
                "duration": entry.duration or 0,
            })
