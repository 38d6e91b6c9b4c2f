"""Load timing collector."""
from __future__ import annotations

from typing import Iterable

from perfwatch.models import AlertType, MetricCategory, TimingEntry
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.collectors.base import Collector


class LoadCollector(Collector):
    """Record navigation, resource and measure timings and check the load budget."""

    name = "load"
    ENTRY_TYPES = frozenset({"navigation", "resource", "measure"})

    def is_supported(self, capabilities: CapabilityProvider) -> bool:
        return capabilities.has_performance_timing_api

    def _start(self) -> None:
        capabilities = self._context.capabilities
        self._track(capabilities.timing.subscribe(self._guard(self._on_entries)))

        navigation = capabilities.navigation_timing
        if navigation is not None:
            duration = navigation.load_event_end - navigation.navigation_start
            self._record(MetricCategory.LOAD, "page-load", {
                "duration": duration,
                "dom_content_loaded": navigation.dom_content_loaded_end - navigation.navigation_start,
                "first_paint": navigation.response_start - navigation.navigation_start,
            })
            self._check_budget("page-load", duration)

    def _on_entries(self, entries: Iterable[TimingEntry]) -> None:
        for entry in entries:
            if entry.entry_type not in self.ENTRY_TYPES:
                continue
            self._record(MetricCategory.LOAD, entry.name, {
                "duration": entry.duration,
                "start_time": entry.start_time,
                "type": entry.entry_type,
            })
            self._check_budget(entry.name, entry.duration)

    def _check_budget(self, metric: str, duration: float) -> None:
        budget = self._context.budget.load_time
        if duration > budget:
            self._alert(AlertType.LOAD_TIME_EXCEEDED, {
                "metric": metric,
                "actual": duration,
                "budget": budget,
            })
