"""Periodic heap usage collector."""
from __future__ import annotations

import asyncio

from perfwatch.models import AlertType, MetricCategory
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.collectors.base import Collector

_MB = 1024 * 1024


class MemoryCollector(Collector):
    """Sample the memory probe immediately and then every ``memory_interval_s``.

    The budget and percentage checks are independent: a single sample may
    raise both ``memory-budget-exceeded`` and ``high-memory-usage``.
    """

    name = "memory"

    def __init__(self, context) -> None:
        super().__init__(context)
        self._task: asyncio.Task | None = None
        self._sample_guarded = self._guard(self.sample)

    def is_supported(self, capabilities: CapabilityProvider) -> bool:
        return capabilities.has_memory_introspection

    def _start(self) -> None:
        self.sample()
        self._task = self._context.lifecycle.track_task(
            asyncio.create_task(self._run(), name="perfwatch-memory"),
            name="memory-collector",
        )

    def _stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run(self) -> None:
        interval = self._context.policy.memory_interval_s
        while self.state.active:
            await asyncio.sleep(interval)
            self._sample_guarded()

    def sample(self) -> None:
        reading = self._context.capabilities.memory_probe()
        used = reading.used_bytes / _MB
        total = reading.total_bytes / _MB
        limit = reading.limit_bytes / _MB
        percentage = (used / limit) * 100 if limit else 0.0

        self._record(MetricCategory.MEMORY, "heap-usage", {
            "used": used,
            "total": total,
            "limit": limit,
            "percentage": percentage,
        })

        budget = self._context.budget.memory_usage
        if used > budget:
            self._alert(AlertType.MEMORY_BUDGET_EXCEEDED, {"actual": used, "budget": budget})

        threshold = self._context.policy.memory_percentage_threshold
        if percentage > threshold:
            self._alert(AlertType.HIGH_MEMORY_USAGE, {"percentage": percentage, "threshold": threshold})
