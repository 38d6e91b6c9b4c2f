"""Bounded, category/name keyed storage for metric samples."""
from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List, Mapping

from perfwatch.models import MetricCategory, MetricSample

MetricSnapshot = Dict[str, List[MetricSample]]


def _category_key(category: MetricCategory | str) -> str:
    return category.value if isinstance(category, MetricCategory) else str(category)


class MetricStore:
    """Keep the most recent samples of every metric series.

    Each ``(category, name)`` series is a ring buffer of ``capacity``
    entries; recording into a full series evicts its oldest sample.
    """

    def __init__(self, capacity: int = 100) -> None:
        self._capacity = capacity
        self._series: Dict[str, Dict[str, Deque[MetricSample]]] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def record(self, category: MetricCategory | str, name: str, data: Mapping[str, Any] | None = None) -> MetricSample:
        payload = dict(data or {})
        if payload.get("timestamp") is None:
            payload.pop("timestamp", None)
        sample = MetricSample(**payload)
        names = self._series.setdefault(_category_key(category), {})
        bucket = names.get(name)
        if bucket is None:
            bucket = deque(maxlen=self._capacity)
            names[name] = bucket
        bucket.append(sample)
        return sample

    def get(self, category: MetricCategory | str | None = None) -> Dict[str, Any]:
        """Return a snapshot of one category, or of every category."""
        if category is not None:
            return self._snapshot(self._series.get(_category_key(category), {}))
        return {cat: self._snapshot(names) for cat, names in self._series.items()}

    def series(self, category: MetricCategory | str, name: str) -> List[MetricSample]:
        bucket = self._series.get(_category_key(category), {}).get(name)
        return list(bucket) if bucket else []

    def latest(self, category: MetricCategory | str, name: str) -> MetricSample | None:
        bucket = self._series.get(_category_key(category), {}).get(name)
        if not bucket:
            return None
        return bucket[-1]

    def count(self, category: MetricCategory | str, name: str) -> int:
        return len(self._series.get(_category_key(category), {}).get(name, ()))

    def categories(self) -> Dict[str, int]:
        """Number of metric names per category."""
        return {cat: len(names) for cat, names in self._series.items()}

    def trim(self, max_entries: int) -> int:
        """Drop the oldest samples so no series exceeds ``max_entries``."""
        removed = 0
        for names in self._series.values():
            for bucket in names.values():
                while len(bucket) > max_entries:
                    bucket.popleft()
                    removed += 1
        return removed

    def clear(self) -> None:
        self._series.clear()

    @staticmethod
    def _snapshot(names: Mapping[str, Deque[MetricSample]]) -> MetricSnapshot:
        return {name: list(bucket) for name, bucket in names.items()}
