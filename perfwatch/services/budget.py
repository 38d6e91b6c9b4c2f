"""Compare stored metrics against the configured performance budget."""
from __future__ import annotations

from typing import Dict

from perfwatch.core.config import PerformanceBudget
from perfwatch.models import BudgetState, BudgetStatus, MetricCategory, MetricSample
from perfwatch.services.metric_store import MetricStore

REPRESENTATIVE_FIELDS = ("duration", "used", "size", "value")

BUDGETED_METRICS = {
    "load_time": (MetricCategory.LOAD, "page-load"),
    "memory_usage": (MetricCategory.MEMORY, "heap-usage"),
    "bundle_size": (MetricCategory.BUNDLE, "estimated-size"),
}


def representative_value(sample: MetricSample) -> float | None:
    for name in REPRESENTATIVE_FIELDS:
        value = sample.field(name)
        if value is not None:
            return float(value)
    return None


def check_budget(
    store: MetricStore,
    category: MetricCategory | str,
    name: str,
    budget: float,
) -> BudgetStatus:
    """Classify the latest sample of a metric against ``budget``."""

    latest = store.latest(category, name)
    value = representative_value(latest) if latest is not None else None
    if value is None:
        return BudgetStatus(status=BudgetState.UNKNOWN, value=None, budget=budget)

    return BudgetStatus(
        status=BudgetState.WITHIN if value <= budget else BudgetState.EXCEEDED,
        value=value,
        budget=budget,
        percentage=(value / budget) * 100 if budget else None,
    )


def evaluate_budget(store: MetricStore, budget: PerformanceBudget) -> Dict[str, BudgetStatus]:
    return {
        key: check_budget(store, category, name, getattr(budget, key))
        for key, (category, name) in BUDGETED_METRICS.items()
    }
