"""Domain models shared across the engine."""
from .domain import (
    Alert,
    AlertType,
    BudgetState,
    BudgetStatus,
    CollectorState,
    CollectorStateReason,
    MemoryReading,
    MetricCategory,
    MetricSample,
    Mutation,
    NavigationTiming,
    OptimizationResult,
    PerformanceSummary,
    Priority,
    Recommendation,
    TimingEntry,
    VisibilityEntry,
)

__all__ = [
    "Alert",
    "AlertType",
    "BudgetState",
    "BudgetStatus",
    "CollectorState",
    "CollectorStateReason",
    "MemoryReading",
    "MetricCategory",
    "MetricSample",
    "Mutation",
    "NavigationTiming",
    "OptimizationResult",
    "PerformanceSummary",
    "Priority",
    "Recommendation",
    "TimingEntry",
    "VisibilityEntry",
]
