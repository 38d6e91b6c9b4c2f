"""Derive prioritized recommendations from accumulated alerts."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List

from perfwatch.core.config import MonitoringPolicy
from perfwatch.models import AlertType, MetricCategory, Priority, Recommendation
from perfwatch.services.alert_manager import AlertManager
from perfwatch.services.metric_store import MetricStore


@dataclass(frozen=True)
class RecommendationRule:
    type: str
    priority: Priority
    message: str
    action: str
    applies: Callable[[AlertManager, MetricStore, MonitoringPolicy], bool]

    def build(self) -> Recommendation:
        return Recommendation(type=self.type, priority=self.priority, message=self.message, action=self.action)


def _long_tasks_exceeded(alerts: AlertManager, store: MetricStore, policy: MonitoringPolicy) -> bool:
    return store.count(MetricCategory.RUNTIME, "long-task") > policy.long_task_recommendation_count


RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule(
        type="memory",
        priority=Priority.HIGH,
        message="High memory usage detected. Consider implementing object pooling or reducing memory allocations.",
        action="optimize-memory",
        applies=lambda alerts, store, policy: alerts.has(AlertType.HIGH_MEMORY_USAGE),
    ),
    RecommendationRule(
        type="rendering",
        priority=Priority.HIGH,
        message="Low frame rate detected. Consider optimizing animations or reducing DOM manipulations.",
        action="optimize-rendering",
        applies=lambda alerts, store, policy: alerts.has(AlertType.LOW_FPS),
    ),
    RecommendationRule(
        type="javascript",
        priority=Priority.MEDIUM,
        message="Multiple long tasks detected. Consider breaking up large operations or moving them off the event loop.",
        action="optimize-javascript",
        applies=_long_tasks_exceeded,
    ),
    RecommendationRule(
        type="dom",
        priority=Priority.MEDIUM,
        message="High DOM mutation rate detected. Consider batching DOM updates or using virtual DOM.",
        action="optimize-dom",
        applies=lambda alerts, store, policy: alerts.has(AlertType.HIGH_DOM_MUTATIONS),
    ),
)


def generate_recommendations(
    alerts: AlertManager,
    store: MetricStore,
    policy: MonitoringPolicy,
) -> List[Recommendation]:
    """Evaluate the rule table in order; every matching rule contributes."""
    return [rule.build() for rule in RULES if rule.applies(alerts, store, policy)]
