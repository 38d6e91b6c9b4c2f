"""Shared lifecycle and failure isolation for signal collectors."""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping

from perfwatch.core.config import MonitoringPolicy, OptimizerOptions, PerformanceBudget
from perfwatch.core.exceptions import CollectorFailure
from perfwatch.core.tasks import LifecycleManager
from perfwatch.models import Alert, AlertType, CollectorState, CollectorStateReason, MetricCategory, MetricSample
from perfwatch.services.alert_manager import AlertManager
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.event_channel import Subscription
from perfwatch.services.metric_store import MetricStore

logger = logging.getLogger(__name__)


@dataclass
class CollectorContext:
    """Everything a collector needs from the engine that owns it."""

    store: MetricStore
    alerts: AlertManager
    options: OptimizerOptions
    capabilities: CapabilityProvider
    lifecycle: LifecycleManager
    budget: PerformanceBudget

    @property
    def policy(self) -> MonitoringPolicy:
        return self.options.policy


class Collector:
    """Translate host events into metric samples.

    A collector starts at most once. If its capability is missing it stays
    inactive; if one of its handlers raises, the failure is logged, its
    subscriptions are released and it produces no further samples.
    """

    name = "collector"

    def __init__(self, context: CollectorContext) -> None:
        self._context = context
        self.state = CollectorState(name=self.name)
        self._subscriptions: List[Subscription] = []
        self._started = False

    @property
    def active(self) -> bool:
        return self.state.active

    def is_supported(self, capabilities: CapabilityProvider) -> bool:
        return True

    def start(self) -> CollectorState:
        if self._started:
            return self.state
        self._started = True

        if not self.is_supported(self._context.capabilities):
            self.state = CollectorState(name=self.name, reason=CollectorStateReason.CAPABILITY_UNAVAILABLE)
            logger.debug("Collector %s inactive: capability unavailable", self.name)
            return self.state

        self.state = CollectorState(name=self.name, active=True)
        try:
            self._start()
        except Exception as exc:  # noqa: BLE001
            self._fail(exc)
        return self.state

    def disable(self) -> CollectorState:
        self._started = True
        self.state = CollectorState(name=self.name, reason=CollectorStateReason.DISABLED)
        return self.state

    def stop(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.unsubscribe()
        try:
            self._stop()
        except Exception:  # noqa: BLE001
            logger.warning("Collector %s failed to stop cleanly", self.name, exc_info=True)
        if self.state.active:
            self.state = CollectorState(name=self.name)

    def _start(self) -> None:
        raise NotImplementedError

    def _stop(self) -> None:
        return None

    def _track(self, subscription: Subscription) -> None:
        self._subscriptions.append(subscription)

    def _guard(self, handler: Callable[..., Any]) -> Callable[..., None]:
        """Wrap a host callback so an exception deactivates only this collector."""

        @functools.wraps(handler)
        def _guarded(*args: Any, **kwargs: Any) -> None:
            if not self.state.active:
                return
            try:
                handler(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001
                self._fail(exc)

        return _guarded

    def _fail(self, exc: BaseException) -> None:
        failure = CollectorFailure(self.name, str(exc) or type(exc).__name__)
        logger.error("Collector %s failed: %s", self.name, failure.detail, exc_info=exc)
        self.state = CollectorState(
            name=self.name,
            reason=CollectorStateReason.COLLECTOR_FAILURE,
            error=failure.detail,
        )
        failed_state = self.state
        self.stop()
        self.state = failed_state

    def _record(self, category: MetricCategory, name: str, data: Mapping[str, Any]) -> MetricSample:
        return self._context.store.record(category, name, data)

    def _alert(self, alert_type: AlertType, data: Mapping[str, Any]) -> Alert:
        return self._context.alerts.add(alert_type, data)
