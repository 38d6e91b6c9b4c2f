"""Bounded log of performance alerts with an optional notification sink."""
from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, List, Mapping, Optional
from uuid import uuid4

from perfwatch.models import Alert, AlertType

AlertSink = Callable[[Alert], None]

logger = logging.getLogger(__name__)


class AlertManager:
    """Append-only alert log keeping the most recent ``capacity`` alerts."""

    def __init__(self, *, capacity: int = 50, sink: Optional[AlertSink] = None) -> None:
        self._capacity = capacity
        self._alerts: Deque[Alert] = deque(maxlen=capacity)
        self._sink = sink

    def __len__(self) -> int:
        return len(self._alerts)

    def add(self, alert_type: AlertType | str, data: Mapping[str, Any] | None = None) -> Alert:
        type_value = alert_type.value if isinstance(alert_type, AlertType) else str(alert_type)
        alert = Alert(id=uuid4().hex, type=type_value, data=dict(data or {}))
        self._alerts.append(alert)
        logger.warning("Performance alert [%s]: %s", alert.type, alert.data)

        if self._sink is not None:
            try:
                self._sink(alert)
            except Exception:  # noqa: BLE001
                logger.warning("Alert sink failed for alert %s", alert.id, exc_info=True)
        return alert

    def get(self, alert_type: AlertType | str | None = None) -> List[Alert]:
        if alert_type is None:
            return list(self._alerts)
        type_value = alert_type.value if isinstance(alert_type, AlertType) else str(alert_type)
        return [alert for alert in self._alerts if alert.type == type_value]

    def has(self, alert_type: AlertType | str) -> bool:
        return bool(self.get(alert_type))

    def clear(self) -> None:
        self._alerts.clear()
