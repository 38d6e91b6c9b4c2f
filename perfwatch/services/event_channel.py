"""Publish host events to explicitly subscribed handlers."""
from __future__ import annotations

import logging
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Subscription:
    """Token returned by ``subscribe``; releasing it twice is a no-op."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release = release
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._release()


class EventChannel(Generic[T]):
    """Central dispatcher for one kind of host event.

    Hosts call ``publish`` from their own callbacks; delivery is
    synchronous and in subscription order. A failing handler is logged and
    does not prevent delivery to the others.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: List[Callable[[T], None]] = []

    def subscribe(self, handler: Callable[[T], None]) -> Subscription:
        self._handlers.append(handler)

        def _release() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return Subscription(_release)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def publish(self, event: T) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:  # noqa: BLE001
                logger.warning("Handler failed on channel %s", self.name, exc_info=True)
