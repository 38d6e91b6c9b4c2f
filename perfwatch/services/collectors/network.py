"""Network collector for explicitly instrumented fetch callables."""
from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from perfwatch.core.clock import now_ms
from perfwatch.models import CollectorStateReason, MetricCategory
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.collectors.base import Collector

Fetch = TypeVar("Fetch", bound=Callable[..., Awaitable[Any]])


def _extract_url(args: tuple, kwargs: Mapping[str, Any]) -> Optional[str]:
    target = args[0] if args else kwargs.get("url")
    return str(target) if target is not None else None


def _response_status(response: Any) -> Optional[int]:
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", None)
    return status


def _response_size(response: Any) -> Optional[int]:
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    raw = headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


class NetworkCollector(Collector):
    """Time async fetch calls made through ``instrument``."""

    name = "network"

    def is_supported(self, capabilities: CapabilityProvider) -> bool:
        return capabilities.has_network_hook

    def _start(self) -> None:
        return None

    def instrument(self, fetch: Fetch) -> Fetch:
        """Return ``fetch`` wrapped with timing; errors still reach the caller."""
        if self.state.reason in (CollectorStateReason.CAPABILITY_UNAVAILABLE, CollectorStateReason.DISABLED):
            return fetch

        @functools.wraps(fetch)
        async def _instrumented(*args: Any, **kwargs: Any) -> Any:
            url = _extract_url(args, kwargs)
            start = now_ms()
            try:
                response = await fetch(*args, **kwargs)
            except Exception as exc:
                self._guard(self._record_failure)(url, now_ms() - start, exc)
                raise
            self._guard(self._record_success)(url, now_ms() - start, response)
            return response

        return _instrumented  # type: ignore[return-value]

    def _record_success(self, url: Optional[str], duration: float, response: Any) -> None:
        self._record(MetricCategory.NETWORK, "fetch", {
            "url": url,
            "duration": duration,
            "status": _response_status(response),
            "size": _response_size(response),
        })

    def _record_failure(self, url: Optional[str], duration: float, exc: Exception) -> None:
        self._record(MetricCategory.NETWORK, "fetch-error", {
            "url": url,
            "duration": duration,
            "error": str(exc) or type(exc).__name__,
        })
