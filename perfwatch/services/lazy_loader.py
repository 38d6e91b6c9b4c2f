"""Visibility-triggered, one-shot loading of deferred resources and components."""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from perfwatch.core.clock import now_ms
from perfwatch.core.exceptions import LazyLoadFailure
from perfwatch.core.tasks import LifecycleManager
from perfwatch.models import CollectorState, CollectorStateReason, MetricCategory, VisibilityEntry
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.component_registry import ComponentRegistry
from perfwatch.services.metric_store import MetricStore

logger = logging.getLogger(__name__)


class DeferredState(str, Enum):
    PENDING = "pending"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(eq=False)
class DeferredElement:
    """A target whose resource or component is resolved on first visibility."""

    target: Any
    source_ref: Optional[str] = None
    component_name: Optional[str] = None
    state: DeferredState = DeferredState.PENDING
    resource: Optional[str] = None
    component: Any = None
    error: Optional[str] = None
    _task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def metric_name(self) -> str:
        return self.component_name or self.source_ref or "resource"


class ProgressiveLoader:
    """Resolve each registered element exactly once, when it first becomes visible.

    Visibility handlers run synchronously on the host's observer; the
    resolution itself is scheduled as a task so a slow component does not
    hold up other observers. Failed elements stay failed.
    """

    name = "lazy-loading"

    def __init__(
        self,
        store: MetricStore,
        components: ComponentRegistry,
        capabilities: CapabilityProvider,
        lifecycle: LifecycleManager,
    ) -> None:
        self._store = store
        self._components = components
        self._capabilities = capabilities
        self._lifecycle = lifecycle
        self._elements: Dict[int, DeferredElement] = {}
        self.state = CollectorState(name=self.name)

    @property
    def active(self) -> bool:
        return self.state.active

    @property
    def elements(self) -> List[DeferredElement]:
        return list(self._elements.values())

    def start(self) -> CollectorState:
        if not self._capabilities.has_intersection_observer:
            self.state = CollectorState(name=self.name, reason=CollectorStateReason.CAPABILITY_UNAVAILABLE)
            logger.debug("Progressive loader inactive: visibility observer unavailable")
            return self.state
        self.state = CollectorState(name=self.name, active=True)
        for element in self._elements.values():
            if element.state is DeferredState.PENDING:
                self._observe(element)
        return self.state

    def disable(self) -> CollectorState:
        self.state = CollectorState(name=self.name, reason=CollectorStateReason.DISABLED)
        return self.state

    def stop(self) -> None:
        observer = self._capabilities.visibility
        for element in self._elements.values():
            if element.state is DeferredState.PENDING and observer is not None:
                observer.unobserve(element.target)
            task, element._task = element._task, None
            if task is not None and not task.done():
                task.cancel()
        if self.state.active:
            self.state = CollectorState(name=self.name)
        self._elements.clear()

    def register(
        self,
        target: Any,
        *,
        source_ref: str | None = None,
        component_name: str | None = None,
    ) -> DeferredElement:
        if (source_ref is None) == (component_name is None):
            raise ValueError("Exactly one of source_ref or component_name is required")
        existing = self._elements.get(id(target))
        if existing is not None:
            return existing

        element = DeferredElement(target=target, source_ref=source_ref, component_name=component_name)
        self._elements[id(target)] = element
        if self.active:
            self._observe(element)
        return element

    def _observe(self, element: DeferredElement) -> None:
        self._capabilities.visibility.observe(
            element.target,
            lambda entry: self._on_visibility(element, entry),
        )

    def _on_visibility(self, element: DeferredElement, entry: VisibilityEntry) -> None:
        if not entry.is_visible or element.state is not DeferredState.PENDING:
            return
        element.state = DeferredState.LOADING
        self._capabilities.visibility.unobserve(element.target)

        if element.component_name is not None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self._mark_failed(element, LazyLoadFailure(
                    f"Component '{element.component_name}' became visible outside a running event loop"
                ))
                return
            task = loop.create_task(
                self.load_component(element.component_name, element),
                name=f"perfwatch-lazy-{element.component_name}",
            )
            element._task = self._lifecycle.track_task(task, name=f"lazy-load:{element.component_name}")
            return
        self._load_resource(element)

    def _load_resource(self, element: DeferredElement) -> None:
        start = now_ms()
        try:
            element.resource = element.source_ref
            if hasattr(element.target, "src"):
                element.target.src = element.source_ref
        except Exception as exc:  # noqa: BLE001
            self._mark_failed(element, exc)
            return
        self._mark_loaded(element, now_ms() - start)

    async def load_component(self, component_name: str, element: DeferredElement) -> None:
        """Resolve, instantiate and mount a named component for ``element``."""
        start = now_ms()
        try:
            factory = self._components.resolve(component_name)
            component = factory()
            if inspect.isawaitable(component):
                component = await component
            if component is None:
                raise LazyLoadFailure(f"Component '{component_name}' factory returned nothing")
            mount = getattr(element.target, "mount", None)
            if callable(mount):
                result = mount(component)
                if inspect.isawaitable(result):
                    await result
            element.component = component
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to lazy load component %s: %s", component_name, exc)
            self._mark_failed(element, exc)
            return
        self._mark_loaded(element, now_ms() - start)

    def _mark_loaded(self, element: DeferredElement, duration: float) -> None:
        element.state = DeferredState.LOADED
        self._store.record(MetricCategory.LAZY_LOADING, element.metric_name, {
            "duration": duration,
            "success": True,
        })

    def _mark_failed(self, element: DeferredElement, exc: Exception) -> None:
        element.state = DeferredState.FAILED
        element.error = str(exc) or type(exc).__name__
        self._store.record(MetricCategory.LAZY_LOADING, element.metric_name, {
            "success": False,
            "error": element.error,
        })
