"""Host capability discovery and the hooks collectors attach to."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol

from perfwatch.models import MemoryReading, Mutation, NavigationTiming, TimingEntry, VisibilityEntry
from perfwatch.services.event_channel import EventChannel
from perfwatch.services.utils.memory_probe import ProcessMemoryProbe

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]
MemoryProbe = Callable[[], MemoryReading]
VisibilityHandler = Callable[[VisibilityEntry], None]


class FrameScheduler(Protocol):
    def request_frame(self, callback: FrameCallback) -> Any: ...

    def cancel_frame(self, handle: Any) -> None: ...


class VisibilityObserver(Protocol):
    def observe(self, target: Any, handler: VisibilityHandler) -> None: ...

    def unobserve(self, target: Any) -> None: ...

    def disconnect(self) -> None: ...


class LoopFrameScheduler:
    """Deliver frame callbacks from the running asyncio loop at a fixed rate."""

    def __init__(self, *, frame_rate: float = 60.0, clock: Callable[[], float] | None = None) -> None:
        self._interval = 1.0 / frame_rate
        self._clock = clock
        self._handles: set[asyncio.TimerHandle] = set()

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        clock = self._clock or (lambda: loop.time() * 1000.0)
        handle: asyncio.TimerHandle

        def _fire() -> None:
            self._handles.discard(handle)
            callback(clock())

        handle = loop.call_later(self._interval, _fire)
        self._handles.add(handle)
        return handle

    def cancel_frame(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
        self._handles.discard(handle)

    def close(self) -> None:
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()


class ManualVisibilityObserver:
    """Visibility observer driven by the host calling ``notify``."""

    def __init__(self) -> None:
        self._handlers: Dict[int, tuple[Any, VisibilityHandler]] = {}

    def observe(self, target: Any, handler: VisibilityHandler) -> None:
        self._handlers[id(target)] = (target, handler)

    def unobserve(self, target: Any) -> None:
        self._handlers.pop(id(target), None)

    def disconnect(self) -> None:
        self._handlers.clear()

    def is_observing(self, target: Any) -> bool:
        return id(target) in self._handlers

    def notify(self, target: Any, is_visible: bool = True) -> None:
        registered = self._handlers.get(id(target))
        if registered is None:
            return
        _, handler = registered
        handler(VisibilityEntry(target=target, is_visible=is_visible))


@dataclass
class CapabilityProvider:
    """Explicit description of the observation hooks a host exposes.

    Flags are derived from which hooks are present and are computed once;
    collectors query them during ``init`` only.
    """

    timing: Optional[EventChannel[list[TimingEntry]]] = None
    frames: Optional[FrameScheduler] = None
    mutations: Optional[EventChannel[list[Mutation]]] = None
    visibility: Optional[VisibilityObserver] = None
    memory_probe: Optional[MemoryProbe] = None
    network_hook: bool = False
    navigation_timing: Optional[NavigationTiming] = None
    _flags: Dict[str, bool] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._flags = {
            "performance_timing_api": self.timing is not None,
            "frame_callback": self.frames is not None,
            "mutation_observer": self.mutations is not None,
            "intersection_observer": self.visibility is not None,
            "memory_introspection": self.memory_probe is not None,
            "network_hook": bool(self.network_hook),
        }

    @property
    def has_performance_timing_api(self) -> bool:
        return self._flags["performance_timing_api"]

    @property
    def has_frame_callback(self) -> bool:
        return self._flags["frame_callback"]

    @property
    def has_mutation_observer(self) -> bool:
        return self._flags["mutation_observer"]

    @property
    def has_intersection_observer(self) -> bool:
        return self._flags["intersection_observer"]

    @property
    def has_memory_introspection(self) -> bool:
        return self._flags["memory_introspection"]

    @property
    def has_network_hook(self) -> bool:
        return self._flags["network_hook"]

    def as_dict(self) -> Dict[str, bool]:
        return dict(self._flags)

    @classmethod
    def detect(cls, *, navigation_timing: NavigationTiming | None = None) -> "CapabilityProvider":
        """Build the default provider for a plain asyncio process."""
        try:
            memory_probe: Optional[MemoryProbe] = ProcessMemoryProbe()
        except Exception:  # noqa: BLE001
            logger.warning("Memory introspection unavailable on this host", exc_info=True)
            memory_probe = None
        provider = cls(
            timing=EventChannel("timing"),
            frames=LoopFrameScheduler(),
            mutations=EventChannel("mutations"),
            visibility=ManualVisibilityObserver(),
            memory_probe=memory_probe,
            network_hook=True,
            navigation_timing=navigation_timing,
        )
        logger.debug("Detected capabilities: %s", provider.as_dict())
        return provider

    def close(self) -> None:
        close_frames = getattr(self.frames, "close", None)
        if callable(close_frames):
            close_frames()
        if self.visibility is not None:
            self.visibility.disconnect()
