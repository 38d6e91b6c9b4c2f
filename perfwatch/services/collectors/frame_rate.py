"""Frame rate collector driven by successive frame callbacks."""
from __future__ import annotations

from typing import Any, Optional

from perfwatch.models import AlertType, MetricCategory
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.collectors.base import Collector


class FrameRateCollector(Collector):
    """Count frames over a rolling window and record the resulting fps.

    The first callback opens the window; every later callback counts one
    frame. Once the window spans ``fps_window_ms`` the rate is recorded and
    the window restarts at that frame.
    """

    name = "frame-rate"

    def __init__(self, context) -> None:
        super().__init__(context)
        self._window_start: Optional[float] = None
        self._frame_count = 0
        self._handle: Any = None
        self._on_frame_guarded = self._guard(self._on_frame)

    def is_supported(self, capabilities: CapabilityProvider) -> bool:
        return capabilities.has_frame_callback

    def _start(self) -> None:
        self._request_next()

    def _stop(self) -> None:
        if self._handle is not None:
            self._context.capabilities.frames.cancel_frame(self._handle)
            self._handle = None
        self._window_start = None
        self._frame_count = 0

    def _request_next(self) -> None:
        self._handle = self._context.capabilities.frames.request_frame(self._on_frame_guarded)

    def _on_frame(self, timestamp: float) -> None:
        self._handle = None
        if self._window_start is None:
            self._window_start = timestamp
        else:
            self._frame_count += 1
            elapsed = timestamp - self._window_start
            if elapsed >= self._context.policy.fps_window_ms:
                self._complete_window(timestamp, elapsed)

        if self.state.active:
            self._request_next()

    def _complete_window(self, timestamp: float, elapsed: float) -> None:
        fps = round((self._frame_count * 1000) / elapsed)
        self._record(MetricCategory.RUNTIME, "fps", {"value": fps})

        threshold = self._context.policy.fps_threshold
        if fps < threshold:
            self._alert(AlertType.LOW_FPS, {"actual": fps, "threshold": threshold})

        self._frame_count = 0
        self._window_start = timestamp
