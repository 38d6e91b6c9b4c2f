"""Long task collector for explicitly instrumented callbacks."""
from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable, Optional, TypeVar

from perfwatch.core.clock import now_ms
from perfwatch.models import MetricCategory
from perfwatch.services.collectors.base import Collector

F = TypeVar("F", bound=Callable[..., Any])


class IntervalHandle:
    """Cancel handle for a repeating ``call_every`` schedule."""

    def __init__(self) -> None:
        self._timer: Optional[asyncio.TimerHandle] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class _SteppedCoroutine:
    """Drive a coroutine and time each step it runs on the event loop.

    Time spent suspended on an awaitable is not counted; ``longest`` holds
    the longest uninterrupted stretch the coroutine occupied the loop.
    """

    def __init__(self, coro: Any) -> None:
        self._coro = coro
        self.longest = 0.0

    def _timed(self, step: Callable[[], Any]) -> Any:
        start = now_ms()
        try:
            return step()
        finally:
            self.longest = max(self.longest, now_ms() - start)

    def __await__(self):
        coro = self._coro
        value: Any = None
        error: BaseException | None = None
        while True:
            try:
                if error is None:
                    yielded = self._timed(functools.partial(coro.send, value))
                else:
                    yielded = self._timed(functools.partial(coro.throw, error))
            except StopIteration as stop:
                return stop.value
            value, error = None, None
            try:
                value = yield yielded
            except GeneratorExit:
                coro.close()
                raise
            except BaseException as exc:  # noqa: BLE001
                error = exc


class LongTaskCollector(Collector):
    """Measure wall-clock execution of deferred callbacks.

    Callers opt in by scheduling through ``call_soon``, ``call_later`` and
    ``call_every`` or by decorating functions with ``track``. Callbacks
    always run; they are measured only while the collector is active.
    """

    name = "long-task"

    def _start(self) -> None:
        return None

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> asyncio.Handle:
        loop = asyncio.get_running_loop()
        return loop.call_soon(self._run_measured, "call_soon", callback, args)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self._run_measured, "call_later", callback, args)

    def call_every(self, interval: float, callback: Callable[..., Any], *args: Any) -> IntervalHandle:
        loop = asyncio.get_running_loop()
        handle = IntervalHandle()

        def _tick() -> None:
            if handle.cancelled:
                return
            handle._timer = loop.call_later(interval, _tick)
            self._run_measured("call_every", callback, args)

        handle._timer = loop.call_later(interval, _tick)
        return handle

    def track(self, kind: str = "task") -> Callable[[F], F]:
        """Decorate a sync or async callable so its execution is measured.

        Coroutines report their longest step, so awaiting I/O is not a long task.
        """

        def decorator(func: F) -> F:
            if inspect.iscoroutinefunction(func):
                @functools.wraps(func)
                async def _async_wrapper(*args: Any, **kwargs: Any) -> Any:
                    stepped = _SteppedCoroutine(func(*args, **kwargs))
                    try:
                        return await stepped
                    finally:
                        self._observe(kind, stepped.longest)

                return _async_wrapper  # type: ignore[return-value]

            @functools.wraps(func)
            def _wrapper(*args: Any, **kwargs: Any) -> Any:
                start = now_ms()
                try:
                    return func(*args, **kwargs)
                finally:
                    self._observe(kind, now_ms() - start)

            return _wrapper  # type: ignore[return-value]

        return decorator

    def _run_measured(self, kind: str, callback: Callable[..., Any], args: tuple) -> Any:
        start = now_ms()
        try:
            return callback(*args)
        finally:
            self._observe(kind, now_ms() - start)

    def _observe(self, kind: str, duration: float) -> None:
        self._guard(self._record_if_long)(kind, duration)

    def _record_if_long(self, kind: str, duration: float) -> None:
        if duration > self._context.policy.long_task_threshold_ms:
            self._record(MetricCategory.RUNTIME, "long-task", {"duration": duration, "type": kind})
