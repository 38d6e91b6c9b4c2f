"""Utilities for monitoring background asyncio tasks."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable

Logger = logging.Logger


def monitor_task(task: asyncio.Task, *, name: str, logger: Logger, on_error: Callable[[BaseException], None] | None = None) -> asyncio.Task:
    """Attach a callback to log unexpected task termination."""

    def _callback(finished: asyncio.Task) -> None:
        with contextlib.suppress(asyncio.CancelledError):
            exc = finished.exception()
            if exc is None:
                return
            logger.error("Background task %s crashed: %s", name, exc, exc_info=exc)
            if on_error:
                on_error(exc)

    task.add_done_callback(_callback)
    return task


class LifecycleManager:
    """Track background tasks owned by a component and cancel them together."""

    def __init__(self, *, name: str, logger: Logger) -> None:
        self._name = name
        self._logger = logger
        self._tracked: list[asyncio.Task] = []

    def track_task(
        self,
        task: asyncio.Task,
        *,
        name: str,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> asyncio.Task:
        self._tracked = [t for t in self._tracked if not t.done()]
        self._tracked.append(monitor_task(task, name=name, logger=self._logger, on_error=on_error))
        return task

    def cancel_all(self) -> list[asyncio.Task]:
        """Cancel tracked tasks without waiting; return the cancelled ones."""
        pending = [task for task in self._tracked if not task.done()]
        for task in pending:
            task.cancel()
        self._tracked = []
        return pending

    async def cancel_tracked(self) -> None:
        pending = self.cancel_all()
        if not pending:
            return
        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, asyncio.CancelledError):
                self._logger.error("%s task failed during stop: %s", self._name, result, exc_info=result)
