"""Execute best-effort corrective actions mapped from recommendations."""
from __future__ import annotations

import gc
import inspect
import logging
from typing import Awaitable, Callable, Dict, Iterable, List

from perfwatch.core.config import OptimizerOptions
from perfwatch.core.exceptions import OptimizationActionFailure
from perfwatch.models import OptimizationResult, Recommendation
from perfwatch.services.metric_store import MetricStore

OptimizationHook = Callable[[], Awaitable[None] | None]

logger = logging.getLogger(__name__)

_HOOK_FLAGS = {
    "optimize-rendering": "enable_adaptive_frame_rate",
    "optimize-javascript": "enable_task_scheduling",
    "optimize-dom": "enable_dom_batching",
}


class OptimizationActuator:
    """Run one isolated action per recommendation."""

    def __init__(self, store: MetricStore, options: OptimizerOptions) -> None:
        self._store = store
        self._options = options
        self._hooks: Dict[str, OptimizationHook] = {}

    def register_hook(self, action: str, hook: OptimizationHook) -> None:
        if action not in _HOOK_FLAGS:
            raise ValueError(f"Unknown optimization action '{action}'")
        self._hooks[action] = hook

    async def apply(self, recommendations: Iterable[Recommendation]) -> List[OptimizationResult]:
        results: List[OptimizationResult] = []
        for recommendation in recommendations:
            action = recommendation.action
            try:
                applied = await self._run(action)
            except Exception as exc:  # noqa: BLE001
                failure = exc if isinstance(exc, OptimizationActionFailure) else OptimizationActionFailure(action, str(exc))
                logger.warning("Optimization %s failed: %s", action, failure.detail, exc_info=exc)
                results.append(OptimizationResult(action=action, applied=False, error=failure.detail))
                continue
            results.append(OptimizationResult(action=action, applied=applied))
        return results

    async def _run(self, action: str) -> bool:
        if action == "optimize-memory":
            return self._optimize_memory()
        flag = _HOOK_FLAGS.get(action)
        if flag is None:
            raise OptimizationActionFailure(action, f"No handler for optimization '{action}'")
        if not getattr(self._options, flag):
            logger.debug("Optimization %s skipped; %s is off", action, flag)
            return False
        hook = self._hooks.get(action)
        if hook is None:
            logger.debug("Optimization %s skipped; no hook registered", action)
            return False
        result = hook()
        if inspect.isawaitable(result):
            await result
        logger.info("Optimization %s applied", action)
        return True

    def _optimize_memory(self) -> bool:
        collected = gc.collect()
        removed = self._store.trim(self._options.policy.memory_trim_size)
        logger.info("Memory optimization applied (gc=%s, trimmed=%s samples)", collected, removed)
        return True
