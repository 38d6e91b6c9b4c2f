"""Service registry that wires the engine into the HTTP application."""
import asyncio
import logging

from perfwatch.core.config import OptimizerOptions, Settings, load_options
from perfwatch.core.session_context import session_context
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.component_registry import ComponentRegistry
from perfwatch.services.optimizer import PerformanceOptimizer

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Container object for dependency injection."""

    def __init__(self, settings: Settings, options: OptimizerOptions | None = None) -> None:
        self.settings = settings
        self.options = self._with_service_budget(options or load_options(settings.options_path), settings)
        self.capabilities = CapabilityProvider.detect()
        self.components = ComponentRegistry()
        self.optimizer = PerformanceOptimizer(
            self.options,
            capabilities=self.capabilities,
            components=self.components,
        )
        self._lock = asyncio.Lock()
        self._started = False

    @staticmethod
    def _with_service_budget(options: OptimizerOptions, settings: Settings) -> OptimizerOptions:
        """Apply the service memory budget unless the options set one.

        The default probe reports process RSS, which the engine-wide heap
        default is too small for.
        """
        budget = options.performance_budget
        if "memory_usage" in budget.model_fields_set:
            return options
        budget = budget.model_copy(update={"memory_usage": settings.memory_budget_mb})
        return options.model_copy(update={"performance_budget": budget})

    async def startup(self) -> None:
        async with self._lock:
            if self._started:
                return
            with session_context("bg:startup"):
                await self.optimizer.init()
            self._started = True

    async def shutdown(self) -> None:
        async with self._lock:
            if not self._started:
                return
            with session_context("bg:shutdown"):
                await self.optimizer.cleanup()
                self.capabilities.close()
            self._started = False
