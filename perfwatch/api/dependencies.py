"""FastAPI dependency providers."""
from fastapi import Depends, Request

from perfwatch.core.exceptions import ServiceUnavailableError
from perfwatch.services.optimizer import PerformanceOptimizer
from perfwatch.services.registry import ServiceRegistry


def get_service_registry(request: Request) -> ServiceRegistry:
    """Return the service registry stored on the FastAPI application state."""

    registry = getattr(request.app.state, "services", None)
    if not isinstance(registry, ServiceRegistry):
        raise ServiceUnavailableError("Service registry not initialised")
    return registry


def get_optimizer(registry: ServiceRegistry = Depends(get_service_registry)) -> PerformanceOptimizer:
    return registry.optimizer
