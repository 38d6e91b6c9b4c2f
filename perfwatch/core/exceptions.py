"""Common exception helpers for the engine and the HTTP layer."""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base exception for perfwatch specific errors."""

    status_code = 500
    error_code = "app_error"
    default_detail = "An unexpected error occurred."

    def __init__(self, detail: str | None = None, *, extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail
        self.extra = extra or {}


class EngineError(AppError):
    """Failure raised inside the engine; never escapes the public API."""

    error_code = "engine_error"


class CollectorFailure(EngineError):
    """Raised when a collector callback crashes."""

    error_code = "collector_failure"

    def __init__(self, collector_name: str, detail: str | None = None, *, extra: dict[str, Any] | None = None) -> None:
        self.collector_name = collector_name
        message = detail or f"{collector_name} collector failed"
        payload = {"collector": collector_name}
        if extra:
            payload.update(extra)
        super().__init__(message, extra=payload)


class LazyLoadFailure(EngineError):
    """Raised when a deferred resource or component cannot be resolved."""

    error_code = "lazy_load_failure"
    default_detail = "Lazy load failed."


class ComponentNotFoundError(LazyLoadFailure):
    """Raised by the component registry for unknown names."""

    error_code = "component_not_found"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Component '{name}' is not registered", extra={"component": name})


class OptimizationActionFailure(EngineError):
    """Raised when one optimization action fails."""

    error_code = "optimization_failure"

    def __init__(self, action: str, detail: str | None = None) -> None:
        self.action = action
        super().__init__(detail or f"Optimization '{action}' failed", extra={"action": action})


class DomainError(AppError):
    """Normalized domain error surfaced to API handlers."""


class BadRequestError(DomainError):
    status_code = 400
    error_code = "bad_request"
    default_detail = "Invalid request."


class NotFoundError(DomainError):
    status_code = 404
    error_code = "not_found"
    default_detail = "Resource not found."


class ServiceUnavailableError(DomainError):
    status_code = 503
    error_code = "service_unavailable"
    default_detail = "Service unavailable."
