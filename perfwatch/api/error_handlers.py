"""Shared FastAPI exception handlers."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_422_UNPROCESSABLE_CONTENT, HTTP_500_INTERNAL_SERVER_ERROR

from perfwatch.core.exceptions import DomainError
from perfwatch.models import MetricCategory

logger = logging.getLogger("perfwatch.api")


def _record_api_error(request: Request, status_code: int, error: str) -> None:
    """Feed a failed request into the engine as a network error sample."""

    registry = getattr(request.app.state, "services", None)
    optimizer = getattr(registry, "optimizer", None)
    if optimizer is None:
        return
    optimizer.record_metric(MetricCategory.NETWORK, "api-error", {
        "url": request.url.path,
        "method": request.method,
        "status": status_code,
        "error": error,
    })


def register_exception_handlers(app: FastAPI) -> None:
    """Attach global exception handlers to the FastAPI app."""

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
        payload: dict[str, Any] = {"detail": exc.detail, "error": exc.error_code}
        if exc.extra:
            payload["meta"] = exc.extra

        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            level,
            "Request failed (%s %s): %s",
            request.method,
            request.url.path,
            exc.detail,
            exc_info=(exc.__cause__ or exc) if level == logging.ERROR else None,
        )
        _record_api_error(request, exc.status_code, exc.error_code)
        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Validation error (%s %s): %s", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=HTTP_422_UNPROCESSABLE_CONTENT,
            content={"detail": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        _record_api_error(request, HTTP_500_INTERNAL_SERVER_ERROR, type(exc).__name__)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
