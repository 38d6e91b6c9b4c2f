"""FastAPI application entrypoint."""
from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI
from starlette.datastructures import MutableHeaders
from starlette.requests import Request

from perfwatch.api.error_handlers import register_exception_handlers
from perfwatch.api.router import api_router
from perfwatch.core.clock import now_ms
from perfwatch.core.config import OptimizerOptions, Settings, get_settings
from perfwatch.core.logging import configure_logging
from perfwatch.core.session_context import bind_request_id, reset_request_id
from perfwatch.models import TimingEntry
from perfwatch.services.registry import ServiceRegistry


class RequestTimingMiddleware:
    """Stamp a request id into the logging context and time each request.

    Durations of matched routes are published on the engine's timing
    channel as ``resource`` entries named by route template, so slow
    endpoints count against the load budget. Unmatched paths are not timed.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        token = bind_request_id(request_id)
        start_ms = now_ms()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            reset_request_id(token)

        duration_ms = now_ms() - start_ms
        route = scope.get("route")
        template = getattr(route, "path", None)
        if template is None:
            return
        registry = getattr(getattr(scope.get("app"), "state", None), "services", None)
        timing = registry.capabilities.timing if isinstance(registry, ServiceRegistry) else None
        if timing is not None:
            timing.publish([
                TimingEntry(
                    name=f"{scope.get('method', 'GET')} {template}",
                    entry_type="resource",
                    start_time=start_ms,
                    duration=duration_ms,
                ),
            ])


def create_app(settings: Settings | None = None, options: OptimizerOptions | None = None) -> FastAPI:
    """Build the HTTP application around a fresh service registry."""

    settings = settings or get_settings()
    logger = configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the engine on startup and clean it up on shutdown."""

        registry = ServiceRegistry(settings, options)
        app.state.services = registry

        await registry.startup()
        logger.info("perfwatch API ready on %s:%s", settings.host, settings.port)
        try:
            yield
        finally:
            await registry.shutdown()

    app = FastAPI(
        title="perfwatch",
        description="Runtime performance observability and adaptive optimization",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(RequestTimingMiddleware)
    register_exception_handlers(app)
    app.include_router(api_router)
    return app
