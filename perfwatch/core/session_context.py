"""Context variables that tag log records with the active session and request.

A *session* is a unit of engine work (``perf:<id>`` for an optimizer,
``bg:<phase>`` for registry startup and shutdown). A *request* is one HTTP
exchange. The two are independent: a request that triggers engine work
carries both.
"""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Dict, Iterator

_session_id: ContextVar[str | None] = ContextVar("session_id", default=None)
_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_session_id() -> str | None:
    return _session_id.get()


def get_request_id() -> str | None:
    return _request_id.get()


@contextmanager
def session_context(session_id: str) -> Iterator[None]:
    token = _session_id.set(session_id)
    try:
        yield
    finally:
        _session_id.reset(token)


def bind_request_id(request_id: str) -> Token:
    return _request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)


def log_fields() -> Dict[str, str]:
    """Values injected into every log record."""
    return {
        "session_id": get_session_id() or "system",
        "request_id": get_request_id() or "-",
    }
