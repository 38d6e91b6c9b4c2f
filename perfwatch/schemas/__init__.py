"""Pydantic schemas exposed by the application API."""
from .metrics import (
    AlertListResponse,
    CollectorListResponse,
    HealthResponse,
    MetricSeriesResponse,
    MetricsResponse,
    OptimizationResponse,
)

__all__ = [
    "AlertListResponse",
    "CollectorListResponse",
    "HealthResponse",
    "MetricSeriesResponse",
    "MetricsResponse",
    "OptimizationResponse",
]
