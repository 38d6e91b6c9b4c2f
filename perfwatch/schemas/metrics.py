"""Schemas for metric, alert and optimization endpoints."""
from typing import Any, Dict

from pydantic import BaseModel, Field

from perfwatch.models import Alert, BudgetStatus, CollectorState, MetricSample, OptimizationResult


class MetricsResponse(BaseModel):
    """Envelope returned when reading stored metric series."""

    category: str | None = None
    metrics: Dict[str, Any] = Field(default_factory=dict)


class AlertListResponse(BaseModel):
    alerts: list[Alert] = Field(default_factory=list)
    total: int = 0


class CollectorListResponse(BaseModel):
    collectors: list[CollectorState] = Field(default_factory=list)
    capabilities: Dict[str, bool] = Field(default_factory=dict)


class OptimizationResponse(BaseModel):
    results: list[OptimizationResult] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    active_collectors: int


class MetricSeriesResponse(BaseModel):
    category: str
    name: str
    samples: list[MetricSample] = Field(default_factory=list)
    budget: BudgetStatus | None = None
