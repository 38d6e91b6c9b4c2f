"""Metric, summary and collector endpoints."""
from fastapi import APIRouter, Depends, Query

from perfwatch.api.dependencies import get_optimizer
from perfwatch.core.exceptions import BadRequestError, NotFoundError
from perfwatch.models import MetricCategory, PerformanceSummary
from perfwatch.schemas import CollectorListResponse, MetricSeriesResponse, MetricsResponse
from perfwatch.services.optimizer import PerformanceOptimizer

router = APIRouter()

_CATEGORIES = {category.value for category in MetricCategory}


@router.get("/metrics", summary="Return stored metric series", response_model=MetricsResponse)
async def read_metrics(
    category: str | None = Query(default=None),
    optimizer: PerformanceOptimizer = Depends(get_optimizer),
) -> MetricsResponse:
    if category is not None and category not in _CATEGORIES:
        raise BadRequestError(f"Unknown metric category '{category}'", extra={"allowed": sorted(_CATEGORIES)})
    return MetricsResponse(category=category, metrics=optimizer.get_metrics(category))


@router.get(
    "/metrics/{category}/{name:path}",
    summary="Return one metric series, optionally checked against a budget",
    response_model=MetricSeriesResponse,
)
async def read_metric_series(
    category: str,
    name: str,
    budget: float | None = Query(default=None),
    optimizer: PerformanceOptimizer = Depends(get_optimizer),
) -> MetricSeriesResponse:
    samples = optimizer.store.series(category, name)
    if not samples:
        raise NotFoundError(f"No samples recorded for {category}/{name}")
    status = optimizer.check_budget(category, name, budget) if budget is not None else None
    return MetricSeriesResponse(category=category, name=name, samples=samples, budget=status)


@router.get("/summary", summary="Return the performance summary", response_model=PerformanceSummary)
async def read_summary(optimizer: PerformanceOptimizer = Depends(get_optimizer)) -> PerformanceSummary:
    return optimizer.get_performance_summary()


@router.get("/collectors", summary="Return collector activation states", response_model=CollectorListResponse)
async def read_collectors(optimizer: PerformanceOptimizer = Depends(get_optimizer)) -> CollectorListResponse:
    return CollectorListResponse(
        collectors=optimizer.collector_states(),
        capabilities=optimizer.capabilities.as_dict(),
    )
