"""Alert endpoints."""
from fastapi import APIRouter, Depends, Query

from perfwatch.api.dependencies import get_optimizer
from perfwatch.schemas import AlertListResponse
from perfwatch.services.optimizer import PerformanceOptimizer

router = APIRouter()


@router.get("/alerts", summary="List recorded performance alerts", response_model=AlertListResponse)
async def list_alerts(
    alert_type: str | None = Query(default=None, alias="type"),
    optimizer: PerformanceOptimizer = Depends(get_optimizer),
) -> AlertListResponse:
    alerts = optimizer.get_alerts(alert_type)
    return AlertListResponse(alerts=alerts, total=len(alerts))
