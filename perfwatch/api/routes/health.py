"""Health check endpoint."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from perfwatch.api.dependencies import get_optimizer
from perfwatch.schemas import HealthResponse
from perfwatch.services.optimizer import PerformanceOptimizer

router = APIRouter()


@router.get("/health", summary="Health probe", response_model=HealthResponse)
async def health_check(optimizer: PerformanceOptimizer = Depends(get_optimizer)) -> HealthResponse:
    active = sum(1 for state in optimizer.collector_states() if state.active)
    return HealthResponse(
        status="healthy" if active else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        active_collectors=active,
    )
