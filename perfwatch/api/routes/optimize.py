"""Trigger adaptive optimizations."""
from fastapi import APIRouter, Depends

from perfwatch.api.dependencies import get_optimizer
from perfwatch.schemas import OptimizationResponse
from perfwatch.services.optimizer import PerformanceOptimizer

router = APIRouter()


@router.post("/optimize", summary="Apply optimizations for current recommendations", response_model=OptimizationResponse)
async def apply_optimizations(optimizer: PerformanceOptimizer = Depends(get_optimizer)) -> OptimizationResponse:
    return OptimizationResponse(results=await optimizer.apply_optimizations())
