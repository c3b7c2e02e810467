# ==== PERFORMANCE AND CACHE MANAGEMENT ROUTES ==== #

"""
Operational endpoints: performance snapshot, metrics reset, cache clearing.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from subject_analyzer.container import ServiceContainer
from subject_analyzer.observability.logging import get_logger
from subject_analyzer.routes.dependencies import get_container


router = APIRouter()
logger = get_logger(__name__)


@router.get("/performance")
async def get_performance(
    container: ServiceContainer = Depends(get_container)
) -> Dict[str, Any]:
    """
    Performance snapshot of the analysis pipeline.
    
    Returns:
        Dict[str, Any]: Request metrics, cache occupancy, admission gate
            status and overall health classification
    """
    recorder = container.recorder
    return {
        "metrics": recorder.snapshot(),
        "cache": container.cache.get_stats(),
        "loadBalancer": container.gate.get_status(),
        "rateLimiter": await container.rate_limiter.get_stats(),
        "health": recorder.health_status(),
        "throttle": recorder.should_throttle()
    }


@router.post("/performance/reset")
async def reset_performance(
    container: ServiceContainer = Depends(get_container)
) -> Dict[str, str]:
    """Reset performance counters."""
    container.recorder.reset()
    logger.info("Performance metrics reset")
    return {"message": "Performance metrics reset successfully"}


@router.post("/cache/clear")
async def clear_cache(
    container: ServiceContainer = Depends(get_container)
) -> Dict[str, str]:
    """Drop every cached analysis."""
    await container.cache.clear()
    logger.info("Response cache cleared")
    return {"message": "Cache cleared successfully"}
