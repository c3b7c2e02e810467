# ==== HEALTH CHECK ROUTES ==== #

"""
Liveness and readiness probes.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from subject_analyzer.container import ServiceContainer
from subject_analyzer.routes.dependencies import get_container


router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, str]:
    """
    Liveness probe endpoint.
    
    Returns:
        dict: Health status with timestamp
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/readyz")
async def readiness_check(
    container: ServiceContainer = Depends(get_container)
) -> Any:
    """
    Readiness probe endpoint.
    
    Not ready while the admission gate is saturated, so load balancers can
    steer traffic elsewhere.
    """
    gate_status = container.gate.get_status()
    body = {
        "status": "ready" if gate_status["isHealthy"] else "at_capacity",
        "service": container.settings.SERVICE_NAME,
        "environment": container.settings.APP_ENV,
        "gate": gate_status
    }
    if not gate_status["isHealthy"]:
        return JSONResponse(status_code=503, content=body)
    return body
