# ==== SUBJECT ANALYSIS ROUTES ==== #

"""
Subject line analysis and rate limit status endpoints.

The analysis body is decoded here but validated by the orchestrator, after
the capacity and rate limit checks, so malformed requests still consume the
caller's quota.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request

from subject_analyzer.container import ServiceContainer
from subject_analyzer.routes.dependencies import get_client_key, get_container
from subject_analyzer.schemas.analysis import (
    AnalyzeSubjectRequest,
    AnalyzeSubjectResponse,
    ErrorResponse,
    RateLimitStatus
)


router = APIRouter()


@router.post(
    "/analyze-subject",
    response_model=AnalyzeSubjectResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        503: {"model": ErrorResponse, "description": "Service at capacity"},
        500: {"model": ErrorResponse, "description": "Unexpected failure"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": AnalyzeSubjectRequest.model_json_schema()}
            }
        }
    }
)
async def analyze_subject(
    request: Request,
    client_key: str = Depends(get_client_key),
    container: ServiceContainer = Depends(get_container)
) -> AnalyzeSubjectResponse:
    """
    Score a subject line and suggest alternatives.
    
    Args:
        request (Request): HTTP request carrying ``{subject, industry}``
        client_key (str): Caller identity for rate limiting
        container (ServiceContainer): Application components
        
    Returns:
        AnalyzeSubjectResponse: Score, issues, suggestions and insight
    """
    payload: Any
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    
    return await container.orchestrator.analyze(client_key, payload)


@router.get("/rate-limit", response_model=RateLimitStatus)
async def get_rate_limit(
    client_key: str = Depends(get_client_key),
    container: ServiceContainer = Depends(get_container)
) -> RateLimitStatus:
    """Remaining requests and window end (epoch ms) for the caller."""
    limiter = container.rate_limiter
    return RateLimitStatus(
        remaining=await limiter.get_remaining_requests(client_key),
        resetTime=int(await limiter.get_reset_time(client_key) * 1000)
    )
