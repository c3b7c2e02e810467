"""Pydantic schemas for subject line analysis."""

from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from subject_analyzer.business.industries import Industry


class AnalyzeSubjectRequest(BaseModel):
    """Request body for ``POST /api/analyze-subject``."""
    
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {"subject": "50% OFF — Today Only!", "industry": "retail"}
        }
    )
    
    subject: str = Field(..., min_length=1, max_length=200, description="Email subject line")
    industry: Industry = Field(..., description="Industry category of the campaign")


class AnalysisResult(BaseModel):
    """Computed analysis artifact, the unit stored in the response cache.

    The literal subject text is deliberately not part of it: the cache key
    folds case and surrounding whitespace, and each response echoes the
    caller's own text.
    """
    
    model_config = ConfigDict(frozen=True)
    
    score: int = Field(..., ge=0, le=100)
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    ai_insights: str
    fallback: bool = Field(False, exclude=True, description="Suggestions derived from the subject text")


class AnalyzeSubjectResponse(BaseModel):
    """Response body for ``POST /api/analyze-subject``."""
    
    original: str
    score: int
    issues: List[str]
    suggestions: List[str]
    ai_insights: str
    
    @classmethod
    def from_result(cls, original: str, result: AnalysisResult) -> "AnalyzeSubjectResponse":
        return cls(original=original, **result.model_dump())


class SuggestionPayload(BaseModel):
    """Strict shape expected from the text-generation service."""
    
    model_config = ConfigDict(extra="ignore", strict=True)
    
    suggestions: List[str] = Field(..., min_length=1)
    insight: str = Field(..., min_length=1)
    
    @field_validator("suggestions")
    @classmethod
    def check_suggestions_not_blank(cls, v: List[str]) -> List[str]:
        cleaned = [item.strip() for item in v]
        if any(not item for item in cleaned):
            raise ValueError("suggestions must be non-empty strings")
        return cleaned


class ErrorResponse(BaseModel):
    """Error body returned for every rejected request."""
    
    error: str
    code: str
    correlation_id: str | None = None
    retryAfter: int | None = None
    details: Any | None = None


class RateLimitStatus(BaseModel):
    """Response body for ``GET /api/rate-limit``."""
    
    remaining: int
    resetTime: int = Field(..., description="Window end as epoch milliseconds")


HealthStatus = Literal["healthy", "degraded", "critical"]
