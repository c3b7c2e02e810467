# ==== REQUEST ORCHESTRATOR ==== #

"""
Request orchestration for subject line analysis.

Runs every inbound analysis through a fixed sequence, cheapest checks first,
each step short-circuiting the rest:

1. admission gate health (503 when saturated)
2. per-client rate limit (429 with retry hint)
3. input validation (400)
4. response cache lookup (served without touching the gate)
5. admission gate submission, then cache write

Rejections at steps 1-3 are raised as ``AnalyzerError`` subclasses and
converted to HTTP responses by the application's exception handlers.
"""

import time
from typing import Any, Dict, List

from pydantic import ValidationError

from subject_analyzer.errors import (
    AnalyzerError,
    CapacityError,
    RateLimitError,
    RequestValidationFailed,
    UpstreamFailureError
)
from subject_analyzer.observability.logging import ContextualLogger
from subject_analyzer.observability.metrics import (
    analysis_requests_total,
    cache_hits_total,
    cache_misses_total
)
from subject_analyzer.observability.tracing import get_tracer
from subject_analyzer.resilience.admission_gate import AdmissionGate
from subject_analyzer.resilience.rate_limiter import RateLimiter
from subject_analyzer.schemas.analysis import (
    AnalysisResult,
    AnalyzeSubjectRequest,
    AnalyzeSubjectResponse
)
from subject_analyzer.services.performance import PerformanceRecorder
from subject_analyzer.services.json_extractor import fallback_suggestions
from subject_analyzer.services.response_cache import ResponseCache, fingerprint
from subject_analyzer.services.subject_analysis import SubjectAnalysisService


logger = ContextualLogger(__name__)
tracer = get_tracer(__name__)


def _validation_details(error: ValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in item["loc"]),
            "message": item["msg"],
            "type": item["type"]
        }
        for item in error.errors()
    ]


class RequestOrchestrator:
    """Composition root for the analysis request pipeline."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        cache: ResponseCache,
        gate: AdmissionGate,
        recorder: PerformanceRecorder,
        analysis_service: SubjectAnalysisService
    ):
        self.rate_limiter = rate_limiter
        self.cache = cache
        self.gate = gate
        self.recorder = recorder
        self.analysis_service = analysis_service

    async def analyze(self, client_key: str, payload: Any) -> AnalyzeSubjectResponse:
        """
        Handle one analysis request.

        Args:
            client_key (str): Rate limiting identity of the caller
            payload (Any): Decoded, not yet validated request body

        Returns:
            AnalyzeSubjectResponse: Analysis echoing the caller's subject text

        Raises:
            CapacityError: Gate saturated
            RateLimitError: Client quota exhausted for the current window
            RequestValidationFailed: Payload does not match the request schema
            UpstreamTimeoutError: Last attempt exceeded the per-attempt deadline
            UpstreamFailureError: Any other upstream failure surfaced by the gate
        """
        start_time = time.perf_counter()

        with tracer.start_as_current_span("analyze_subject") as span:
            span.set_attribute("client", client_key)

            if not self.gate.is_healthy():
                analysis_requests_total.labels(outcome="at_capacity").inc()
                raise CapacityError(retry_after=self.gate.config.capacity_retry_after)

            if not await self.rate_limiter.allow_request(client_key):
                analysis_requests_total.labels(outcome="rate_limited").inc()
                raise RateLimitError(
                    retry_after=await self.rate_limiter.get_retry_after(client_key),
                    reset_time=await self.rate_limiter.get_reset_time(client_key)
                )

            try:
                request = AnalyzeSubjectRequest.model_validate(payload)
            except ValidationError as e:
                analysis_requests_total.labels(outcome="invalid").inc()
                raise RequestValidationFailed(details=_validation_details(e)) from e

            key = fingerprint(request.subject, request.industry)
            span.set_attribute("industry", request.industry.value)

            cached = await self.cache.get(key)
            if cached is not None:
                span.set_attribute("cache_hit", True)
                cache_hits_total.inc()
                analysis_requests_total.labels(outcome="cache_hit").inc()
                self.recorder.record(self._elapsed_ms(start_time), from_cache=True)
                return self._respond(request.subject, cached)

            span.set_attribute("cache_hit", False)
            cache_misses_total.inc()

            try:
                result = await self.gate.submit(
                    lambda: self.analysis_service.analyze(request),
                    operation_name="analyze_subject"
                )
            except Exception as e:
                analysis_requests_total.labels(outcome="error").inc()
                self.recorder.record(self._elapsed_ms(start_time), is_error=True)
                if isinstance(e, AnalyzerError):
                    raise
                raise UpstreamFailureError(f"Analysis failed: {type(e).__name__}") from e

            await self.cache.set(key, result)
            analysis_requests_total.labels(outcome="success").inc()
            self.recorder.record(self._elapsed_ms(start_time))

            return self._respond(request.subject, result)

    @staticmethod
    def _respond(original: str, result: AnalysisResult) -> AnalyzeSubjectResponse:
        # Fallback suggestions quote the subject, so they follow the caller's text
        if result.fallback:
            result = result.model_copy(update={"suggestions": fallback_suggestions(original)})
        return AnalyzeSubjectResponse.from_result(original, result)

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000
