# ==== SUBJECT ANALYSIS SERVICE ==== #

"""
Subject line analysis: heuristic score plus model-generated suggestions.

``SubjectAnalysisService.analyze`` is the unit of work the admission gate
runs against the upstream. Upstream errors propagate so the gate can retry
them; unusable model output never fails the request and is replaced with
deterministic fallback suggestions.
"""

from typing import Protocol

from subject_analyzer.business.industries import Industry
from subject_analyzer.observability.logging import ContextualLogger
from subject_analyzer.observability.metrics import ai_fallback_total
from subject_analyzer.schemas.analysis import AnalysisResult, AnalyzeSubjectRequest
from subject_analyzer.services.json_extractor import (
    DISABLED_INSIGHT,
    FALLBACK_INSIGHT,
    extract_suggestions,
    fallback_suggestions
)
from subject_analyzer.services.subject_scorer import score_subject


logger = ContextualLogger(__name__)


class SuggestionGenerator(Protocol):
    """Upstream collaborator producing raw suggestion text."""

    enabled: bool

    async def generate_suggestions(self, subject: str, industry: Industry) -> str:
        ...


class SubjectAnalysisService:
    """Combines the heuristic scorer with upstream suggestions."""

    def __init__(self, generator: SuggestionGenerator):
        self.generator = generator

    async def analyze(self, request: AnalyzeSubjectRequest) -> AnalysisResult:
        """
        Analyze one subject line.

        Args:
            request (AnalyzeSubjectRequest): Validated request

        Returns:
            AnalysisResult: Score, issues, suggestions and insight

        Raises:
            Exception: Whatever the upstream call raised
        """
        subject, industry = request.subject, request.industry
        score, issues = score_subject(subject, industry)

        if not self.generator.enabled:
            ai_fallback_total.labels(reason="disabled").inc()
            return AnalysisResult(
                score=score,
                issues=issues,
                suggestions=fallback_suggestions(subject),
                ai_insights=DISABLED_INSIGHT,
                fallback=True
            )

        raw = await self.generator.generate_suggestions(subject, industry)
        extracted = extract_suggestions(raw)

        if not extracted.success:
            ai_fallback_total.labels(reason="parse_error").inc()
            logger.warning(
                "Unusable model output, serving fallback suggestions",
                error=extracted.error,
                preview=(raw or "")[:200]
            )
            return AnalysisResult(
                score=score,
                issues=issues,
                suggestions=fallback_suggestions(subject),
                ai_insights=FALLBACK_INSIGHT,
                fallback=True
            )

        return AnalysisResult(
            score=score,
            issues=issues,
            suggestions=extracted.data.suggestions,
            ai_insights=extracted.data.insight
        )
