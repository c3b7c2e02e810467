# ==== AI CLIENT SERVICE ==== #

"""
AI client for an OpenAI-compatible chat completions API.

One call renders the suggestion prompt, posts it to
``{AI_PROVIDER_BASE_URL}/chat/completions`` and returns the raw message
content. Transport and HTTP errors propagate to the caller so the admission
gate can classify and retry them; parsing the content is left to
``subject_analyzer.services.json_extractor``.
"""

import re
import time
from typing import Any, Dict, Optional

import httpx

from subject_analyzer.business.industries import Industry
from subject_analyzer.errors import UpstreamFailureError
from subject_analyzer.observability.logging import ContextualLogger, log_performance
from subject_analyzer.observability.metrics import (
    ai_failures_total,
    ai_requests_total,
    ai_tokens_total
)
from subject_analyzer.observability.tracing import get_tracer
from subject_analyzer.services.prompt_loader import PromptLoader, get_prompt_loader
from subject_analyzer.settings import Settings


# ==== MODULE INITIALIZATION ==== #


logger = ContextualLogger(__name__)
tracer = get_tracer(__name__)


# ==== AI CLIENT CLASS ==== #


class AIClient:
    """
    Client for the upstream text-generation service.

    Owns a pooled ``httpx.AsyncClient``; call ``aclose`` on shutdown. No
    client-side timeout is applied beyond httpx's connect timeout, the
    admission gate enforces the per-attempt deadline.
    """

    def __init__(
        self,
        settings: Settings,
        prompt_loader: Optional[PromptLoader] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.model = settings.AI_MODEL
        # Prometheus labels must match [a-zA-Z_:][a-zA-Z0-9_:]*
        self.model_label = re.sub(r'[^a-zA-Z0-9_]', '_', self.model)
        self.api_key = settings.AI_API_KEY
        self.base_url = settings.AI_PROVIDER_BASE_URL.rstrip("/")
        self.temperature = settings.AI_TEMPERATURE
        self.max_tokens = settings.AI_MAX_TOKENS
        self.enabled = settings.ai_enabled

        self.prompt_loader = prompt_loader or get_prompt_loader()
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(None, connect=10.0)
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    async def generate_suggestions(self, subject: str, industry: Industry) -> str:
        """
        Ask the model for alternative subject lines and one insight.

        Args:
            subject (str): Subject line under analysis
            industry (Industry): Industry category

        Returns:
            str: Raw message content, expected to hold
                ``{"suggestions": [...], "insight": "..."}``

        Raises:
            UpstreamFailureError: If the provider is not configured or the
                completion envelope is malformed
            httpx.HTTPError: On transport or HTTP status errors
        """
        if not self.enabled:
            raise UpstreamFailureError("AI provider disabled: authentication key not configured")

        with tracer.start_as_current_span("ai_generate_suggestions") as span:
            span.set_attribute("model", self.model)
            span.set_attribute("industry", industry.value)

            start_time = time.perf_counter()
            try:
                data = await self._make_request(
                    system_prompt=self.prompt_loader.get_system_prompt(),
                    user_prompt=self.prompt_loader.get_subject_suggestions_prompt(subject, industry)
                )
                content = self._extract_content(data)
                self._record_usage(data.get("usage") or {})
            except Exception as e:
                ai_failures_total.labels(error_type=type(e).__name__).inc()
                span.set_attribute("error", str(e))
                raise

            duration = time.perf_counter() - start_time
            span.set_attribute("processing_time_ms", int(duration * 1000))
            ai_requests_total.labels(model=self.model_label).inc()
            log_performance("ai_generate_suggestions", duration, model=self.model)

            return content

    # ==== INTERNAL HELPER METHODS ==== #

    async def _make_request(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens
        }

        response = await self._http.post(
            f"{self.base_url}/chat/completions",
            json=body,
            headers=headers
        )
        response.raise_for_status()

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFailureError("AI provider returned a non-JSON body") from e

    @staticmethod
    def _extract_content(data: Dict[str, Any]) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamFailureError("AI provider returned a malformed completion") from e
        return content or ""

    def _record_usage(self, usage: Dict[str, Any]) -> None:
        prompt_tokens = usage.get("prompt_tokens", 0) or 0
        completion_tokens = usage.get("completion_tokens", 0) or 0

        ai_tokens_total.labels(model=self.model_label, type="prompt").inc(prompt_tokens)
        ai_tokens_total.labels(model=self.model_label, type="completion").inc(completion_tokens)
        logger.debug(
            "AI usage",
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens
        )
