"""Unit tests for request orchestration order and outcomes."""

import httpx
import pytest

from subject_analyzer.errors import (
    CapacityError,
    RateLimitError,
    RequestValidationFailed,
    UpstreamFailureError
)


CLIENT = "10.0.0.7"
PAYLOAD = {"subject": "50% OFF — Today Only!", "industry": "retail"}


@pytest.mark.unit
class TestRequestOrchestrator:
    """Test the fixed sequence of checks around one analysis."""

    @pytest.fixture
    def orchestrator(self, container):
        return container.orchestrator

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, orchestrator, container, stub_generator):
        """Test a normalized repeat is served from cache echoing its own text."""
        first = await orchestrator.analyze(CLIENT, PAYLOAD)
        second = await orchestrator.analyze(
            CLIENT, {"subject": "  50% off — today only!  ", "industry": "retail"}
        )

        assert stub_generator.call_count == 1
        assert first.original == "50% OFF — Today Only!"
        assert second.original == "  50% off — today only!  "
        assert second.score == first.score
        assert second.suggestions == first.suggestions

        snapshot = container.recorder.snapshot()
        assert snapshot["cacheHits"] == 1
        assert snapshot["cacheMisses"] == 1
        assert snapshot["cacheHitRate"] == 50.0

    @pytest.mark.asyncio
    async def test_cached_fallback_quotes_each_callers_text(
        self, orchestrator, container, stub_generator
    ):
        """Test fallback suggestions served from cache use the repeat's own subject."""
        stub_generator.enabled = False

        first = await orchestrator.analyze(CLIENT, {"subject": "Hello World", "industry": "retail"})
        second = await orchestrator.analyze(
            CLIENT, {"subject": "  HELLO WORLD ", "industry": "retail"}
        )

        assert len(container.cache) == 1
        assert container.recorder.snapshot()["cacheHits"] == 1
        assert first.suggestions[0] == "Enhanced: Hello World"
        assert second.suggestions[0] == "Enhanced:   HELLO WORLD "
        assert "Hello World" not in " ".join(second.suggestions)
        assert second.ai_insights == first.ai_insights

    @pytest.mark.asyncio
    async def test_capacity_checked_first(self, orchestrator, container, stub_generator):
        """Test a saturated gate rejects before the rate limiter counts the request."""
        container.gate._active = container.gate.config.max_concurrent

        with pytest.raises(CapacityError) as exc_info:
            await orchestrator.analyze(CLIENT, {"subject": ""})

        assert exc_info.value.retry_after == 5
        assert await container.rate_limiter.get_remaining_requests(CLIENT) == 10
        assert stub_generator.call_count == 0

    @pytest.mark.asyncio
    async def test_rate_limit_checked_before_validation(self, orchestrator):
        """Test invalid requests consume quota and the 11th is rate limited."""
        for _ in range(10):
            with pytest.raises(RequestValidationFailed):
                await orchestrator.analyze(CLIENT, None)

        with pytest.raises(RateLimitError) as exc_info:
            await orchestrator.analyze(CLIENT, None)

        assert exc_info.value.retry_after > 0
        assert exc_info.value.reset_time is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload,field", [
        ({"subject": "", "industry": "retail"}, "subject"),
        ({"subject": "x" * 201, "industry": "retail"}, "subject"),
        ({"subject": "Hello", "industry": "gardening"}, "industry"),
        ({"industry": "retail"}, "subject"),
    ])
    async def test_validation_details(self, orchestrator, payload, field):
        with pytest.raises(RequestValidationFailed) as exc_info:
            await orchestrator.analyze(CLIENT, payload)

        assert exc_info.value.details[0]["field"] == field

    @pytest.mark.asyncio
    async def test_upstream_failure(self, orchestrator, container, stub_generator):
        """Test exhausted retries surface as a generic failure and are not cached."""
        stub_generator.outcomes = [RuntimeError("boom")] * 3

        with pytest.raises(UpstreamFailureError) as exc_info:
            await orchestrator.analyze(CLIENT, PAYLOAD)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert stub_generator.call_count == 3
        assert len(container.cache) == 0
        assert container.recorder.snapshot()["errorCount"] == 1
        assert container.gate.active_count == 0

    @pytest.mark.asyncio
    async def test_non_retryable_upstream_failure(self, orchestrator, stub_generator):
        request = httpx.Request("POST", "http://mock-ai-service/chat/completions")
        stub_generator.outcomes = [
            httpx.HTTPStatusError("401", request=request, response=httpx.Response(401, request=request))
        ]

        with pytest.raises(UpstreamFailureError):
            await orchestrator.analyze(CLIENT, PAYLOAD)

        assert stub_generator.call_count == 1

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(
        self, orchestrator, stub_generator, recording_sleep
    ):
        stub_generator.outcomes = [ConnectionError("reset"), ConnectionError("reset")]

        response = await orchestrator.analyze(CLIENT, PAYLOAD)

        assert response.original == PAYLOAD["subject"]
        assert stub_generator.call_count == 3
        assert recording_sleep.delays == pytest.approx([1.5, 2.25])
