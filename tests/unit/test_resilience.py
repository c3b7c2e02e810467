"""Unit tests for the admission gate and retry policy."""

import asyncio

import httpx
import pytest

from subject_analyzer.errors import (
    CapacityError,
    RateLimitError,
    RequestValidationFailed,
    UpstreamTimeoutError
)
from subject_analyzer.resilience.admission_gate import AdmissionGate, GateConfig
from subject_analyzer.resilience.retry_policies import RetryConfig, is_retryable


def http_status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://mock-ai-service/chat/completions")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


class ScriptedTask:
    """Task factory failing with scripted errors before succeeding."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.attempts = 0

    async def __call__(self):
        self.attempts += 1
        outcome = self.outcomes.pop(0) if self.outcomes else "ok"
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.mark.unit
class TestRetryClassification:
    """Test which failures are worth another attempt."""

    @pytest.mark.parametrize("error", [
        ConnectionError("connection reset"),
        UpstreamTimeoutError(30),
        http_status_error(500),
        http_status_error(429),
        httpx.ConnectError("refused"),
    ])
    def test_transient_errors_are_retryable(self, error):
        assert is_retryable(error)

    @pytest.mark.parametrize("error", [
        CapacityError(),
        RateLimitError(retry_after=3),
        RequestValidationFailed(),
        http_status_error(400),
        http_status_error(401),
        http_status_error(403),
        http_status_error(422),
        ValueError("Validation failed for field"),
        RuntimeError("Authentication required"),
        RuntimeError("authorization denied"),
        RuntimeError("Invalid input: subject"),
    ])
    def test_permanent_errors_are_not_retryable(self, error):
        assert not is_retryable(error)

    @pytest.mark.parametrize("error", [
        asyncio.CancelledError(),
        KeyboardInterrupt(),
    ])
    def test_control_flow_signals_are_not_retryable(self, error):
        assert not is_retryable(error)


@pytest.mark.unit
class TestRetryConfig:
    """Test backoff arithmetic."""

    def test_delays_grow_geometrically(self):
        """Test delay before retry n is multiplier ** n * base."""
        config = RetryConfig(retry_attempts=3, base_delay=1.0, backoff_multiplier=1.5)

        assert config.max_attempts == 4
        assert [config.delay_before(n) for n in (1, 2, 3)] == pytest.approx([1.5, 2.25, 3.375])

    def test_negative_attempts_rejected(self):
        with pytest.raises(ValueError):
            RetryConfig(retry_attempts=-1)


@pytest.mark.unit
class TestAdmissionGate:
    """Test concurrency bound, retries and timeouts."""

    @pytest.fixture
    def gate(self, recording_sleep):
        """Gate admitting 2 calls with 2 retries and instant backoff."""
        config = GateConfig(max_concurrent=2, request_timeout=1.0, retry_attempts=2)
        return AdmissionGate(config, sleep=recording_sleep)

    @pytest.mark.asyncio
    async def test_returns_task_result(self, gate):
        """Test a successful call passes its result through."""
        task = ScriptedTask("analysis")

        assert await gate.submit(task) == "analysis"
        assert task.attempts == 1
        assert gate.active_count == 0

    @pytest.mark.asyncio
    async def test_rejects_when_saturated(self, gate):
        """Test calls beyond the bound fail fast without running."""
        release = asyncio.Event()

        async def blocked():
            await release.wait()
            return "done"

        running = [asyncio.create_task(gate.submit(blocked)) for _ in range(2)]
        await asyncio.sleep(0)

        assert gate.active_count == 2
        assert not gate.is_healthy()

        extra = ScriptedTask()
        with pytest.raises(CapacityError) as exc_info:
            await gate.submit(extra)
        assert extra.attempts == 0
        assert exc_info.value.retry_after == 5

        release.set()
        assert await asyncio.gather(*running) == ["done", "done"]
        assert gate.active_count == 0
        assert gate.is_healthy()

    @pytest.mark.asyncio
    async def test_succeeds_on_third_attempt(self, gate, recording_sleep):
        """Test two transient failures are retried with growing backoff."""
        task = ScriptedTask(ConnectionError("reset"), ConnectionError("reset"), "recovered")

        assert await gate.submit(task) == "recovered"
        assert task.attempts == 3
        assert recording_sleep.delays == pytest.approx([1.5, 2.25])

    @pytest.mark.asyncio
    async def test_surfaces_last_error_when_exhausted(self, gate):
        """Test the final error propagates after every attempt fails."""
        task = ScriptedTask(
            ConnectionError("first"),
            ConnectionError("second"),
            ConnectionError("third")
        )

        with pytest.raises(ConnectionError, match="third"):
            await gate.submit(task)
        assert task.attempts == 3
        assert gate.active_count == 0

    @pytest.mark.asyncio
    async def test_non_retryable_error_attempted_once(self, gate, recording_sleep):
        """Test permanent failures abort the retry loop immediately."""
        task = ScriptedTask(http_status_error(401))

        with pytest.raises(httpx.HTTPStatusError):
            await gate.submit(task)
        assert task.attempts == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_no_retries_configured(self, recording_sleep):
        """Test zero retries means exactly one attempt."""
        gate = AdmissionGate(GateConfig(retry_attempts=0), sleep=recording_sleep)
        task = ScriptedTask(ConnectionError("reset"))

        with pytest.raises(ConnectionError):
            await gate.submit(task)
        assert task.attempts == 1

    @pytest.mark.asyncio
    async def test_attempt_timeout(self, recording_sleep):
        """Test a slow attempt is abandoned and retried, then reported as a timeout."""
        gate = AdmissionGate(
            GateConfig(request_timeout=0.05, retry_attempts=1),
            sleep=recording_sleep
        )
        attempts = 0

        async def slow():
            nonlocal attempts
            attempts += 1
            await asyncio.sleep(1)
            return "too late"

        with pytest.raises(UpstreamTimeoutError):
            await gate.submit(slow)
        assert attempts == 2
        assert gate.active_count == 0

    @pytest.mark.asyncio
    async def test_timeout_then_success(self, recording_sleep):
        """Test a retry after a timeout can still succeed."""
        gate = AdmissionGate(
            GateConfig(request_timeout=0.05, retry_attempts=2),
            sleep=recording_sleep
        )
        attempts = 0

        async def flaky():
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                await asyncio.sleep(1)
            return "fast"

        assert await gate.submit(flaky) == "fast"
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_cancellation_propagates_without_retry(self, gate, recording_sleep):
        """Test cancelling the caller stops the call and frees its slot."""
        started = asyncio.Event()
        attempts = 0

        async def slow():
            nonlocal attempts
            attempts += 1
            started.set()
            await asyncio.sleep(10)
            return "finished"

        pending = asyncio.create_task(gate.submit(slow))
        await started.wait()
        assert gate.active_count == 1

        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending

        assert attempts == 1
        assert recording_sleep.delays == []
        assert gate.active_count == 0

    def test_status_snapshot(self, gate):
        """Test status reports utilization as a percentage."""
        gate._active = 1

        assert gate.get_status() == {
            "activeRequests": 1,
            "maxConcurrent": 2,
            "utilization": 50.0,
            "isHealthy": True
        }

    def test_from_settings(self, test_settings):
        config = GateConfig.from_settings(test_settings)

        assert config.max_concurrent == 5
        assert config.request_timeout == 30.0
        assert config.retry.max_attempts == 3
