"""
Admission gate for upstream calls.

Bounds the number of concurrent calls to the text-generation service and
runs each admitted call with a per-attempt timeout and exponential backoff
retries. Saturation is reported immediately instead of queueing.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from subject_analyzer.errors import CapacityError, UpstreamTimeoutError
from subject_analyzer.observability.logging import ContextualLogger
from subject_analyzer.observability.metrics import (
    gate_active_requests,
    gate_rejections_total,
    retry_failures_total
)
from subject_analyzer.observability.tracing import get_tracer
from subject_analyzer.resilience.retry_policies import (
    ExponentialBackoffPolicy,
    RetryConfig,
    is_retryable
)


logger = ContextualLogger(__name__)
tracer = get_tracer(__name__)

T = TypeVar("T")


@dataclass
class GateConfig:
    """Configuration for the admission gate."""
    max_concurrent: int = 5
    request_timeout: float = 30.0
    retry_attempts: int = 2
    backoff_multiplier: float = 1.5
    base_delay: float = 1.0
    capacity_retry_after: int = 5

    def __post_init__(self):
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

    @classmethod
    def from_settings(cls, settings) -> "GateConfig":
        return cls(
            max_concurrent=settings.GATE_MAX_CONCURRENT,
            request_timeout=settings.GATE_REQUEST_TIMEOUT_SECONDS,
            retry_attempts=settings.GATE_RETRY_ATTEMPTS,
            backoff_multiplier=settings.GATE_BACKOFF_MULTIPLIER,
            base_delay=settings.GATE_BACKOFF_BASE_SECONDS,
            capacity_retry_after=settings.GATE_CAPACITY_RETRY_AFTER_SECONDS
        )

    @property
    def retry(self) -> RetryConfig:
        return RetryConfig(
            retry_attempts=self.retry_attempts,
            base_delay=self.base_delay,
            backoff_multiplier=self.backoff_multiplier
        )


class AdmissionGate:
    """
    Bounded-concurrency gate with timeout and retry around upstream calls.

    All state changes happen on the event loop without an intervening
    ``await``: the slot is taken before the first suspension point and given
    back in a ``finally`` block, so ``active_count`` stays within
    ``0..max_concurrent`` and is released exactly once per admitted call.
    """

    def __init__(
        self,
        config: Optional[GateConfig] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        self.config = config or GateConfig()
        self.retry_policy = ExponentialBackoffPolicy(self.config.retry, sleep=sleep)
        self._active = 0

    @property
    def active_count(self) -> int:
        return self._active

    def is_healthy(self) -> bool:
        """Whether another call would be admitted right now."""
        return self._active < self.config.max_concurrent

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of gate occupancy for the performance endpoint."""
        return {
            "activeRequests": self._active,
            "maxConcurrent": self.config.max_concurrent,
            "utilization": (self._active / self.config.max_concurrent) * 100,
            "isHealthy": self.is_healthy()
        }

    async def submit(
        self,
        task: Callable[[], Awaitable[T]],
        operation_name: str = "upstream"
    ) -> T:
        """
        Run ``task`` under admission control.

        Args:
            task: Zero-argument coroutine factory; called once per attempt
            operation_name: Label for metrics and logs

        Returns:
            The task's result from the first successful attempt

        Raises:
            CapacityError: If the gate is saturated (nothing is attempted)
            Exception: The last error observed once retries are exhausted or
                a non-retryable error occurs
        """
        if self._active >= self.config.max_concurrent:
            gate_rejections_total.inc()
            logger.warning(
                "Admission gate at capacity",
                operation=operation_name,
                active=self._active,
                max_concurrent=self.config.max_concurrent
            )
            raise CapacityError(retry_after=self.config.capacity_retry_after)

        self._active += 1
        gate_active_requests.set(self._active)
        try:
            with tracer.start_as_current_span("admission_gate_submit") as span:
                span.set_attribute("operation", operation_name)
                span.set_attribute("active_requests", self._active)
                return await self._execute_with_retry(task, operation_name)
        finally:
            self._active -= 1
            gate_active_requests.set(self._active)

    async def _execute_with_retry(
        self,
        task: Callable[[], Awaitable[T]],
        operation_name: str
    ) -> T:
        try:
            async for attempt in self.retry_policy.build(operation_name):
                with attempt:
                    return await self._attempt(task)
        except Exception as e:
            retry_failures_total.labels(
                operation=operation_name,
                error_type=type(e).__name__
            ).inc()
            logger.error(
                "Upstream call failed",
                operation=operation_name,
                retryable=is_retryable(e),
                error=repr(e)
            )
            raise

    async def _attempt(self, task: Callable[[], Awaitable[T]]) -> T:
        """Race one attempt against the per-attempt deadline.

        On timeout the pending call is cancelled and its result, should it
        still arrive, is discarded.
        """
        try:
            return await asyncio.wait_for(task(), timeout=self.config.request_timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(self.config.request_timeout) from e
