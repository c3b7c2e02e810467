"""Retry policy for calls to the upstream text-generation service."""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt
)
from tenacity.wait import wait_base

from subject_analyzer.errors import NonRetryableError
from subject_analyzer.observability.logging import ContextualLogger
from subject_analyzer.observability.metrics import retry_attempts_total


logger = ContextualLogger(__name__)

# Upstream error messages that signal a problem retrying cannot fix.
NON_RETRYABLE_MARKERS = (
    "validation",
    "authentication",
    "authorization",
    "invalid input",
)

NON_RETRYABLE_STATUS_CODES = frozenset({400, 401, 403, 422})


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    retry_attempts: int = 2
    base_delay: float = 1.0
    backoff_multiplier: float = 1.5

    def __post_init__(self):
        if self.retry_attempts < 0:
            raise ValueError("retry_attempts must not be negative")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    @property
    def max_attempts(self) -> int:
        return self.retry_attempts + 1

    def delay_before(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1 for the first retry)."""
        return (self.backoff_multiplier ** attempt) * self.base_delay


class wait_backoff_multiplier(wait_base):
    """Wait ``multiplier ** n * base_delay`` after the n-th failed attempt."""

    def __init__(self, config: RetryConfig):
        self.config = config

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.config.delay_before(retry_state.attempt_number)


def is_retryable(exception: BaseException) -> bool:
    """Determine if an upstream failure should trigger another attempt.

    Capacity, rate-limit and validation errors, client-side HTTP errors and
    any error whose message signals validation, authentication, authorization
    or invalid input abort the retry loop. Cancellation and other
    ``BaseException`` signals are never retried. Everything else is.
    """
    if not isinstance(exception, Exception):
        return False

    if isinstance(exception, NonRetryableError):
        return False

    if isinstance(exception, httpx.HTTPStatusError):
        if exception.response.status_code in NON_RETRYABLE_STATUS_CODES:
            return False

    message = str(exception).lower()
    return not any(marker in message for marker in NON_RETRYABLE_MARKERS)


class ExponentialBackoffPolicy:
    """Exponential backoff retry policy without jitter."""

    def __init__(
        self,
        config: RetryConfig,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        self.config = config
        self._sleep = sleep

    def build(self, operation_name: str = "upstream") -> AsyncRetrying:
        """Get a tenacity retry controller for one logical call."""
        kwargs = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep

        return AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_backoff_multiplier(self.config),
            retry=retry_if_exception(is_retryable),
            before_sleep=self._before_sleep_callback(operation_name),
            reraise=True,
            **kwargs
        )

    def _before_sleep_callback(self, operation_name: str):
        """Callback before sleep between retries."""
        def callback(retry_state: RetryCallState):
            attempt = retry_state.attempt_number
            retry_attempts_total.labels(
                operation=operation_name,
                attempt=str(attempt)
            ).inc()
            logger.warning(
                "Upstream attempt failed, retrying",
                operation=operation_name,
                attempt=attempt,
                delay_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
                error=repr(retry_state.outcome.exception())
            )

        return callback

