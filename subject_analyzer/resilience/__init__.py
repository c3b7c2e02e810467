"""
Resilience patterns guarding the upstream text-generation service.

- Rate Limiter: fixed window request budget per client
- Admission Gate: bounded concurrency, fail-fast when saturated
- Retry: exponential backoff with per-attempt timeout
"""

from .admission_gate import AdmissionGate, GateConfig
from .rate_limiter import RateLimiter, RateLimitConfig, RateLimitEntry
from .retry_policies import ExponentialBackoffPolicy, RetryConfig, is_retryable

__all__ = [
    "AdmissionGate",
    "GateConfig",
    "RateLimiter",
    "RateLimitConfig",
    "RateLimitEntry",
    "ExponentialBackoffPolicy",
    "RetryConfig",
    "is_retryable"
]
