# ==== SERVICE CONTAINER ==== #

"""
Explicit wiring of the request pipeline components.

Every component is constructed once per application and handed to the
orchestrator by reference; nothing is a module-level singleton. The container
also owns the periodic sweep tasks and tears them down on shutdown.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from subject_analyzer.observability.logging import ContextualLogger
from subject_analyzer.resilience.admission_gate import AdmissionGate, GateConfig
from subject_analyzer.resilience.rate_limiter import RateLimitConfig, RateLimiter
from subject_analyzer.services.ai_client import AIClient
from subject_analyzer.services.orchestrator import RequestOrchestrator
from subject_analyzer.services.performance import PerformanceRecorder
from subject_analyzer.services.response_cache import CacheConfig, ResponseCache
from subject_analyzer.services.subject_analysis import SubjectAnalysisService, SuggestionGenerator
from subject_analyzer.settings import Settings


logger = ContextualLogger(__name__)


async def run_periodically(
    name: str,
    interval: float,
    job: Callable[[], Awaitable[int]]
) -> None:
    """Run ``job`` every ``interval`` seconds until cancelled.

    A failing run is logged and the schedule continues.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            removed = await job()
            logger.debug("Periodic job completed", job=name, removed=removed)
        except Exception:
            logger.exception("Periodic job failed", job=name)


@dataclass
class ServiceContainer:
    """Components of one running application."""
    settings: Settings
    rate_limiter: RateLimiter
    cache: ResponseCache
    gate: AdmissionGate
    recorder: PerformanceRecorder
    generator: SuggestionGenerator
    analysis_service: SubjectAnalysisService
    orchestrator: RequestOrchestrator
    _tasks: List[asyncio.Task] = field(default_factory=list, repr=False)

    @classmethod
    def build(
        cls,
        settings: Settings,
        generator: Optional[SuggestionGenerator] = None,
        rate_limiter: Optional[RateLimiter] = None,
        cache: Optional[ResponseCache] = None,
        gate: Optional[AdmissionGate] = None
    ) -> "ServiceContainer":
        """
        Construct and wire every component from settings.

        Args:
            settings (Settings): Application settings
            generator (Optional[SuggestionGenerator]): Upstream collaborator,
                defaults to the HTTP ``AIClient``
            rate_limiter, cache, gate: Pre-built components replacing the
                settings-derived defaults

        Returns:
            ServiceContainer: Wired components
        """
        if rate_limiter is None:
            rate_limiter = RateLimiter(RateLimitConfig.from_settings(settings))
        if cache is None:
            cache = ResponseCache(CacheConfig.from_settings(settings))
        if gate is None:
            gate = AdmissionGate(GateConfig.from_settings(settings))
        if generator is None:
            generator = AIClient(settings)
        recorder = PerformanceRecorder(window_size=settings.METRICS_WINDOW_SIZE)
        analysis_service = SubjectAnalysisService(generator)

        orchestrator = RequestOrchestrator(
            rate_limiter=rate_limiter,
            cache=cache,
            gate=gate,
            recorder=recorder,
            analysis_service=analysis_service
        )

        return cls(
            settings=settings,
            rate_limiter=rate_limiter,
            cache=cache,
            gate=gate,
            recorder=recorder,
            generator=generator,
            analysis_service=analysis_service,
            orchestrator=orchestrator
        )

    def start_background_tasks(self) -> None:
        """Schedule the cache and rate limiter sweeps on the running loop."""
        self._tasks = [
            asyncio.create_task(
                run_periodically(
                    "cache_sweep",
                    self.settings.CACHE_SWEEP_INTERVAL_SECONDS,
                    self.cache.sweep
                ),
                name="cache_sweep"
            ),
            asyncio.create_task(
                run_periodically(
                    "rate_limit_sweep",
                    self.settings.RATE_LIMIT_SWEEP_INTERVAL_SECONDS,
                    self.rate_limiter.sweep
                ),
                name="rate_limit_sweep"
            ),
        ]
        logger.info("Started background sweeps", tasks=[task.get_name() for task in self._tasks])

    async def shutdown(self) -> None:
        """Cancel the sweeps and release the upstream connection pool."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        aclose = getattr(self.generator, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.info("Service container shut down")
