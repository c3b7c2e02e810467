# ==== SUBJECT ANALYZER MAIN APPLICATION MODULE ==== #

"""
Main FastAPI application for the subject line analyzer.

Components are wired in ``create_app`` so the application is fully usable
as soon as it is constructed; the lifespan only starts and stops the
periodic sweeps and the observability stack.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from subject_analyzer import __version__
from subject_analyzer.container import ServiceContainer
from subject_analyzer.errors import AnalyzerError
from subject_analyzer.middleware.correlation import CorrelationMiddleware
from subject_analyzer.observability.logging import ContextualLogger, init_logging
from subject_analyzer.observability.metrics import init_metrics, metrics_router
from subject_analyzer.observability.tracing import init_tracing
from subject_analyzer.routes import analysis, health, performance
from subject_analyzer.settings import Settings, get_settings


logger = ContextualLogger(__name__)


# ==== APPLICATION LIFECYCLE MANAGEMENT ==== #


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Start logging, tracing and the sweeps, then tear the container down.

    Args:
        app (FastAPI): FastAPI application instance

    Yields:
        None: While the application serves requests
    """
    container: ServiceContainer = app.state.container
    settings = container.settings

    # --► STARTUP SEQUENCE
    init_logging(settings.effective_log_level, serialize=settings.is_production)
    init_tracing(settings)
    container.start_background_tasks()
    logger.info(
        "Subject analyzer started",
        environment=settings.APP_ENV,
        ai_enabled=settings.ai_enabled
    )

    yield

    # --► SHUTDOWN SEQUENCE
    await container.shutdown()


# ==== APPLICATION FACTORY ==== #


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings (Optional[Settings]): Settings, defaults to the environment
        container (Optional[ServiceContainer]): Pre-wired components, built
            from ``settings`` when omitted

    Returns:
        FastAPI: Fully configured FastAPI application instance
    """
    settings = settings or get_settings()
    container = container or ServiceContainer.build(settings)

    app = FastAPI(
        title="Subject Line Analyzer",
        description="Email subject line scoring with AI suggestions",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc"
    )
    app.state.container = container

    # --► OBSERVABILITY INITIALIZATION
    init_metrics(__version__, settings.APP_ENV, settings.SERVICE_NAME)

    # --► MIDDLEWARE STACK CONFIGURATION
    # CORS must wrap everything else
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )
    app.add_middleware(CorrelationMiddleware)

    # --► ROUTER REGISTRATION
    _register_routers(app)

    # --► EXCEPTION HANDLERS
    _register_exception_handlers(app)

    # --► OPENTELEMETRY INSTRUMENTATION
    FastAPIInstrumentor.instrument_app(app, excluded_urls="metrics,health,readyz")

    return app


def _register_routers(app: FastAPI) -> None:
    """
    Mount probes and metrics at the root and the API under `/api`.

    Args:
        app (FastAPI): FastAPI application instance
    """
    app.include_router(metrics_router, prefix="", tags=["monitoring"])
    app.include_router(health.router, prefix="", tags=["health"])
    app.include_router(analysis.router, prefix="/api", tags=["analysis"])
    app.include_router(performance.router, prefix="/api", tags=["performance"])


# ==== EXCEPTION HANDLERS ==== #


def _register_exception_handlers(app: FastAPI) -> None:
    """
    Register handlers turning pipeline rejections into JSON responses.

    Args:
        app (FastAPI): FastAPI application instance
    """
    @app.exception_handler(AnalyzerError)
    async def analyzer_error_handler(request: Request, exc: AnalyzerError) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", "unknown")

        if not exc.expose_message:
            logger.error(
                "Analysis request failed",
                error=exc.message,
                code=exc.code,
                correlation_id=correlation_id
            )

        headers = {}
        if exc.retry_after is not None:
            headers["Retry-After"] = str(exc.retry_after)

        content = exc.to_response()
        content["correlation_id"] = correlation_id
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", "unknown")

        return JSONResponse(
            status_code=404,
            content={
                "error": "Not found",
                "code": "NOT_FOUND",
                "correlation_id": correlation_id
            }
        )


    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Last-resort handler for errors outside the taxonomy.

        Never leaks exception detail to the client; the correlation ID ties
        the response to the logged traceback.
        """
        correlation_id = getattr(request.state, "correlation_id", "unknown")
        logger.exception(
            "Unhandled error",
            path=request.url.path,
            correlation_id=correlation_id
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "code": "INTERNAL_ERROR",
                "correlation_id": correlation_id
            }
        )


# Create application instance
app = create_app()


def run() -> None:
    """Console entry point serving ``app`` with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "subject_analyzer.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.effective_log_level.lower()
    )
