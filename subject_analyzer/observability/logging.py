# ==== STRUCTURED LOGGING WITH LOGURU ==== #

"""
Structured logging with loguru for the subject analyzer.

Everything, including records emitted by uvicorn and httpx through the
standard ``logging`` module, ends up in a single loguru sink. Records carry
the emitting module's name and, inside a recording span, the OpenTelemetry
trace and span ids.
"""

import inspect
import logging
import sys
from typing import Any, Dict

from loguru import logger
from opentelemetry import trace


# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

# (seconds, level, message prefix), slowest first
SLOW_OPERATION_LEVELS = (
    (5.0, "WARNING", "Slow operation detected"),
    (3.0, "INFO", "Operation completed"),
)

HUMAN_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "{extra[logger_name]} - <level>{message}</level>"
)


# ==== STANDARD LOGGING BRIDGE ==== #


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames inside the logging module so loguru reports the real caller
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


def init_logging(level: str = "INFO", serialize: bool = True) -> None:
    """Install the loguru sink and route standard logging through it.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        serialize: Emit JSON records instead of coloured lines
    """
    logger.remove()
    logger.configure(extra={"logger_name": "root"})
    logger.add(
        sys.stdout,
        level=level.upper(),
        format="{message}" if serialize else HUMAN_FORMAT,
        serialize=serialize,
        colorize=not serialize,
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.bind(logger_name=__name__, log_level=level.upper()).info("Logging initialized")


# ==== CONTEXTUAL LOGGER ==== #


def _trace_context() -> Dict[str, str]:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


class ContextualLogger:
    """Module logger binding structured fields and trace ids to each record.

    Keyword arguments become structured fields of the record, never format
    arguments, so messages containing braces are logged verbatim.
    """

    def __init__(self, name: str):
        self.name = name
        self._logger = logger.bind(logger_name=name)

    def _emit(self, level: str, msg: str, fields: Dict[str, Any], exception: bool = False) -> None:
        # depth=2 attributes the record to the caller of debug/info/...
        self._logger.opt(depth=2, exception=exception or None).bind(
            **_trace_context(), **fields
        ).log(level, msg)

    def debug(self, msg: str, **fields: Any) -> None:
        self._emit("DEBUG", msg, fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._emit("INFO", msg, fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._emit("WARNING", msg, fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._emit("ERROR", msg, fields)

    def exception(self, msg: str, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._emit("ERROR", msg, fields, exception=True)


def get_logger(name: str) -> ContextualLogger:
    """Logger for a module, usually called with ``__name__``."""
    return ContextualLogger(name)


def log_performance(operation: str, duration: float, **fields: Any) -> None:
    """Log how long an operation took, louder the slower it was.

    Args:
        operation: Operation name
        duration: Wall time in seconds
        **fields: Extra structured fields
    """
    perf_logger = logger.bind(
        logger_name="performance",
        operation=operation,
        duration_seconds=round(duration, 3),
        **fields
    )

    for threshold, level, prefix in SLOW_OPERATION_LEVELS:
        if duration > threshold:
            perf_logger.log(level, f"{prefix}: {operation}")
            return
    perf_logger.debug(f"Operation completed: {operation}")
