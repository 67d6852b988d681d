"""
Almanac Logging Configuration

Centralized logging for the astronomy engine and its services:
- Plain or structured JSON output
- Rotating file handler with size limits
- Per-service log levels (ephemeris, lunar, sky, sunrise_api)
- Correlation IDs so every line of one report can be traced together
- Helpers for exceptions and timing

Usage:
    from almanac.logging_config import setup_logging, get_logger, log_timing

    setup_logging(log_level="DEBUG", log_file="almanac.log")

    logger = get_logger(__name__)
    with log_timing(logger, "moon_phase"):
        phase = moon_phase(moment)

    with correlation_context(prefix="report") as cid:
        logger.info("Computing report")  # carries cid
"""

import json
import logging
import sys
import time
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Generator, Optional

ROOT_LOGGER_NAME = "almanac"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FORMAT_WITH_CORRELATION = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_BACKUP_COUNT = 3

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Attributes every LogRecord has; anything else came in through `extra=`
_RESERVED_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "correlation_id"}


# =============================================================================
# Correlation ID Support
# =============================================================================

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


class CorrelationIdFilter(logging.Filter):
    """Inject the current correlation ID (or "-") into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


def get_correlation_id() -> Optional[str]:
    """Return the correlation ID of the current context, if any."""
    return _correlation_id.get()


def generate_correlation_id(prefix: str = "astro") -> str:
    """Generate a short unique ID such as ``astro-1a2b3c4d``."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def correlation_context(
    correlation_id: Optional[str] = None,
    prefix: str = "astro",
) -> Generator[str, None, None]:
    """Set a correlation ID for the duration of the block.

    Generates one when none is given and restores the previous value on exit,
    so nested contexts behave.

    Args:
        correlation_id: ID to use, or None to generate one.
        prefix: Prefix for generated IDs.

    Yields:
        The correlation ID in effect inside the block.
    """
    cid = correlation_id or generate_correlation_id(prefix)
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


# =============================================================================
# Formatters and Setup
# =============================================================================


class JsonFormatter(logging.Formatter):
    """One JSON object per line; `extra=` fields are carried through."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, DEFAULT_DATE_FORMAT),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id and correlation_id != "-":
            payload["correlation_id"] = correlation_id
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_formatter(json_format: bool, enable_correlation: bool) -> logging.Formatter:
    if json_format:
        return JsonFormatter()
    log_format = (
        DEFAULT_LOG_FORMAT_WITH_CORRELATION if enable_correlation else DEFAULT_LOG_FORMAT
    )
    return logging.Formatter(log_format, DEFAULT_DATE_FORMAT)


def setup_logging(
    log_level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[str | Path] = None,
    json_format: bool = False,
    enable_correlation: bool = True,
) -> None:
    """Configure the ``almanac`` logger tree.

    Call once at application startup. Calling again replaces the handlers.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        log_file: Optional path; enables a rotating file handler.
        json_format: Emit JSON lines instead of the plain text format.
        enable_correlation: Include correlation IDs in the output.
    """
    level = LOG_LEVELS.get(log_level.upper(), logging.INFO)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.filters.clear()

    # Filters on a logger do not apply to records from child loggers,
    # so the correlation filter goes on each handler.
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        file_path = Path(log_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                file_path,
                maxBytes=DEFAULT_MAX_BYTES,
                backupCount=DEFAULT_BACKUP_COUNT,
            )
        )

    formatter = _build_formatter(json_format, enable_correlation)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        if enable_correlation:
            handler.addFilter(CorrelationIdFilter())
        root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``almanac`` namespace.

    Example:
        get_logger("services.lunar.moon_phase").name
        # "almanac.services.lunar.moon_phase"
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """Set the level of the whole almanac logger tree, keeping its handlers."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))


def set_service_level(service_name: str, level: str) -> None:
    """Set the level of one service's loggers (e.g. "ephemeris", "sunrise_api")."""
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.services.{service_name}")
    logger.setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))


# =============================================================================
# Convenience Helpers
# =============================================================================


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    level: int = logging.ERROR,
    include_traceback: bool = True,
) -> None:
    """Log an exception with its type, message and optionally the traceback.

    Example:
        except SunTimesUnavailableError as e:
            log_exception(logger, "Remote sun times failed", e,
                          level=logging.WARNING, include_traceback=False)
    """
    exc_type = type(exc).__name__
    exc_message = str(exc)
    extra = {
        "exception_type": exc_type,
        "exception_message": exc_message,
    }

    if include_traceback:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        extra["traceback"] = tb
        logger.log(level, f"{message}: [{exc_type}] {exc_message}\n{tb}", extra=extra)
    else:
        logger.log(level, f"{message}: [{exc_type}] {exc_message}", extra=extra)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    warn_threshold_sec: Optional[float] = None,
) -> Generator[None, None, None]:
    """Log how long a block took, warning when it exceeds a threshold.

    Example:
        with log_timing(logger, "remote_sun_times", warn_threshold_sec=2.0):
            sun = await provider.get_sun_times(request, ephemeris)
    """
    start_time = time.perf_counter()
    logger.log(level, f"{operation} started")

    try:
        yield
    finally:
        elapsed = time.perf_counter() - start_time
        extra = {
            "operation": operation,
            "elapsed_seconds": round(elapsed, 6),
        }

        if warn_threshold_sec is not None and elapsed > warn_threshold_sec:
            logger.warning(
                f"{operation} completed in {elapsed:.3f}s "
                f"(exceeded {warn_threshold_sec}s threshold)",
                extra=extra,
            )
        else:
            logger.log(level, f"{operation} completed in {elapsed:.3f}s", extra=extra)
