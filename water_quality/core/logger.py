import logging
import os

import structlog
from dotenv import load_dotenv

load_dotenv()

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def level_from_env(default: int = logging.INFO) -> int:
    """Resolve the log level from the LOG_LEVEL environment variable."""
    return LOG_LEVELS.get(os.getenv("LOG_LEVEL", "").upper(), default)


def setup_logging(level: int | None = None) -> None:
    """
    Configure structured logging for the engine and its CLIs.

    Args:
        level: The logging level to use. Defaults to LOG_LEVEL or INFO.
    """
    if level is None:
        level = level_from_env()

    # Basic configuration, replacing any earlier setup
    logging.basicConfig(level=level, force=True)

    # Configure processors for structlog
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
            pad_event_to=50,
        ),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


setup_logging()
