from __future__ import annotations

import logging
import logging.handlers
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, Any

import structlog

from ringcheck.infrastructure.config.settings import BaseAppSettings, get_settings


def _resolve_level(level_name: str) -> int:
    """Return logging level from name, INFO when the name is unknown."""
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(settings: BaseAppSettings) -> logging.Handler:
    if settings.log_rotation == "size":
        return logging.handlers.RotatingFileHandler(
            filename=settings.log_file,  # type: ignore[arg-type]
            maxBytes=max(1024, settings.log_max_bytes),
            backupCount=max(1, settings.log_backup_count),
            encoding="utf-8",
        )
    return logging.handlers.TimedRotatingFileHandler(
        filename=settings.log_file,  # type: ignore[arg-type]
        when=settings.log_rotate_when,
        interval=1,
        backupCount=max(1, settings.log_backup_count),
        utc=settings.log_rotate_utc,
        encoding="utf-8",
    )


def configure_logging(stream: IO[str] | None = None) -> None:
    """Initialize structlog on top of stdlib logging.

    - JSON renderer when ``JSON_LOGS`` is set, console renderer otherwise
    - rotating file handler only for JSON logs with ``LOG_FILE``; stdout (or
      ``stream``) in every other case
    - scenario context bound with :func:`scenario_context` is merged into
      every record
    - reconfiguration is forced so repeated runs in one process do not
      duplicate handlers
    """
    settings = get_settings()
    if not settings.logging_enabled:
        logging.basicConfig(handlers=[], level=logging.CRITICAL, force=True)
        structlog.configure(cache_logger_on_first_use=True)
        return

    timestamper = structlog.processors.TimeStamper(fmt="iso")
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
    ]
    if settings.json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    if settings.json_logs and settings.log_file:
        handler = _file_handler(settings)
    else:
        handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))

    logging.basicConfig(handlers=[handler], level=_resolve_level(settings.log_level), force=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,  # type: ignore[arg-type]
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "ringcheck") -> structlog.BoundLogger:
    """Return a structured logger; configure on first use if needed."""
    if not logging.getLogger().handlers:
        settings = get_settings()
        if settings.logging_enabled:
            configure_logging()
        else:
            logging.basicConfig(handlers=[], level=logging.CRITICAL, force=True)
    return structlog.get_logger(name)


@contextmanager
def scenario_context(**values: Any) -> Iterator[None]:
    """Bind ``values`` (scenario description, checkpoint block...) to every log record in the block."""
    structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*values)
