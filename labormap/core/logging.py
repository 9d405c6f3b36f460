"""Structured logging setup for LaborMap.

Modules log through `logging.getLogger(__name__)`; structlog renders the
records either for the console or as JSON lines (`JSON_LOGS=true`).
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

from labormap.config import get_config

# HTTP and LLM client libraries log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "aiosqlite")


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structured logging for the CLI and services.

    Args:
        level: Log level name (defaults to `LOG_LEVEL`)
        json_logs: Render JSON lines (defaults to `JSON_LOGS`)
    """
    config = get_config()
    level = (level or config.log_level).upper()
    if json_logs is None:
        json_logs = config.json_logs

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdlib records go through the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_file = Path("logs/labormap.log")
    if log_file.parent.exists():
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))
