"""Structured logging for the monitor: structlog on top of stdlib logging.

The rendered spread table owns stdout, so every log line goes to stderr
(or the stream passed in) through a single root handler.
"""

import logging
import sys
from typing import TextIO

import structlog

# Third-party loggers that are chatty at DEBUG (handshakes, keepalive pings)
_QUIET_LOGGERS = ("websockets", "asyncio")


def _renderer(log_format: str, stream: TextIO) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    # no ANSI codes when redirected to a file or pipe
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib records through one formatter.

    Args:
        log_level: Root level name, e.g. "DEBUG".
        log_format: "console" (human-readable) or "json".
        stream: Destination, stderr by default.
    """
    stream = stream or sys.stderr
    timestamper = structlog.processors.TimeStamper(fmt="iso")
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # foreign_pre_chain gives websockets/asyncio records the same fields
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_format, stream),
        ],
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
