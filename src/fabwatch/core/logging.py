"""Structured logging setup for the monitor service.

configure_logging() runs once in the application lifespan, before the
scheduler starts ticking. Every module then logs through
``structlog.get_logger(__name__)`` with an event name and key/value
context (reading_id, parameter, alert_id, ...).

Output format comes from FABWATCH_LOG_FORMAT:
  - "console": colored key/value lines when attached to a terminal
  - "json": one JSON object per line, tracebacks rendered as structures
"""

import logging
import sys

import structlog

# Third-party loggers that are too chatty at INFO during live ticking
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "websockets": logging.WARNING,
}


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    raise ValueError(f"Unknown log format {log_format!r}; expected 'console' or 'json'")


def configure_logging(
    log_format: str = "console",
    log_level: str = "INFO",
    service_version: str | None = None,
) -> None:
    """Route structlog and stdlib logging through one formatter.

    Args:
        log_format: "console" or "json"
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        service_version: Bound to every event as ``version`` when given

    Raises:
        ValueError: If log_format is not recognised
    """
    renderer = _renderer(log_format)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        shared_processors.append(structlog.processors.dict_tracebacks)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and fastapi log through stdlib
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service="fabwatch")
    if service_version:
        structlog.contextvars.bind_contextvars(version=service_version)
