"""structlog configuration for kube-e2e.

Modules log through ``structlog.get_logger(__name__)`` with dotted event
names (``runner.feature_started``) and key-value context. Call
``configure_logging`` once per process, e.g. from a pytest session fixture.
"""

from __future__ import annotations

import logging

import structlog

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
) -> None:
    """Configure structlog processors and the minimum level.

    Args:
        log_level: The minimum log level to emit (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, output logs as JSON. If False, use console format.

    Raises:
        ValueError: If log_level is not a known level name.

    Examples:
        >>> configure_logging(log_level="DEBUG")
        >>> log = structlog.get_logger()
        >>> log.info("configured")
    """
    level = _LEVELS.get(log_level.upper())
    if level is None:
        msg = f"Unknown log level '{log_level}', expected one of {sorted(_LEVELS)}"
        raise ValueError(msg)

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        processors.extend(
            [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        )
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


__all__ = ["configure_logging"]
