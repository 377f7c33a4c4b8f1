"""
Logging configuration for osmanage.

Log records go to stderr so stdout stays free for operator output
(status tables, ``cluster_status`` lines). structlog events are rendered
through the stdlib handler so third-party loggers (kubernetes, urllib3)
share one format.
"""
import logging
import sys
from typing import Any, Optional

import structlog

from ..config import Settings, get_settings

_CONFIGURED = False

REDACT_KEYS = {"password", "secret", "token", "authorization", "data"}


def _redact_sensitive(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Mask values of keys that may carry credentials or secret payloads."""
    for key in list(event_dict):
        if key.lower() in REDACT_KEYS:
            event_dict[key] = "***REDACTED***"
    return event_dict


def _build_formatter(settings: Settings, use_color: bool) -> logging.Formatter:
    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_sensitive,
    ]
    if settings.log_json:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=use_color)
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(
    level: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    use_color: bool = True,
) -> None:
    """Configure structlog and the root logger once per process.

    Args:
        level: overrides ``settings.log_level``
        settings: defaults to ``get_settings()``
        use_color: colorize console output when stderr is a terminal
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    settings = settings or get_settings()
    log_level = (level or settings.log_level).upper()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _redact_sensitive,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_build_formatter(settings, use_color and sys.stderr.isatty()))

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(log_level)

    # kubernetes/urllib3 are chatty at DEBUG
    if not settings.is_debug:
        for name in ("kubernetes", "urllib3"):
            logging.getLogger(name).setLevel(logging.WARNING)

    _CONFIGURED = True


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)
