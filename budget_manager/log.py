"""
Structured Logging

Every ledger mutation, storage write and auth action is logged as a
structured event (event name + key/value context) so a session can be
reconstructed from the log alone when something looks wrong.

The processor chain renders JSON by default; set LOG_JSON=false for
human-readable console output during development.
"""

import logging
import sys
from typing import Optional

import structlog

_CONFIGURED = False


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure structlog on top of the standard library logger.

    Safe to call more than once; only the first call takes effect unless
    ``level`` or ``json_output`` is passed explicitly.
    """
    global _CONFIGURED

    if _CONFIGURED and level is None and json_output is None:
        return

    if level is None or json_output is None:
        from budget_manager.config import get_settings

        app = get_settings().app
        level = level or app.log_level
        json_output = app.log_json if json_output is None else json_output

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, configuring logging on first use."""
    configure_logging()
    return structlog.get_logger(name)
