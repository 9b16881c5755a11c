"""Structured logging.

Library modules log through ``get_logger(__name__)`` and leave structlog's
configuration to the application. ``configure_logging`` is an opt-in setup for
applications and scripts that have none of their own.
"""

import logging
from typing import Any

import structlog


def get_logger(name: str) -> Any:
    """Return a lazy structlog logger bound to ``name``."""
    return structlog.get_logger(name)


def configure_logging(level: int = logging.INFO) -> None:
    """Render events as timestamped JSON lines, dropping those below ``level``."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
