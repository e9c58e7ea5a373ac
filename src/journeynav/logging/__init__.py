"""Logging infrastructure for JourneyNav."""

from journeynav.logging.config import configure_logging, get_logger
from journeynav.logging.context import LogContext, get_context
from journeynav.logging.formatters import ColoredFormatter, JSONFormatter

__all__ = [
    "configure_logging",
    "get_logger",
    "JSONFormatter",
    "ColoredFormatter",
    "LogContext",
    "get_context",
]
