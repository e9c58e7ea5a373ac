"""Logging setup driven by application settings."""

import logging
import sys
from typing import Optional

from journeynav.core.config import LogFormat, LoggingConfig, Settings
from journeynav.logging.formatters import ColoredFormatter, JSONFormatter

_HANDLER_MARKER = "_journeynav_handler"


def _build_formatter(config: LoggingConfig) -> logging.Formatter:
    if config.format == LogFormat.JSON:
        return JSONFormatter()
    return ColoredFormatter()


def configure_logging(
    settings: Optional[Settings] = None, config: Optional[LoggingConfig] = None
) -> logging.Logger:
    """Configure the root logger.

    Safe to call more than once: handlers installed by an earlier call are
    replaced rather than duplicated.

    Args:
        settings: Application settings whose logging section is applied
        config: Explicit logging section; takes precedence over ``settings``

    Returns:
        The configured root logger
    """
    if config is None:
        config = settings.logging if settings is not None else LoggingConfig()
    formatter = _build_formatter(config)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level))

    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root_logger.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARKER, True)
        root_logger.addHandler(handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger in the journeynav namespace."""
    if not name.startswith("journeynav"):
        name = f"journeynav.{name}"
    return logging.getLogger(name)
