"""
Logging configuration for the Slide Deck Generator using Logfire.
"""
import logging
import os
from typing import Optional

import logfire

from src.utils.logfire_config import configure_logfire, is_configured


class LogfireLogger:
    """Wrapper to make Logfire work like standard Python logging."""

    def __init__(self, name: str):
        self.name = name

    def _format(self, message, args):
        if args:
            message = message % args
        return f"[{self.name}] {message}"

    def info(self, message, *args, **kwargs):
        logfire.info(self._format(message, args), **kwargs)

    def warn(self, message, *args, **kwargs):
        logfire.warn(self._format(message, args), **kwargs)

    def warning(self, message, *args, **kwargs):
        self.warn(message, *args, **kwargs)

    def error(self, message, *args, **kwargs):
        kwargs.pop('exc_info', None)
        logfire.error(self._format(message, args), **kwargs)

    def debug(self, message, *args, **kwargs):
        logfire.debug(self._format(message, args), **kwargs)

    def critical(self, message, *args, **kwargs):
        logfire.error(self._format(f"CRITICAL: {message}", args), **kwargs)

    def exception(self, message, *args, **kwargs):
        logfire.error(self._format(f"EXCEPTION: {message}", args), **kwargs)

    def setLevel(self, level):
        # No-op for compatibility
        pass


class StandardLogger:
    """Standard Python logger when Logfire is not configured."""

    def __init__(self, name: str, level: Optional[str] = None):
        self.logger = logging.getLogger(name)

        # Read LOG_LEVEL from environment, default to INFO
        log_level_str = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
        log_level = getattr(logging, log_level_str, logging.INFO)
        self.logger.setLevel(log_level)

        # Add console handler if not already present
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(log_level)
            formatter = logging.Formatter(
                '[%(levelname)s %(name)s] %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def info(self, message, *args, **kwargs):
        self.logger.info(message, *args, **{k: v for k, v in kwargs.items() if k != 'exc_info'})

    def warn(self, message, *args, **kwargs):
        self.logger.warning(message, *args, **{k: v for k, v in kwargs.items() if k != 'exc_info'})

    def warning(self, message, *args, **kwargs):
        self.warn(message, *args, **kwargs)

    def error(self, message, *args, **kwargs):
        exc_info = kwargs.pop('exc_info', False)
        self.logger.error(message, *args, exc_info=exc_info, **kwargs)

    def debug(self, message, *args, **kwargs):
        self.logger.debug(message, *args, **{k: v for k, v in kwargs.items() if k != 'exc_info'})

    def critical(self, message, *args, **kwargs):
        self.logger.critical(message, *args, **{k: v for k, v in kwargs.items() if k != 'exc_info'})

    def exception(self, message, *args, **kwargs):
        self.logger.exception(message, *args, **{k: v for k, v in kwargs.items() if k != 'exc_info'})

    def setLevel(self, level):
        self.logger.setLevel(level)


def setup_logger(name: str, level: Optional[str] = None):
    """
    Set up a logger using Logfire or standard Python logging if not configured.

    Args:
        name: Logger name (usually __name__)
        level: Logging level (used for standard logger)

    Returns:
        LogfireLogger or StandardLogger instance
    """
    if is_configured() or configure_logfire():
        return LogfireLogger(name)
    return StandardLogger(name, level)


# Create a default logger for the package
logger = setup_logger(__name__)
