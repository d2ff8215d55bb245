"""
Logging Utility for the scheduling engine.

Provides structured JSON logging for the dispatch processor and tick loop.
"""

import logging
import os
import sys
from datetime import datetime
import json

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def resolve_level(name: str) -> int:
    """Map a level name to its number, falling back to INFO for unknown names."""
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


class StructuredLogger:
    """Structured logger emitting one JSON document per record."""

    def __init__(self, name: str, level: int = None):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            level: Logging level, defaults to LOG_LEVEL from the environment
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level if level is not None else resolve_level(LOG_LEVEL))

        # Prevent adding handlers multiple times
        if not self.logger.handlers:
            self._setup_handlers()

    def _setup_handlers(self):
        """Set up logging handlers."""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        self.logger.addHandler(console_handler)

    def _payload(self, level_name: str, message: str, **kwargs) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": level_name,
            "message": message,
            "service": self.logger.name
        }
        log_data.update(kwargs)
        # Ids, dates and timestamps are stringified rather than rejected
        return json.dumps(log_data, default=str)

    def _log_structured(self, level: int, message: str, **kwargs):
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self._payload(logging.getLevelName(level), message, **kwargs))

    def debug(self, message: str, **kwargs):
        self._log_structured(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log_structured(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log_structured(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log_structured(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with traceback."""
        if self.logger.isEnabledFor(logging.ERROR):
            self.logger.exception(self._payload("ERROR", message, exception=True, **kwargs))


def get_logger(service_name: str) -> StructuredLogger:
    """
    Get a structured logger for the specified component.

    Args:
        service_name: Name of the component

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(service_name)
