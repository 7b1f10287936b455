"""
Structured logging for the recurrence engine.

Lifecycle events are emitted as one JSON object per line so that series,
task and instance identifiers can be searched on.
"""

import json
import logging
import sys
from datetime import datetime, timezone


class StructuredLogger:
    """Logger wrapper that serializes keyword context into the message."""

    def __init__(self, name: str, level: int = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            self.logger.addHandler(handler)

    def _payload(self, level: int, message: str, **context) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level),
            "message": message,
            "service": self.logger.name,
        }
        payload.update(context)
        return json.dumps(payload, default=str)

    def log(self, level: int, message: str, **context):
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self._payload(level, message, **context))

    def debug(self, message: str, **context):
        self.log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self.log(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self.log(logging.WARNING, message, **context)

    def error(self, message: str, **context):
        self.log(logging.ERROR, message, **context)

    def exception(self, message: str, **context):
        """Log at ERROR level with the active traceback attached."""
        if self.logger.isEnabledFor(logging.ERROR):
            self.logger.exception(self._payload(logging.ERROR, message, exception=True, **context))


def get_logger(service_name: str) -> StructuredLogger:
    return StructuredLogger(service_name)
