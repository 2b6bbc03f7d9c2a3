"""
Structured JSON Logger
======================

Bounded Context: Observability Infrastructure

JSON lines for the MQTT side of the notifier, so broker and heartbeat
activity can be filtered by event in a log aggregator. The rest of the
notifier logs plain text through the standard logging module.

Design:
- StructuredLogger attaches component, event and metadata to the
  LogRecord (``extra``); JSONFormatter renders the record as one line
- Any handler can use JSONFormatter, so tests and file handlers see the
  same document
- Thread-safe (standard logging module)

Output:
    {"timestamp": "2025-10-24T15:30:45.123456+00:00", "level": "INFO",
     "component": "telemetry", "event": "status.published",
     "message": "Published safety status", "metadata": {"Safe": "true"}}
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import LogEvent


class JSONFormatter(logging.Formatter):
    """Render a StructuredLogger record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'component': getattr(record, 'component', record.name),
            'event': getattr(record, 'event', None),
            'message': record.getMessage(),
        }

        metadata = getattr(record, 'metadata', None)
        if metadata:
            entry['metadata'] = metadata

        if record.exc_info and record.exc_info[1] is not None:
            error = record.exc_info[1]
            entry['exception'] = {
                'type': type(error).__name__,
                'message': str(error),
                'traceback': self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


class StructuredLogger:
    """
    Event-typed logger for one component.

    Args:
        component: Component name ("telemetry", "control")
        level: Logging level (default: INFO)
        logger_name: Underlying logger name (default: zonesafe_mqtt.<component>)

    Example:
        >>> logger = StructuredLogger(component="telemetry")
        >>> logger.info(
        ...     event=LogEvent.STATUS_PUBLISHED,
        ...     message="Published safety status",
        ...     metadata={'Safe': 'true'}
        ... )
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None
    ):
        self.component = component
        self.logger = logging.getLogger(logger_name or f"zonesafe_mqtt.{component}")
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            # Root handlers would print the record a second time as text
            self.logger.propagate = False

    def _log(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        self.logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={
                'component': self.component,
                'event': event.value,
                'metadata': metadata,
            },
        )

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, event, message, metadata)

    def warning(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """Log at ERROR; ``exc_info`` adds the exception and its traceback."""
        self._log(logging.ERROR, event, message, metadata, exc_info)


def create_logger(component: str, level: int = logging.INFO) -> StructuredLogger:
    """
    Create a StructuredLogger for a component.

    Example:
        >>> logger = create_logger("control", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
