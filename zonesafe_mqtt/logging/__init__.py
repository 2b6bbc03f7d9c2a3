"""
JSON logging for the MQTT clients.

    LogEvent: typed event names
    StructuredLogger / create_logger: per-component event logger
    JSONFormatter: one JSON object per record, usable on any handler
"""

from .events import LogEvent
from .structured import JSONFormatter, StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'JSONFormatter',
    'StructuredLogger',
    'create_logger',
]
