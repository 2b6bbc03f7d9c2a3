"""
MQTT Publishers
===============

Public API
----------
    BasePublisher: Connection lifecycle + JSON publication (abstract)
    SafetyStatusPublisher: Safety heartbeat on machine/zone
"""

from .base import BasePublisher
from .status import SafetyStatusPublisher, DEFAULT_STATUS_TOPIC

__all__ = [
    'BasePublisher',
    'SafetyStatusPublisher',
    'DEFAULT_STATUS_TOPIC',
]
