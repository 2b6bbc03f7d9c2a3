"""
Zonesafe MQTT Communication Package
===================================

Bounded Context: Telemetry Protocol for the Restricted Zone Notifier

Two roles, one paho-mqtt client each:
- SafetyStatusPublisher: periodic {"Safe": "true"|"false"} heartbeat
- ControlSubscriber: observe-only control channel (logs inbound messages)

Layout:
- connection.py: MQTTConnection (client, connect handshake, disconnect)
- publishers/: BasePublisher, SafetyStatusPublisher
- subscriber.py: ControlSubscriber
- schemas/: wire payloads
- logging/: JSON event logging

Example:
    >>> from zonesafe_mqtt import SafetyStatusPublisher, create_logger
    >>> from zonesafe_zone import SafetyStatus
    >>>
    >>> with SafetyStatusPublisher(broker_host="localhost",
    ...                            logger=create_logger("telemetry")) as publisher:
    ...     publisher.publish_status(SafetyStatus.clear())   # {"Safe": "true"}
"""

__version__ = "1.0.0"

from .connection import MQTTConnection
from .logging import JSONFormatter, LogEvent, StructuredLogger, create_logger
from .publishers import BasePublisher, SafetyStatusPublisher
from .schemas import ControlMessage, SafetyStatusMessage
from .subscriber import ControlSubscriber

__all__ = [
    '__version__',
    'MQTTConnection',
    'BasePublisher',
    'SafetyStatusPublisher',
    'ControlSubscriber',
    'SafetyStatusMessage',
    'ControlMessage',
    'LogEvent',
    'JSONFormatter',
    'StructuredLogger',
    'create_logger',
]
