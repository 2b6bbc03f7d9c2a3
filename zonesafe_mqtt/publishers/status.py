"""
Safety Status Publisher
=======================

Bounded Context: Safety Heartbeat Production

Design:
- Inherits from BasePublisher (connection management)
- Formats SafetyStatus snapshots as {"Safe": "true"|"false"}
- Publishes to a fixed topic (default: machine/zone)

Message Flow:
    SharedStatus → SafetyStatusPublisher → MQTT Broker

Example:
    >>> from zonesafe_mqtt import SafetyStatusPublisher, create_logger
    >>> publisher = SafetyStatusPublisher(
    ...     broker_host="localhost",
    ...     logger=create_logger("telemetry")
    ... )
    >>> publisher.connect()
    >>> publisher.publish_status(shared_status.get())
"""

from typing import Any, Dict, Optional
from .base import BasePublisher
from ..schemas import SafetyStatusMessage
from ..logging import StructuredLogger, LogEvent

DEFAULT_STATUS_TOPIC = "machine/zone"


class SafetyStatusPublisher(BasePublisher):
    """
    Publisher for the periodic safety heartbeat.

    Accepts any status object exposing a boolean ``safe`` attribute
    (zonesafe_zone.SafetyStatus in practice).
    """

    def __init__(
        self,
        broker_host: str,
        logger: StructuredLogger,
        topic: str = DEFAULT_STATUS_TOPIC,
        broker_port: int = 1883,
        client_id: str = "zonesafe_status_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0
    ):
        """
        Initialize safety status publisher.

        Args:
            broker_host: MQTT broker hostname
            logger: Structured logger instance
            topic: Topic for status messages (default: machine/zone)
            broker_port: MQTT broker port (default: 1883)
            client_id: MQTT client ID
            username: MQTT auth username (optional)
            password: MQTT auth password (optional)
            qos: Quality of Service (default: 0)
        """
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )

    def format_message(self, status: Any) -> Dict[str, Any]:
        """
        Format a status snapshot to a JSON-compatible dict.

        Raises:
            ValueError: If status has no usable ``safe`` attribute
        """
        try:
            formatted = SafetyStatusMessage.from_status(status).to_dict()
        except AttributeError as e:
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Failed to serialize safety status",
                exc_info=e
            )
            raise ValueError(f"Failed to format safety status: {e}")

        self.logger.debug(
            event=LogEvent.STATUS_SERIALIZED,
            message="Serialized safety status",
            metadata=formatted
        )
        return formatted

    def publish_status(self, status: Any) -> bool:
        """
        Publish one safety heartbeat.

        This is the main public API of the publisher. Failures are logged and
        reported through the return value.

        Returns:
            True if published successfully, False otherwise
        """
        try:
            message_data = self.format_message(status)
        except ValueError:
            return False

        success = self.publish(message_data)
        if success:
            self.logger.debug(
                event=LogEvent.STATUS_PUBLISHED,
                message="Published safety status",
                metadata={'topic': self.topic, **message_data}
            )
        return success
