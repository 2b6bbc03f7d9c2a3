"""
Base MQTT Publisher
===================

Bounded Context: MQTT Infrastructure

Publishing on top of MQTTConnection: one topic, JSON payloads, success and
failure counters. Subclasses decide the payload shape (format_message).

Publishing never raises. QoS 0 by default: a lost heartbeat is replaced by
the next one.

Architecture:
    MQTTConnection
        ↓
    BasePublisher (abstract)
        ↓
    SafetyStatusPublisher
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from ..connection import MQTTConnection
from ..logging import LogEvent, StructuredLogger


class BasePublisher(MQTTConnection, ABC):
    """
    Abstract JSON publisher bound to a single topic.

    Attributes:
        topic: MQTT topic to publish to
        qos: Quality of Service for every publish
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        topic: str,
        client_id: str,
        logger: StructuredLogger,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos,
        )
        self.topic = topic
        self._message_count = 0
        self._failure_count = 0

    @abstractmethod
    def format_message(self, *args, **kwargs) -> Dict[str, Any]:
        """Build the JSON-compatible payload."""
        raise NotImplementedError("Subclasses must implement format_message()")

    def _count(self, success: bool) -> int:
        with self._stats_lock:
            if success:
                self._message_count += 1
                return self._message_count
            self._failure_count += 1
            return self._failure_count

    def publish(self, message_data: Dict[str, Any], retain: bool = False) -> bool:
        """
        Serialize and hand one message to the paho client.

        Returns:
            True if paho accepted the message, False otherwise (logged)
        """
        if not self.is_connected():
            self._count(False)
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message="Cannot publish: not connected to broker",
                metadata={'topic': self.topic}
            )
            return False

        payload = json.dumps(message_data)
        try:
            result = self.client.publish(
                topic=self.topic,
                payload=payload,
                qos=self.qos,
                retain=retain
            )
        except (OSError, ValueError) as e:
            self._count(False)
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_ERROR,
                message="Error publishing message",
                exc_info=e,
                metadata={'topic': self.topic}
            )
            return False

        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            self._count(False)
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message=f"Publish rejected (rc={result.rc})",
                metadata={'topic': self.topic}
            )
            return False

        sent = self._count(True)
        self.logger.info(
            event=LogEvent.MQTT_PUBLISH_SUCCESS,
            message=f"MQTT message published to topic: {self.topic}",
            metadata={'payload': payload, 'message_count': sent, 'qos': self.qos}
        )
        return True

    def get_stats(self) -> Dict[str, Any]:
        """Message/failure counts and connection status."""
        stats = super().get_stats()
        with self._stats_lock:
            stats.update(
                message_count=self._message_count,
                failure_count=self._failure_count,
                topic=self.topic,
            )
        return stats
