"""
MQTT Control Subscriber
=======================

Bounded Context: Control Channel Observation

Subscribes to the notifier's control topic and logs every inbound message.
Remote control is observed, never acted upon: nothing here touches zone,
status or lifecycle state.

Example:
    >>> from zonesafe_mqtt import ControlSubscriber, create_logger
    >>> subscriber = ControlSubscriber(
    ...     broker_host="localhost",
    ...     control_topic="machine/control",
    ...     logger=create_logger("control")
    ... )
    >>> with subscriber:
    ...     run_notifier()
"""

from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .connection import MQTTConnection
from .logging import LogEvent, StructuredLogger
from .schemas import ControlMessage

DEFAULT_CONTROL_TOPIC = "machine/control"


class ControlSubscriber(MQTTConnection):
    """
    Observe-only subscriber for the control channel.

    The subscription is renewed on every (re)connect, so it survives broker
    restarts. Callbacks run in paho's network thread.
    """

    def __init__(
        self,
        broker_host: str,
        logger: StructuredLogger,
        control_topic: str = DEFAULT_CONTROL_TOPIC,
        broker_port: int = 1883,
        client_id: str = "zonesafe_control_subscriber",
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
        self.control_topic = control_topic
        self.client.on_message = self._on_message

        self._message_count = 0
        self._last_message: Optional[ControlMessage] = None

    def _on_session(self, client: mqtt.Client) -> None:
        client.subscribe(self.control_topic, qos=self.qos)
        self.logger.info(
            event=LogEvent.MQTT_SUBSCRIBED,
            message=f"Subscribed to control topic: {self.control_topic}",
            metadata={'broker': self.broker, 'topic': self.control_topic}
        )

    def _on_message(self, client, userdata, msg: mqtt.MQTTMessage) -> None:
        self._handle_control_message(msg.topic, msg.payload)

    def _handle_control_message(self, topic: str, payload: bytes) -> ControlMessage:
        """
        Log an inbound control message.

        Returns:
            The observed ControlMessage
        """
        message = ControlMessage.from_mqtt(topic, payload)

        with self._stats_lock:
            self._message_count += 1
            self._last_message = message

        self.logger.info(
            event=LogEvent.CONTROL_MESSAGE_RECEIVED,
            message=f"MQTT message received: {topic}",
            metadata=message.to_dict()
        )
        return message

    def get_stats(self) -> Dict[str, Any]:
        """Reception statistics."""
        stats = super().get_stats()
        with self._stats_lock:
            stats.update(
                messages_received=self._message_count,
                last_topic=self._last_message.topic if self._last_message else None,
                topic=self.control_topic,
            )
        return stats
