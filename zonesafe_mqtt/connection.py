"""
MQTT Connection
===============

Bounded Context: MQTT Infrastructure

One paho-mqtt client per role (status publisher, control subscriber), each
with its own network thread. This module owns what both roles share:
client construction, the connect handshake, reconnect bookkeeping and a
best-effort disconnect.

Failure model:
- connect() never raises; a broker that is down or refuses the session is
  logged and reported as False, so the notifier keeps detecting without
  telemetry
- paho reconnects on its own once loop_start() has run; _on_session()
  fires on every successful (re)connect

Thread Safety:
- paho callbacks run in the client's network thread
- Connection state is a threading.Event; a second Event marks that the
  broker answered the CONNACK, accepted or not
"""

import threading
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .logging import LogEvent, StructuredLogger


class MQTTConnection:
    """
    paho-mqtt client with a bounded connect and an idempotent disconnect.

    Subclasses hook into _on_session() to subscribe or announce themselves.
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        client_id: str,
        logger: StructuredLogger,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.logger = logger
        self.qos = qos

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
        )
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connected = threading.Event()
        self._connack = threading.Event()
        self._loop_started = False
        self._stats_lock = threading.Lock()

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Broker refused connection (rc={reason_code})",
                metadata={'broker': self.broker, 'client_id': self.client_id}
            )
            self._connack.set()
            return

        self._connected.set()
        self._connack.set()
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker",
            metadata={'broker': self.broker, 'client_id': self.client_id}
        )
        self._on_session(client)

    def _on_session(self, client: mqtt.Client) -> None:
        """Called after every successful (re)connect, in the network thread."""

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'broker': self.broker, 'reason_code': str(reason_code)}
        )

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Open the session and start the network loop.

        Args:
            timeout: Seconds to wait for the broker's CONNACK

        Returns:
            True once connected, False on refusal, timeout or socket error
        """
        self._connack.clear()
        try:
            self.client.connect(self.broker_host, self.broker_port)
        except (OSError, ValueError) as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="MQTT broker unreachable",
                exc_info=e,
                metadata={'broker': self.broker}
            )
            return False

        self.client.loop_start()
        self._loop_started = True

        if self._connack.wait(timeout=timeout):
            # Refusals were already logged by _on_connect
            return self.is_connected()

        self.logger.error(
            event=LogEvent.MQTT_CONNECTION_ERROR,
            message=f"No CONNACK within {timeout}s",
            metadata={'broker': self.broker}
        )
        return False

    def disconnect(self) -> None:
        """Close the session. Does nothing if connect() never started the loop."""
        if not self._loop_started:
            return

        self._loop_started = False
        self.client.disconnect()
        self.client.loop_stop()
        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="MQTT session closed",
            metadata=self.get_stats()
        )

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def get_stats(self) -> Dict[str, Any]:
        return {'broker': self.broker, 'connected': self.is_connected()}

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()
