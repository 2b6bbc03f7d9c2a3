"""
Structured log event names.

Events are dotted names whose first segment is the category:

    mqtt.*     broker session and publish results
    status.*   safety heartbeat production
    control.*  inbound control channel
    error.*    failures (always logged at ERROR)

Example query (Loki):
    {app="zonesafe"} | json | event="control.message.received"
"""

from enum import Enum


class LogEvent(str, Enum):
    """Typed event names for StructuredLogger."""

    MQTT_CONNECTED = "mqtt.connected"
    MQTT_DISCONNECTED = "mqtt.disconnected"
    MQTT_SUBSCRIBED = "mqtt.subscribed"
    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"

    STATUS_SERIALIZED = "status.serialized"
    STATUS_PUBLISHED = "status.published"

    # Observed only, never acted upon
    CONTROL_MESSAGE_RECEIVED = "control.message.received"

    SERIALIZATION_ERROR = "error.serialization"
    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
