"""
Test MQTT Status Telemetry (Without Real Broker)
=================================================

Covers the heartbeat wire format, the status publisher and the observe-only
control subscriber. Clients are constructed but never connected; the paho
client is swapped for a fake where a publish has to go through.

Usage:
    pytest test_mqtt_status.py
"""

import json
import logging
import time

import paho.mqtt.client as mqtt
import pytest

from zonesafe_mqtt import (
    ControlMessage,
    ControlSubscriber,
    LogEvent,
    SafetyStatusMessage,
    SafetyStatusPublisher,
    JSONFormatter,
    StructuredLogger,
)
from zonesafe_mqtt.publishers.status import DEFAULT_STATUS_TOPIC
from zonesafe_zone import SafetyStatus


class RecordingLogger:
    """Stands in for StructuredLogger; keeps (level, event, message, metadata)."""

    def __init__(self):
        self.records = []

    def _record(self, level, event, message, metadata=None, exc_info=None):
        self.records.append((level, event, message, metadata))

    def debug(self, event, message, metadata=None):
        self._record('DEBUG', event, message, metadata)

    def info(self, event, message, metadata=None):
        self._record('INFO', event, message, metadata)

    def warning(self, event, message, metadata=None):
        self._record('WARNING', event, message, metadata)

    def error(self, event, message, metadata=None, exc_info=None):
        self._record('ERROR', event, message, metadata, exc_info)

    def events(self):
        return [event for _, event, _, _ in self.records]


class FakeResult:
    def __init__(self, rc):
        self.rc = rc


class FakeClient:
    """Minimal paho client replacement recording publish calls."""

    def __init__(self, rc=mqtt.MQTT_ERR_SUCCESS):
        self.rc = rc
        self.published = []

    def publish(self, topic, payload, qos=0, retain=False):
        self.published.append((topic, payload, qos, retain))
        return FakeResult(self.rc)


def make_publisher(logger=None, client=None):
    publisher = SafetyStatusPublisher(
        broker_host="localhost",
        logger=logger or RecordingLogger(),
    )
    if client is not None:
        publisher.client = client
        publisher._connected.set()
    return publisher


# ─────────────────────────────────────────────────────────────────────────────
# Wire format
# ─────────────────────────────────────────────────────────────────────────────

def test_payload_is_string_valued_boolean():
    assert SafetyStatusMessage.from_status(SafetyStatus.clear()).to_dict() == {"Safe": "true"}
    assert SafetyStatusMessage.from_status(SafetyStatus.alerting()).to_dict() == {"Safe": "false"}
    assert SafetyStatusMessage.from_status(SafetyStatus.unknown()).to_dict() == {"Safe": "false"}


def test_payload_parsing_accepts_known_forms():
    assert SafetyStatusMessage.from_dict({"Safe": "true"}).safe
    assert SafetyStatusMessage.from_dict({"Safe": "1"}).safe
    assert SafetyStatusMessage.from_dict({"Safe": True}).safe
    assert not SafetyStatusMessage.from_dict({"Safe": "false"}).safe
    assert not SafetyStatusMessage.from_dict({"Safe": "0"}).safe

    with pytest.raises(ValueError):
        SafetyStatusMessage.from_dict({"Safe": "maybe"})
    with pytest.raises(ValueError):
        SafetyStatusMessage.from_dict({})


# ─────────────────────────────────────────────────────────────────────────────
# SafetyStatusPublisher
# ─────────────────────────────────────────────────────────────────────────────

def test_publisher_defaults_to_machine_zone_topic():
    publisher = make_publisher()

    assert publisher.topic == DEFAULT_STATUS_TOPIC == "machine/zone"
    assert not publisher.is_connected()


def test_publish_without_broker_reports_failure():
    logger = RecordingLogger()
    publisher = make_publisher(logger=logger)

    assert publisher.publish_status(SafetyStatus.clear()) is False

    stats = publisher.get_stats()
    assert stats['failure_count'] == 1
    assert stats['message_count'] == 0
    assert LogEvent.MQTT_PUBLISH_FAILED in logger.events()


def test_publish_sends_json_heartbeat():
    logger = RecordingLogger()
    client = FakeClient()
    publisher = make_publisher(logger=logger, client=client)

    assert publisher.publish_status(SafetyStatus.alerting())

    topic, payload, qos, retain = client.published[0]
    assert topic == "machine/zone"
    assert json.loads(payload) == {"Safe": "false"}
    assert (qos, retain) == (0, False)
    assert publisher.get_stats()['message_count'] == 1

    success = [r for r in logger.records if r[1] == LogEvent.MQTT_PUBLISH_SUCCESS]
    assert success[0][2] == "MQTT message published to topic: machine/zone"


def test_publish_rejected_by_client_is_counted():
    publisher = make_publisher(client=FakeClient(rc=mqtt.MQTT_ERR_NO_CONN))

    assert publisher.publish_status(SafetyStatus.clear()) is False
    assert publisher.get_stats()['failure_count'] == 1


def test_publish_status_rejects_unusable_status():
    logger = RecordingLogger()
    client = FakeClient()
    publisher = make_publisher(logger=logger, client=client)

    assert publisher.publish_status(object()) is False
    assert client.published == []
    assert LogEvent.SERIALIZATION_ERROR in logger.events()


def test_disconnect_before_connect_is_noop():
    publisher = make_publisher()
    publisher.disconnect()

    assert not publisher.is_connected()


# ─────────────────────────────────────────────────────────────────────────────
# ControlSubscriber
# ─────────────────────────────────────────────────────────────────────────────

def test_control_message_is_logged_only():
    logger = RecordingLogger()
    subscriber = ControlSubscriber(broker_host="localhost", logger=logger)

    message = subscriber._handle_control_message("machine/control", b'{"cmd": "pause"}')

    assert isinstance(message, ControlMessage)
    assert message.payload == '{"cmd": "pause"}'

    level, event, text, metadata = logger.records[-1]
    assert (level, event) == ('INFO', LogEvent.CONTROL_MESSAGE_RECEIVED)
    assert text == "MQTT message received: machine/control"
    assert metadata['topic'] == "machine/control"

    stats = subscriber.get_stats()
    assert stats['messages_received'] == 1
    assert stats['last_topic'] == "machine/control"
    assert stats['topic'] == "machine/control"


def test_control_message_tolerates_binary_payload():
    subscriber = ControlSubscriber(broker_host="localhost", logger=RecordingLogger())

    message = subscriber._handle_control_message("machine/control", b"\xff\xfe")

    assert message.topic == "machine/control"
    assert subscriber.get_stats()['messages_received'] == 1


# ─────────────────────────────────────────────────────────────────────────────
# StructuredLogger
# ─────────────────────────────────────────────────────────────────────────────

class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.setFormatter(JSONFormatter())
        self.lines = []

    def emit(self, record):
        self.lines.append(self.format(record))


def test_structured_logger_emits_one_json_object_per_line():
    handler = ListHandler()
    logging.getLogger("zonesafe_mqtt.test_json").addHandler(handler)
    logger = StructuredLogger(component="telemetry", logger_name="zonesafe_mqtt.test_json")

    logger.info(
        event=LogEvent.STATUS_PUBLISHED,
        message="Published safety status",
        metadata={'Safe': 'true'},
    )
    logger.debug(event=LogEvent.STATUS_SERIALIZED, message="hidden at INFO")

    assert len(handler.lines) == 1
    entry = json.loads(handler.lines[0])
    assert entry['component'] == "telemetry"
    assert entry['event'] == "status.published"
    assert entry['level'] == "INFO"
    assert entry['metadata'] == {'Safe': 'true'}
    assert 'timestamp' in entry


# ─────────────────────────────────────────────────────────────────────────────
# Connect handshake
# ─────────────────────────────────────────────────────────────────────────────

class FakeReasonCode:
    def __init__(self, is_failure):
        self.is_failure = is_failure

    def __str__(self):
        return "Not authorized" if self.is_failure else "Success"


def answer_connack_on_loop_start(connection, is_failure):
    """Skip the socket; the network loop delivers the CONNACK at once."""
    connection.client.connect = lambda host, port: mqtt.MQTT_ERR_SUCCESS
    connection.client.loop_start = lambda: connection._on_connect(
        connection.client, None, None, FakeReasonCode(is_failure), None
    )


def test_connect_returns_at_once_when_broker_refuses():
    logger = RecordingLogger()
    publisher = make_publisher(logger=logger)
    answer_connack_on_loop_start(publisher, is_failure=True)

    start = time.monotonic()
    assert publisher.connect(timeout=5.0) is False
    assert time.monotonic() - start < 1.0

    assert not publisher.is_connected()
    assert LogEvent.MQTT_CONNECTION_ERROR in logger.events()


def test_connect_accepted_subscribes_control_topic():
    logger = RecordingLogger()
    subscriber = ControlSubscriber(broker_host="localhost", logger=logger)
    subscribed = []
    subscriber.client.subscribe = lambda topic, qos=0: subscribed.append(topic) or (
        mqtt.MQTT_ERR_SUCCESS, 1
    )
    answer_connack_on_loop_start(subscriber, is_failure=False)

    assert subscriber.connect(timeout=5.0)
    assert subscriber.is_connected()
    assert subscribed == ["machine/control"]
    assert LogEvent.MQTT_SUBSCRIBED in logger.events()
