"""
Safety Status Message Schema
============================

Bounded Context: Telemetry Data Structures

This module defines the wire format of the safety heartbeat and the shape of
observed control messages.

Wire format (topic ``machine/zone``)::

    {"Safe": "true"}     # nobody in the zone
    {"Safe": "false"}    # person in the zone, or status reset

The boolean is carried as a lowercase string; downstream dashboards
already parse that form.

Message Flow:
    SharedStatus → SafetyStatusMessage → SafetyStatusPublisher → MQTT
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

SAFE_FIELD = "Safe"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SafetyStatusMessage:
    """
    Immutable safety heartbeat payload.

    Attributes:
        safe: True when nobody is inside the zone

    Example:
        >>> SafetyStatusMessage(safe=True).to_dict()
        {'Safe': 'true'}
    """
    safe: bool

    @classmethod
    def from_status(cls, status: Any) -> 'SafetyStatusMessage':
        """Build from any object exposing a boolean ``safe`` attribute."""
        return cls(safe=bool(status.safe))

    def to_dict(self) -> Dict[str, str]:
        """Serialize to JSON-compatible dict."""
        return {SAFE_FIELD: "true" if self.safe else "false"}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SafetyStatusMessage':
        """Deserialize from dict.

        Accepts string ("true"/"false"/"1"/"0") and JSON boolean values.

        Raises:
            ValueError: If the field is missing or not a boolean value
        """
        try:
            raw = data[SAFE_FIELD]
        except KeyError as e:
            raise ValueError(f"Missing required field: {e}")

        if isinstance(raw, bool):
            return cls(safe=raw)

        value = str(raw).strip().lower()
        if value in ("true", "1"):
            return cls(safe=True)
        if value in ("false", "0"):
            return cls(safe=False)
        raise ValueError(f"Invalid {SAFE_FIELD} value: {raw!r}")


@dataclass(frozen=True)
class ControlMessage:
    """
    Inbound control channel message.

    Control messages are observed (logged) only; the notifier never changes
    state because of them.

    Attributes:
        topic: Topic the message arrived on
        payload: Decoded payload text (undecodable bytes replaced)
        received_at: Reception time (ISO 8601, UTC)
    """
    topic: str
    payload: str
    received_at: str = field(default_factory=_utc_now)

    @classmethod
    def from_mqtt(cls, topic: str, payload: bytes) -> 'ControlMessage':
        return cls(topic=topic, payload=payload.decode('utf-8', errors='replace'))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'topic': self.topic,
            'payload': self.payload,
            'received_at': self.received_at,
        }
