"""
Message Schemas
===============

Payloads exchanged over MQTT: the safety heartbeat (outbound) and control
messages (inbound, observed only).
"""

from .status import SAFE_FIELD, ControlMessage, SafetyStatusMessage

__all__ = [
    'SAFE_FIELD',
    'SafetyStatusMessage',
    'ControlMessage',
]
