"""
zonesafe_processor - Monitoring pipeline for the restricted zone notifier

This package provides the concurrent pipeline that captures video, detects
people, decides whether anyone is inside the restricted zone and publishes
the verdict as an MQTT heartbeat.

Architecture:
- FrameBuffer: single-slot capture → inference hand-off
- SharedStatus: latest SafetyStatus + performance text
- ShutdownCoordinator: one-way cooperative stop flag
- ZoneSelection: current zone, replaced by the operator
- InferenceWorker / TelemetryPublisher: worker loops
- ZoneNotifierService: driving loop and resource owner (zonesafe_processor.service)
- NotifierConfig: configuration management

Threading Model:
- Main thread (capture, display, operator keys)
- Inference Thread
- Telemetry Thread
- paho-mqtt network threads
"""

from zonesafe_processor.config import NotifierConfig
from zonesafe_processor.errors import (
    ZonesafeError,
    VideoSourceError,
    DetectorLoadError,
    DetectorUnavailableError,
)
from zonesafe_processor.frame_buffer import FrameBuffer
from zonesafe_processor.shared_status import SharedStatus
from zonesafe_processor.shutdown import ShutdownCoordinator
from zonesafe_processor.zone_selection import ZoneSelection
from zonesafe_processor.inference import Detector, InferenceWorker
from zonesafe_processor.telemetry import TelemetryPublisher

__all__ = [
    "NotifierConfig",
    "ZonesafeError",
    "VideoSourceError",
    "DetectorLoadError",
    "DetectorUnavailableError",
    "FrameBuffer",
    "SharedStatus",
    "ShutdownCoordinator",
    "ZoneSelection",
    "Detector",
    "InferenceWorker",
    "TelemetryPublisher",
]
