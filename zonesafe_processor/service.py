"""
Zone Notifier Service - Main monitoring pipeline orchestrator.

This module provides the ZoneNotifierService class which drives the capture
loop and owns every external handle: video source, person detector, MQTT
status publisher and control subscriber.

Threading Model:
- Main thread: capture loop (read, hand off, render, operator keys)
- Inference Thread: FrameBuffer → Detector → ZoneMonitor → SharedStatus
- Telemetry Thread: SharedStatus → MQTT heartbeat every interval
- paho-mqtt network threads (publisher, subscriber)

Thread Safety:
- frame_buffer: single slot, internal condition
- shared_status: per-field locks, immutable snapshots
- zones: replaced only by the capture loop (operator reselect)
- shutdown: one-way Event, checked once per loop iteration

Lifecycle:
    service = ZoneNotifierService(config, status_publisher, control_subscriber)
    service.setup()   # loads the detector (fatal on failure)
    service.run()     # blocks until end of stream, ESC or stop()
"""

import logging
import time
from contextlib import ExitStack
from typing import Any, Callable, Dict, Optional

import cv2
import numpy as np

from zonesafe_zone import StatusOverlay, Zone
from zonesafe_processor.capture import VideoSource
from zonesafe_processor.config import NotifierConfig
from zonesafe_processor.detector import YoloPersonDetector
from zonesafe_processor.frame_buffer import FrameBuffer
from zonesafe_processor.inference import Detector, InferenceWorker
from zonesafe_processor.shared_status import SharedStatus
from zonesafe_processor.shutdown import ShutdownCoordinator
from zonesafe_processor.telemetry import TelemetryPublisher
from zonesafe_processor.zone_selection import ZoneSelection

logger = logging.getLogger(__name__)

WINDOW_NAME = "Restricted Zone Notifier"
SELECTOR_WINDOW_NAME = "Assembly Selection"

KEY_ESC = 27
KEY_RESELECT = ord("c")


class ZoneNotifierService:
    """
    Restricted zone notifier.

    Usage:
        config = NotifierConfig.from_yaml("config/notifier_config.yaml")
        publisher = SafetyStatusPublisher(...)
        subscriber = ControlSubscriber(...)

        service = ZoneNotifierService(config, publisher, subscriber)
        service.setup()
        service.run()  # Blocks until stopped
    """

    def __init__(
        self,
        config: NotifierConfig,
        status_publisher: Any,  # SafetyStatusPublisher
        control_subscriber: Any = None,  # ControlSubscriber
        detector: Optional[Detector] = None,
        video_source_factory: Callable[[str], Any] = VideoSource,
        overlay: Optional[StatusOverlay] = None,
        shutdown: Optional[ShutdownCoordinator] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the notifier service.

        Args:
            config: Notifier configuration
            status_publisher: Heartbeat publisher (connect/disconnect/publish_status)
            control_subscriber: Optional control channel observer (connect/disconnect)
            detector: Pre-built detector; built from config in setup() when None
            video_source_factory: Callable returning a VideoSource-like context manager
            overlay: Overlay renderer for the display window
            shutdown: Shared cancellation token (created when None)
            sleep: Sleep function used to pace the headless capture loop
        """
        self.config = config
        self.status_publisher = status_publisher
        self.control_subscriber = control_subscriber
        self.detector = detector
        self.video_source_factory = video_source_factory
        self.overlay = overlay or StatusOverlay()
        self.shutdown = shutdown or ShutdownCoordinator()
        self._sleep = sleep

        # Shared state
        self.frame_buffer = FrameBuffer()
        self.shared_status = SharedStatus()
        self.zones = ZoneSelection(config.zone_config.to_zone())

        # Workers (created in setup())
        self.inference_worker: Optional[InferenceWorker] = None
        self.telemetry: Optional[TelemetryPublisher] = None

        self.frames_captured = 0

    def setup(self) -> None:
        """
        Load the detector and build the worker loops.

        Raises:
            DetectorLoadError: If the model cannot be loaded
        """
        if self.detector is None:
            self.detector = YoloPersonDetector(self.config.model_config)

        self.inference_worker = InferenceWorker(
            detector=self.detector,
            frame_buffer=self.frame_buffer,
            zones=self.zones,
            shared_status=self.shared_status,
            shutdown=self.shutdown,
            poll_timeout=self.config.frame_poll_timeout,
            max_consecutive_failures=self.config.max_consecutive_failures,
        )

        self.telemetry = TelemetryPublisher(
            publisher=self.status_publisher,
            shared_status=self.shared_status,
            shutdown=self.shutdown,
            interval=self.config.publish_interval,
        )

        logger.info("Pipeline setup complete")

    def run(self) -> None:
        """
        Run the notifier until stopped.

        Teardown order on every exit path:
        1. Signal stop and join both worker threads
        2. Disconnect MQTT clients
        3. Release the video source
        4. Release the detector

        Raises:
            RuntimeError: If setup() was not called
            VideoSourceError: If the video source cannot be opened
            DetectorUnavailableError: If the detector failed repeatedly
        """
        if self.inference_worker is None or self.telemetry is None:
            raise RuntimeError("Service not initialized. Call setup() first.")

        with ExitStack() as stack:
            stack.callback(self.detector.close)
            source = stack.enter_context(self.video_source_factory(self.config.video_source))
            self._connect_transport(stack)

            self.inference_worker.start()
            self.telemetry.start()
            logger.info("✅ Zone notifier started")

            try:
                self._capture_loop(source)
            finally:
                self.shutdown.signal_stop("capture loop exited")
                self._join_workers()
                if self.config.show_window:
                    cv2.destroyAllWindows()

        logger.info("✅ Zone notifier stopped")

        if self.inference_worker.error is not None:
            raise self.inference_worker.error

    def stop(self, reason: str = "stop requested") -> None:
        """Request shutdown (safe from any thread)."""
        self.shutdown.signal_stop(reason)

    def _connect_transport(self, stack: ExitStack) -> None:
        """
        Connect MQTT clients. Failures degrade telemetry, detection keeps running.
        """
        if self.status_publisher.connect():
            logger.info("MQTT started.")
        else:
            logger.warning(
                "⚠️ MQTT NOT started: have you set the ENV variables? "
                "Continuing without telemetry"
            )
        stack.callback(self.status_publisher.disconnect)

        if self.control_subscriber is not None:
            if not self.control_subscriber.connect():
                logger.warning("⚠️ Control channel unavailable")
            stack.callback(self.control_subscriber.disconnect)

    def _capture_loop(self, source: Any) -> None:
        """Read, hand off, render and handle operator input until stopped."""
        while self.shutdown.running():
            frame = source.read()
            if frame is None:
                logger.error("❌ Blank frame grabbed, stopping")
                self.shutdown.signal_stop("end of stream")
                break

            self.frames_captured += 1
            self.frame_buffer.put(frame)

            if self.config.show_window:
                key = cv2.waitKey(self.config.key_delay_ms) & 0xFF
                self._handle_key(key, frame)
                self._render(frame)
            else:
                self._sleep(self.config.key_delay_ms / 1000.0)

    def _handle_key(self, key: int, frame: np.ndarray) -> None:
        if key == KEY_RESELECT:
            self._reselect_zone(frame)
        elif key == KEY_ESC:
            logger.info("Attempting to stop background threads")
            self.shutdown.signal_stop("operator exit")

    def _reselect_zone(self, frame: np.ndarray) -> None:
        """
        Let the operator draw a new zone from the top-left corner.

        An empty selection (cancel) yields a zero-size zone, i.e. the whole frame.
        """
        cv2.namedWindow(SELECTOR_WINDOW_NAME)
        rect = cv2.selectROI(SELECTOR_WINDOW_NAME, frame, showCrosshair=False, fromCenter=False)
        cv2.destroyWindow(SELECTOR_WINDOW_NAME)
        self.zones.replace(Zone.from_xywh(rect))

    def _render(self, frame: np.ndarray) -> None:
        scene = self.overlay.draw(
            frame,
            self.zones.get(),
            self.shared_status.get(),
            self.shared_status.get_perf(),
        )
        cv2.imshow(WINDOW_NAME, scene)

    def _join_workers(self) -> None:
        timeout = self.config.join_timeout
        for name, worker in (("inference", self.inference_worker), ("telemetry", self.telemetry)):
            if not worker.join(timeout=timeout):
                logger.warning(f"⚠️ {name} thread did not stop within {timeout}s")

    def get_stats(self) -> Dict[str, Any]:
        """Pipeline counters for diagnostics."""
        return {
            'frames_captured': self.frames_captured,
            'frame_buffer': self.frame_buffer.get_stats(),
            'frames_processed': self.inference_worker.frames_processed if self.inference_worker else 0,
            'heartbeats': self.telemetry.publish_count if self.telemetry else 0,
            'status': self.shared_status.get(),
            'shutdown_reason': self.shutdown.reason,
        }
