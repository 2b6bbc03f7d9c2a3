"""
Inference Worker - consumer side of the monitoring pipeline.

Drains the FrameBuffer, runs the person detector, decides the zone verdict
and publishes it to SharedStatus.

Threading Model:
- Runs in its own thread ("InferenceThread")
- Blocks on FrameBuffer.wait_take() when idle (no busy spin); the timeout
  bounds how long it goes without checking the shutdown flag
- No lock is held during the detector call

Failure Policy:
- A failed detector call is logged and the frame is skipped (no retry,
  the next frame supersedes it)
- After max_consecutive_failures failures in a row the detector is
  considered unusable: the error is stored on the worker and a stop is
  signalled for the whole pipeline
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np

from zonesafe_zone import DetectionBox, ZoneMonitor
from zonesafe_processor.errors import DetectorUnavailableError
from zonesafe_processor.frame_buffer import FrameBuffer
from zonesafe_processor.shared_status import SharedStatus
from zonesafe_processor.shutdown import ShutdownCoordinator
from zonesafe_processor.zone_selection import ZoneSelection

logger = logging.getLogger(__name__)


class Detector(ABC):
    """
    Person detection capability consumed by the inference worker.

    Subclasses return person boxes in frame pixels and the elapsed inference
    time in milliseconds. They may raise; the worker handles the failure.
    """

    @abstractmethod
    def infer(self, frame: np.ndarray) -> Tuple[List[DetectionBox], float]:
        raise NotImplementedError("Subclasses must implement infer()")

    def close(self) -> None:
        """Release model resources (default: nothing to release)."""


class InferenceWorker:
    """
    Consumer loop: FrameBuffer → Detector → ZoneMonitor → SharedStatus.

    Usage:
        worker = InferenceWorker(detector, frame_buffer, zones, shared_status, shutdown)
        worker.start()
        ...
        shutdown.signal_stop("exit")
        worker.join()
        if worker.error:
            raise worker.error
    """

    def __init__(
        self,
        detector: Detector,
        frame_buffer: FrameBuffer,
        zones: ZoneSelection,
        shared_status: SharedStatus,
        shutdown: ShutdownCoordinator,
        poll_timeout: float = 0.1,
        max_consecutive_failures: int = 10,
    ):
        self.detector = detector
        self.frame_buffer = frame_buffer
        self.zones = zones
        self.shared_status = shared_status
        self.shutdown = shutdown
        self.poll_timeout = poll_timeout
        self.max_consecutive_failures = max_consecutive_failures

        self.error: Optional[DetectorUnavailableError] = None
        self.frames_processed = 0
        self._consecutive_failures = 0
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the worker thread."""
        self._thread = threading.Thread(
            target=self.run,
            name="InferenceThread",
            daemon=True
        )
        self._thread.start()
        logger.info("Inference thread started")

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the worker thread to finish.

        Returns:
            True if the thread is no longer alive
        """
        if self._thread is None:
            return True
        self._thread.join(timeout=timeout)
        return not self._thread.is_alive()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        """Worker loop. Returns once the shutdown flag is set."""
        while self.shutdown.running():
            frame = self.frame_buffer.wait_take(self.poll_timeout)
            if frame is None:
                continue
            self.process_frame(frame)

        logger.info("Video processing thread stopped")

    def process_frame(self, frame: np.ndarray) -> bool:
        """
        Run detection and zone evaluation for one frame.

        Returns:
            True if SharedStatus was updated, False if the frame was skipped
        """
        try:
            detections, elapsed_ms = self.detector.infer(frame)
        except Exception as e:
            self._on_detector_failure(e)
            return False

        self._consecutive_failures = 0

        frame_height, frame_width = frame.shape[:2]
        zone = self.zones.get()
        status = ZoneMonitor.evaluate(detections, zone, frame_width, frame_height)

        previous = self.shared_status.set(status)
        self.shared_status.set_perf(f"Person inference time: {elapsed_ms:.2f} ms")
        self.frames_processed += 1

        if status.alert and not previous.alert:
            logger.warning("⚠️ HUMAN IN ASSEMBLY AREA: PAUSE THE MACHINE!")
        elif previous.alert and not status.alert:
            logger.info("✅ Assembly area clear")

        return True

    def _on_detector_failure(self, error: Exception) -> None:
        self._consecutive_failures += 1
        logger.error(
            f"❌ Inference failed, skipping frame "
            f"({self._consecutive_failures}/{self.max_consecutive_failures}): {error}",
            exc_info=True
        )

        if self._consecutive_failures >= self.max_consecutive_failures:
            self.error = DetectorUnavailableError(
                f"Detector failed {self._consecutive_failures} consecutive times; "
                f"last error: {error}"
            )
            logger.critical(f"❌ {self.error}")
            self.shutdown.signal_stop("detector unavailable")
