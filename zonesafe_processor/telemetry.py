"""
Telemetry Publisher - fixed-cadence safety heartbeat.

Every interval the loop reads one SharedStatus snapshot and publishes it,
whether or not it changed: downstream consumers rely on the heartbeat for
liveness, not only on edge-triggered alerts.

Threading Model:
- Runs in its own thread ("TelemetryThread")
- The status lock is held only inside SharedStatus.get(), never across
  the publish call or the wait
- The wait between heartbeats is the shutdown token itself, so a stop
  request wakes the loop at once
"""

import logging
import threading
from typing import Any, Callable, Optional

from zonesafe_processor.shared_status import SharedStatus
from zonesafe_processor.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)


class TelemetryPublisher:
    """
    Fixed-delay polling publisher.

    Args:
        publisher: Object with publish_status(status) -> bool
                   (zonesafe_mqtt.SafetyStatusPublisher in production)
        shared_status: Source of status snapshots
        shutdown: Cancellation token
        interval: Seconds between heartbeats (default: 1.0)
        sleep: Wait function (default: shutdown.wait, injectable for tests)
    """

    def __init__(
        self,
        publisher: Any,
        shared_status: SharedStatus,
        shutdown: ShutdownCoordinator,
        interval: float = 1.0,
        sleep: Optional[Callable[[float], Any]] = None,
    ):
        self.publisher = publisher
        self.shared_status = shared_status
        self.shutdown = shutdown
        self.interval = interval
        self._sleep = sleep or shutdown.wait

        self.publish_count = 0
        self.failure_count = 0
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the publisher thread."""
        self._thread = threading.Thread(
            target=self.run,
            name="TelemetryThread",
            daemon=True
        )
        self._thread.start()
        logger.info(f"MQTT sender thread started (interval={self.interval}s)")

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the publisher thread to finish.

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
        """Publisher loop. Returns once the shutdown flag is set."""
        while self.shutdown.running():
            self.publish_once()
            self._sleep(self.interval)

        logger.info("MQTT sender thread stopped")

    def publish_once(self) -> bool:
        """
        Publish the current snapshot.

        Transport failures degrade telemetry only; they never stop the loop.
        """
        status = self.shared_status.get()

        try:
            published = self.publisher.publish_status(status)
        except Exception as e:
            logger.error(f"❌ Error publishing safety status: {e}", exc_info=True)
            published = False

        self.publish_count += 1
        if not published:
            self.failure_count += 1
        return published
