"""
ShutdownCoordinator - cooperative cancellation for the notifier threads.

Two states, running → stopped; the transition is one-way. Worker loops check
running() once per iteration, so shutdown latency is bounded by the longest
blocking call in an iteration (one detector call, one telemetry interval).

OS signal handling lives at the process boundary (run_zone_notifier.py);
this module only exposes the token.
"""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    """
    Process-wide one-way stop flag.

    Usage:
        shutdown = ShutdownCoordinator()

        # Worker thread
        while shutdown.running():
            ...

        # Anywhere (signal handler, capture loop, failing worker)
        shutdown.signal_stop("end of stream")
    """

    def __init__(self):
        self._stopped = threading.Event()
        self._reason_lock = threading.Lock()
        self._reason: Optional[str] = None

    def running(self) -> bool:
        return not self._stopped.is_set()

    def signal_stop(self, reason: str = "stop requested") -> bool:
        """
        Move to the stopped state.

        Idempotent: only the first call records and logs its reason.

        Returns:
            True if this call performed the transition
        """
        with self._reason_lock:
            if self._stopped.is_set():
                return False
            self._reason = reason
            self._stopped.set()

        logger.info(f"🛑 Shutdown requested: {reason}")
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until stopped or timeout.

        Returns:
            True if stopped
        """
        return self._stopped.wait(timeout=timeout)

    @property
    def reason(self) -> Optional[str]:
        with self._reason_lock:
            return self._reason
