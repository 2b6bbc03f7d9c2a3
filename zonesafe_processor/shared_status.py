"""
SharedStatus - latest safety verdict and performance text.

Written by the inference thread, read by the capture loop (display) and the
telemetry thread. Each field has its own lock: the verdict is replaced as one
immutable SafetyStatus, so readers never see a torn safe/alert pair; the
performance text is independent and last-write-wins.
"""

import threading

from zonesafe_zone import SafetyStatus


class SharedStatus:
    """
    Thread-safe holder of the current SafetyStatus and performance text.

    Initial state: SafetyStatus(safe=True, alert=False), empty perf text.

    Thread Safety:
    - get()/set()/reset(): _status_lock, held only for the assignment
    - get_perf()/set_perf(): _perf_lock, independent of the status lock
    """

    def __init__(self, initial: SafetyStatus = SafetyStatus.clear()):
        self._status = initial
        self._perf = ""
        self._status_lock = threading.Lock()
        self._perf_lock = threading.Lock()

    def get(self) -> SafetyStatus:
        """Return the latest status snapshot."""
        with self._status_lock:
            return self._status

    def set(self, status: SafetyStatus) -> SafetyStatus:
        """
        Replace the status.

        Returns:
            The previous status (lets the writer detect transitions)
        """
        with self._status_lock:
            previous, self._status = self._status, status
            return previous

    def reset(self) -> None:
        """Clear the verdict to SafetyStatus(safe=False, alert=False)."""
        self.set(SafetyStatus.unknown())

    def get_perf(self) -> str:
        with self._perf_lock:
            return self._perf

    def set_perf(self, text: str) -> None:
        with self._perf_lock:
            self._perf = text
