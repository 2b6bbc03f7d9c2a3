"""
FrameBuffer - single-slot hand-off between capture and inference.

Freshness over completeness: when the consumer is busy, new frames are dropped
instead of queued. Memory stays bounded to one frame and the capture loop
never waits for inference.

Thread Safety:
- One threading.Condition guards the slot
- The lock is held only inside put()/take()/wait_take(), never while the
  consumer runs inference on the frame it took
"""

import threading
from typing import Any, Dict, Optional

import numpy as np


class FrameBuffer:
    """
    Single-slot, non-blocking frame buffer.

    Contract:
    - put(frame): store if empty, otherwise drop the new frame
    - take(): remove and return the stored frame, or None
    - wait_take(timeout): like take(), but waits up to timeout for a frame

    Usage:
        buffer = FrameBuffer()

        # Capture thread
        buffer.put(frame)

        # Inference thread
        frame = buffer.wait_take(timeout=0.1)
        if frame is not None:
            ...
    """

    def __init__(self):
        self._frame: Optional[np.ndarray] = None
        self._available = threading.Condition(threading.Lock())
        self._accepted = 0
        self._dropped = 0

    def put(self, frame: np.ndarray) -> bool:
        """
        Offer a frame to the consumer.

        Returns:
            True if stored, False if the slot was occupied and the frame dropped
        """
        with self._available:
            if self._frame is not None:
                self._dropped += 1
                return False

            self._frame = frame
            self._accepted += 1
            self._available.notify()
            return True

    def take(self) -> Optional[np.ndarray]:
        """
        Remove and return the pending frame.

        Returns:
            The stored frame, or None when no frame is available (never blocks)
        """
        with self._available:
            return self._pop()

    def wait_take(self, timeout: float) -> Optional[np.ndarray]:
        """
        Wait up to ``timeout`` seconds for a frame, then take it.

        The timeout bounds how long a consumer can go without re-checking
        its shutdown flag.
        """
        with self._available:
            if self._frame is None:
                self._available.wait(timeout=timeout)
            return self._pop()

    def _pop(self) -> Optional[np.ndarray]:
        # Caller holds the lock
        frame, self._frame = self._frame, None
        return frame

    def is_empty(self) -> bool:
        with self._available:
            return self._frame is None

    def get_stats(self) -> Dict[str, Any]:
        """Accepted and dropped frame counters."""
        with self._available:
            return {
                'accepted': self._accepted,
                'dropped': self._dropped,
                'pending': self._frame is not None,
            }
