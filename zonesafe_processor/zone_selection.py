"""
Zone Selection - thread-safe holder of the monitored zone.

The zone is written only by the operator path (startup config, interactive
reselect in the capture loop) and read by the inference thread and the
overlay. Zones are immutable, so readers get a snapshot reference and the
lock is held only for the swap.
"""

import logging
import threading

from zonesafe_zone import Zone

logger = logging.getLogger(__name__)


class ZoneSelection:
    """
    Current zone with snapshot reads.

    Thread Safety:
    - replace(): write operation (acquire lock)
    - get(): read operation (acquire lock briefly)
    """

    def __init__(self, zone: Zone = Zone()):
        self._zone = zone
        self._lock = threading.Lock()

    def get(self) -> Zone:
        with self._lock:
            return self._zone

    def replace(self, zone: Zone) -> Zone:
        """
        Swap in a new zone.

        Returns:
            The previous zone
        """
        with self._lock:
            previous, self._zone = self._zone, zone

        logger.info(
            f"Zone Selection: -x={zone.x} -y={zone.y} "
            f"-h={zone.height} -w={zone.width}"
        )
        return previous
