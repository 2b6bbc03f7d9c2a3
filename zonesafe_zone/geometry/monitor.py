"""
Zone Monitor Module
===================

Stateless intrusion decision - applies zone geometry to detections.

Design:
- Pure functions (no state)
- Binary verdict: any qualifying detection triggers the alert
- No counting, no severity, no hysteresis
- Thread-safe (no mutations)
"""

from dataclasses import dataclass
from typing import Iterable, List

from zonesafe_zone.geometry.shapes import DetectionBox, Zone


@dataclass(frozen=True)
class SafetyStatus:
    """
    Immutable safety verdict for the monitored zone.

    Invariants:
        - safe and alert are never both True
        - After a completed evaluation, safe == (not alert)
        - Both False only right after an explicit reset

    Example:
        >>> SafetyStatus.alerting()
        SafetyStatus(safe=False, alert=True)
    """

    safe: bool
    alert: bool

    def __post_init__(self):
        """Validate invariants."""
        if self.safe and self.alert:
            raise ValueError("SafetyStatus cannot be both safe and alert")

    @classmethod
    def clear(cls) -> "SafetyStatus":
        """Nobody inside the zone."""
        return cls(safe=True, alert=False)

    @classmethod
    def alerting(cls) -> "SafetyStatus":
        """At least one person inside the zone."""
        return cls(safe=False, alert=True)

    @classmethod
    def unknown(cls) -> "SafetyStatus":
        """Reset state: neither safe nor alerting."""
        return cls(safe=False, alert=False)


class ZoneMonitor:
    """
    Stateless evaluator of person detections against a rectangular zone.

    Algorithm:
    1. Normalize the zone against the frame (whole frame for degenerate zones)
    2. Drop boxes not fully inside the frame (clipped boxes at the edges
       would otherwise raise false positives)
    3. Any remaining box fully inside the zone -> alert
    """

    @staticmethod
    def intruders(
        detections: Iterable[DetectionBox],
        zone: Zone,
        frame_width: int,
        frame_height: int,
    ) -> List[DetectionBox]:
        """
        Detections that are fully inside both the frame and the zone.

        Args:
            detections: Detector output for one frame
            zone: Configured zone (normalized here)
            frame_width: Frame width in pixels
            frame_height: Frame height in pixels

        Returns:
            Qualifying detections, in input order
        """
        frame_zone = Zone.full_frame(frame_width, frame_height)
        area = zone.normalized(frame_width, frame_height)

        return [
            box for box in detections
            if not box.is_degenerate
            and frame_zone.contains_box(box)
            and area.contains_box(box)
        ]

    @staticmethod
    def evaluate(
        detections: Iterable[DetectionBox],
        zone: Zone,
        frame_width: int,
        frame_height: int,
    ) -> SafetyStatus:
        """
        Decide the safety verdict for one frame.

        Returns:
            SafetyStatus.alerting() if any detection intrudes, else SafetyStatus.clear()
        """
        if ZoneMonitor.intruders(detections, zone, frame_width, frame_height):
            return SafetyStatus.alerting()
        return SafetyStatus.clear()
