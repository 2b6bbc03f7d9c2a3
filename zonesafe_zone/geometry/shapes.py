"""
Geometric Shapes Module
========================

Pure geometric representations - NO state, NO side effects.

Design:
- Immutable shapes (frozen dataclass pattern)
- Integer pixel coordinates, origin at top-left corner of frame
- Closed-interval containment (edges count as inside)
- Thread-safe (immutable)
"""

from dataclasses import dataclass, replace
from typing import Tuple


@dataclass(frozen=True)
class Zone:
    """
    Immutable rectangular hazard area in frame pixel coordinates.

    A zone is stored exactly as configured. Normalization against the
    frame happens on read (see normalized()), so the same Zone can be
    applied to frames of any resolution.

    Attributes:
        x: Left edge x-coordinate (pixels)
        y: Top edge y-coordinate (pixels)
        width: Zone width (pixels, <= 0 means "whole frame width")
        height: Zone height (pixels, <= 0 means "whole frame height")

    Example:
        >>> Zone(x=-5, y=10, width=0, height=0).normalized(640, 480)
        Zone(x=0, y=0, width=640, height=480)
    """

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def normalized(self, frame_width: int, frame_height: int) -> "Zone":
        """
        Return the zone normalized against the frame dimensions.

        Rules:
        - Negative x or y: origin moves to (0, 0)
        - Non-positive width: whole frame width
        - Non-positive height: whole frame height

        Args:
            frame_width: Frame width in pixels
            frame_height: Frame height in pixels

        Returns:
            Normalized Zone (self if nothing changed)
        """
        zone = self
        if zone.x < 0 or zone.y < 0:
            zone = replace(zone, x=0, y=0)
        if zone.width <= 0:
            zone = replace(zone, width=frame_width)
        if zone.height <= 0:
            zone = replace(zone, height=frame_height)
        return zone

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def contains_box(self, box: "DetectionBox") -> bool:
        """
        Check full containment of a box (closed interval on all four edges).

        A box whose edges coincide with the zone edges counts as contained.
        """
        return (
            box.left >= self.x
            and box.top >= self.y
            and box.right <= self.right
            and box.bottom <= self.bottom
        )

    def as_xywh(self) -> Tuple[int, int, int, int]:
        """(x, y, width, height) tuple, as used by OpenCV."""
        return self.x, self.y, self.width, self.height

    @classmethod
    def from_xywh(cls, rect: Tuple[int, int, int, int]) -> "Zone":
        """Build a zone from an (x, y, width, height) tuple (e.g. cv2.selectROI)."""
        x, y, width, height = rect
        return cls(x=int(x), y=int(y), width=int(width), height=int(height))

    @classmethod
    def full_frame(cls, frame_width: int, frame_height: int) -> "Zone":
        return cls(x=0, y=0, width=frame_width, height=frame_height)


@dataclass(frozen=True)
class DetectionBox:
    """
    Immutable person detection reported by the detector.

    Coordinates are absolute pixels in the frame the detection came from.

    Attributes:
        left: Left edge x-coordinate
        top: Top edge y-coordinate
        width: Box width
        height: Box height
        confidence: Detector confidence in [0, 1]
    """

    left: int
    top: int
    width: int
    height: int
    confidence: float = 1.0

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def is_degenerate(self) -> bool:
        """True when the box has no area."""
        return self.width <= 0 or self.height <= 0
