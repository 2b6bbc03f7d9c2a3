"""
Status Overlay Module
=====================

Pure visualization layer for the monitored zone and the safety verdict.

Design:
- Stateless rendering (pure functions)
- No business logic
- Configurable styles
- Uses supervision drawing utilities

Dependencies:
- supervision (draw utilities, Color, Point, Rect)
- cv2 (text metrics)
- numpy (arrays)
"""

import cv2
import numpy as np
import supervision as sv

from zonesafe_zone.geometry.monitor import SafetyStatus
from zonesafe_zone.geometry.shapes import Zone

ALERT_TEXT = "HUMAN IN ASSEMBLY AREA: PAUSE THE MACHINE!"


class StatusOverlay:
    """
    Stateless overlay renderer for the notifier window.

    Layout (top-left, one line each):
        1. Performance text (inference latency)
        2. "Worker Safe: true|false"
        3. Alert banner (only while alerting)

    Usage:
        overlay = StatusOverlay()
        frame = overlay.draw(frame, zone, status, perf_text)
    """

    def __init__(
        self,
        zone_color: sv.Color = sv.Color(r=255, g=0, b=0),
        text_color: sv.Color = sv.Color(r=255, g=255, b=255),
        alert_color: sv.Color = sv.Color(r=255, g=0, b=0),
        text_background_color: sv.Color = sv.Color(r=0, g=0, b=0),
        thickness: int = 1,
        text_scale: float = 0.5,
        text_thickness: int = 1,
        text_padding: int = 4,
        line_spacing: int = 25,
    ):
        """
        Initialize overlay with style configuration.

        Args:
            zone_color: Color for the zone rectangle
            text_color: Color for status lines
            alert_color: Color for the alert banner
            text_background_color: Background color behind text
            thickness: Rectangle line thickness
            text_scale: Scale factor for text
            text_thickness: Thickness for text
            text_padding: Padding for text background
            line_spacing: Vertical distance between text lines
        """
        self.zone_color = zone_color
        self.text_color = text_color
        self.alert_color = alert_color
        self.text_background_color = text_background_color
        self.thickness = thickness
        self.text_scale = text_scale
        self.text_thickness = text_thickness
        self.text_padding = text_padding
        self.line_spacing = line_spacing

    def draw_zone(self, frame: np.ndarray, zone: Zone) -> np.ndarray:
        """Draw the zone rectangle (normalized against this frame)."""
        height, width = frame.shape[:2]
        area = zone.normalized(width, height)

        return sv.draw_rectangle(
            scene=frame,
            rect=sv.Rect(x=area.x, y=area.y, width=area.width, height=area.height),
            color=self.zone_color,
            thickness=self.thickness,
        )

    def draw_line(
        self,
        frame: np.ndarray,
        text: str,
        line: int,
        color: sv.Color,
        thickness: int,
    ) -> np.ndarray:
        """
        Draw one left-aligned text line.

        supervision anchors text at its center, so the anchor is shifted
        by half the rendered text width.
        """
        if not text:
            return frame

        (text_width, text_height), _ = cv2.getTextSize(
            text, cv2.FONT_HERSHEY_SIMPLEX, self.text_scale, thickness
        )
        anchor = sv.Point(
            x=self.text_padding + text_width // 2,
            y=self.text_padding + text_height // 2 + line * self.line_spacing,
        )

        return sv.draw_text(
            scene=frame,
            text=text,
            text_anchor=anchor,
            text_color=color,
            text_scale=self.text_scale,
            text_thickness=thickness,
            text_padding=self.text_padding,
            background_color=self.text_background_color,
        )

    def draw(
        self,
        frame: np.ndarray,
        zone: Zone,
        status: SafetyStatus,
        perf_text: str = "",
    ) -> np.ndarray:
        """
        Draw zone and status lines on a copy of the frame.

        Args:
            frame: Captured frame (left untouched)
            zone: Current zone
            status: Latest SafetyStatus snapshot
            perf_text: Latest performance text

        Returns:
            Annotated copy of the frame
        """
        scene = self.draw_zone(frame.copy(), zone)
        scene = self.draw_line(scene, perf_text, 0, self.text_color, self.text_thickness)
        scene = self.draw_line(
            scene,
            f"Worker Safe: {'true' if status.safe else 'false'}",
            1,
            self.text_color,
            self.text_thickness,
        )

        if status.alert:
            scene = self.draw_line(scene, ALERT_TEXT, 4, self.alert_color, self.text_thickness + 1)

        return scene
