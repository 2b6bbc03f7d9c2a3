"""
Video Source - scoped access to a cv2.VideoCapture.

A single-digit source string selects a camera index; anything else is
treated as a file path or stream URL.
"""

import logging
from typing import Optional, Union

import cv2
import numpy as np

from zonesafe_processor.errors import VideoSourceError

logger = logging.getLogger(__name__)


def resolve_source(source: Union[str, int]) -> Union[str, int]:
    """
    Map a configured source to what cv2.VideoCapture expects.

    Examples:
        "0" -> 0 (camera index)
        "./videos/line.mp4" -> "./videos/line.mp4"
    """
    if isinstance(source, int):
        return source
    text = str(source).strip()
    if len(text) == 1 and text.isdigit():
        return int(text)
    return text


class VideoSource:
    """
    Context manager around cv2.VideoCapture.

    Usage:
        with VideoSource("0") as source:
            frame = source.read()
            while frame is not None:
                ...
                frame = source.read()

    Raises:
        VideoSourceError: On enter, if the source cannot be opened
    """

    def __init__(self, source: Union[str, int]):
        self.source = resolve_source(source)
        self._capture: Optional[cv2.VideoCapture] = None

    def open(self) -> "VideoSource":
        capture = cv2.VideoCapture(self.source)
        if not capture.isOpened():
            capture.release()
            raise VideoSourceError(f"Unable to open video source: {self.source}")

        self._capture = capture
        width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(f"🎥 Video source opened: {self.source} ({width}x{height})")
        return self

    def read(self) -> Optional[np.ndarray]:
        """
        Grab the next frame.

        Returns:
            The frame, or None at end of stream or on a blank frame
        """
        if self._capture is None:
            raise VideoSourceError("Video source is not open")

        ok, frame = self._capture.read()
        if not ok or frame is None or frame.size == 0:
            return None
        return frame

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Video source released")

    def __enter__(self) -> "VideoSource":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
