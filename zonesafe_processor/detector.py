"""
Person Detector - ultralytics YOLO wrapped as a notifier Detector.

This module loads a YOLO model once at startup and converts its predictions
into DetectionBox instances for the zone monitor.

Thread Safety:
- NOT thread-safe (single consumer pattern)
- Loaded by the main thread during setup, then used only by the
  inference thread
"""

import logging
import time
from typing import List, Tuple

import numpy as np
import supervision as sv
from ultralytics import YOLO

from zonesafe_zone import DetectionBox
from zonesafe_processor.config import ModelConfig
from zonesafe_processor.errors import DetectorLoadError
from zonesafe_processor.inference import Detector

logger = logging.getLogger(__name__)


def boxes_from_detections(
    detections: sv.Detections,
    person_class_id: int,
    confidence: float,
) -> List[DetectionBox]:
    """
    Keep person detections scoring above ``confidence`` and convert them.

    Args:
        detections: supervision detections (xyxy in pixels)
        person_class_id: Class id of "person"
        confidence: Confidence factor; detections must be strictly above it

    Returns:
        DetectionBox list with integer pixel coordinates
    """
    if len(detections) == 0:
        return []

    mask = np.ones(len(detections), dtype=bool)
    if detections.class_id is not None:
        mask &= detections.class_id == person_class_id
    if detections.confidence is not None:
        mask &= detections.confidence > confidence

    persons = detections[mask]

    boxes = []
    for i, (x1, y1, x2, y2) in enumerate(persons.xyxy):
        left, top = int(x1), int(y1)
        score = float(persons.confidence[i]) if persons.confidence is not None else 1.0
        boxes.append(DetectionBox(
            left=left,
            top=top,
            width=int(x2) - left,
            height=int(y2) - top,
            confidence=score,
        ))
    return boxes


class YoloPersonDetector(Detector):
    """
    Person detector backed by an ultralytics YOLO model.

    Usage:
        detector = YoloPersonDetector(ModelConfig(weights="yolov8n.pt"))
        boxes, elapsed_ms = detector.infer(frame)
        detector.close()
    """

    def __init__(self, model_config: ModelConfig):
        """
        Load the model.

        Raises:
            DetectorLoadError: If the weights cannot be loaded
        """
        self.model_config = model_config
        self.model = self._load(model_config)

    @staticmethod
    def _load(model_config: ModelConfig) -> YOLO:
        logger.info(f"📦 Loading person detection model: {model_config.weights}")
        try:
            model = YOLO(model_config.weights)
        except Exception as e:
            raise DetectorLoadError(
                f"Unable to load model '{model_config.weights}': {e}"
            ) from e

        logger.info(
            f"✅ Model loaded (confidence>{model_config.confidence}, "
            f"device={model_config.device or 'auto'})"
        )
        return model

    def infer(self, frame: np.ndarray) -> Tuple[List[DetectionBox], float]:
        """
        Run person detection on one frame.

        Returns:
            (person boxes, elapsed milliseconds)

        Raises:
            RuntimeError: If called after close()
        """
        if self.model is None:
            raise RuntimeError("Detector is closed")

        cfg = self.model_config
        start = time.perf_counter()
        result = self.model(
            frame,
            verbose=False,
            conf=cfg.confidence,
            classes=[cfg.person_class_id],
            imgsz=cfg.input_size,
            device=cfg.device,
        )[0]
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        detections = sv.Detections.from_ultralytics(result)
        return boxes_from_detections(detections, cfg.person_class_id, cfg.confidence), elapsed_ms

    def close(self) -> None:
        """Release the model."""
        if self.model is not None:
            logger.info("Releasing person detection model")
            self.model = None
