"""Object detection on BGR frames using the MediaPipe Tasks object detector.

The default model is EfficientDet-Lite0 trained on COCO, so labels match
the usual COCO class names ("person", "cup", "bottle", ...).
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import cv2
import mediapipe as mp
import numpy as np

from src.config import Settings
from src.models import BoundingBox

logger = logging.getLogger(__name__)


class ObjectDetector(ABC):
    """Maps a frame to the bounding boxes of the objects it contains."""

    @abstractmethod
    async def detect(self, frame: np.ndarray) -> list[BoundingBox]: ...

    def close(self) -> None:
        """Release backend resources; a no-op unless overridden."""


class MediaPipeObjectDetector(ObjectDetector):
    """Detects objects in a BGR frame with a MediaPipe ``.tflite`` model.

    The model is loaded once, in the constructor.  Inference runs in a
    worker thread so the event loop keeps servicing other tasks while a
    detection is in flight.

    Usage::

        detector = MediaPipeObjectDetector(settings)
        boxes = await detector.detect(frame)
        detector.close()
    """

    def __init__(self, settings: Settings) -> None:
        options = mp.tasks.vision.ObjectDetectorOptions(
            base_options=mp.tasks.BaseOptions(
                model_asset_path=settings.detector_model_path
            ),
            running_mode=mp.tasks.vision.RunningMode.IMAGE,
            score_threshold=settings.detector_score_threshold,
            max_results=settings.detector_max_results,
        )
        self._detector = mp.tasks.vision.ObjectDetector.create_from_options(options)
        logger.info("Object detector loaded: %s", settings.detector_model_path)

    async def detect(self, frame: np.ndarray) -> list[BoundingBox]:
        """Detect objects in a BGR frame.

        Returns:
            One ``BoundingBox`` per detection, labelled with its top category.
            Detections without any category are skipped.
        """
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        result = await asyncio.to_thread(self._detector.detect, image)

        boxes: list[BoundingBox] = []
        for detection in result.detections:
            if not detection.categories:
                continue
            category = detection.categories[0]
            bbox = detection.bounding_box
            boxes.append(
                BoundingBox(
                    x=float(bbox.origin_x),
                    y=float(bbox.origin_y),
                    width=float(bbox.width),
                    height=float(bbox.height),
                    label=category.category_name or "",
                    score=float(category.score),
                )
            )
        return boxes

    def close(self) -> None:
        """Release MediaPipe resources."""
        self._detector.close()
