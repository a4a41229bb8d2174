"""Live focus overlay: camera → object detection → sharpness-colored boxes.

Run with ``python -m src.main``.  Configuration comes from environment
variables or ``.env`` (see ``src.config.Settings``).  Press ``q`` in the
preview window to quit.
"""

import asyncio
import logging

import cv2
import numpy as np

from src.config import Settings, get_settings
from src.loop import DetectionLoop, LoopLifecycle
from src.models import Annotation
from src.overlay.canvas import Canvas
from src.overlay.renderer import AnnotationRenderer
from src.video.detector import MediaPipeObjectDetector
from src.video.source import CameraSource

logger = logging.getLogger(__name__)

WINDOW_NAME = "Focus Overlay"


def make_preview(lifecycle: LoopLifecycle):
    """Build the per-cycle hook that shows the annotated frame."""

    def _show(frame: np.ndarray, canvas: Canvas, annotations: list[Annotation]) -> None:
        cv2.imshow(WINDOW_NAME, canvas.composite(frame))
        if cv2.waitKey(1) & 0xFF == ord("q"):
            logger.info("Quit requested from preview window")
            lifecycle.stop()

    return _show


async def run(settings: Settings) -> None:
    source = CameraSource(settings.camera_source)
    await source.start()
    try:
        detector = MediaPipeObjectDetector(settings)
    except Exception:
        await source.close()
        raise

    lifecycle = LoopLifecycle()
    loop = DetectionLoop(
        source=source,
        detector=detector,
        canvas=Canvas(),
        renderer=AnnotationRenderer(settings),
        settings=settings,
        lifecycle=lifecycle,
        on_cycle=make_preview(lifecycle),
    )
    task = loop.start()
    try:
        await task
    finally:
        await loop.close()
        detector.close()
        await source.close()
        cv2.destroyAllWindows()


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO)
    )
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted — shutting down")


if __name__ == "__main__":
    main()
