"""Detection loop — coordinates video source → detector → focus → overlay.

A ``DetectionLoop`` runs as a single asyncio task:

1. Waits for the ``VideoSource`` to report non-zero dimensions, awaiting its
   readiness event when it has one and re-checking every poll interval.
2. Each cycle resizes the overlay, runs the detector once on the current
   frame, scores and classifies every non-excluded box, and repaints.
3. Sleeps for the pacing delay, then starts the next cycle.

Cycles are strictly serialized: cycle N is rendered before the detector is
called for cycle N+1.  Stopping clears the ``LoopLifecycle`` flag; a
detection already in flight finishes but no further cycle is started.
"""

import asyncio
import logging
import time
from collections.abc import Callable

import numpy as np

from src.config import Settings
from src.models import Annotation, BoundingBox, LoopState
from src.overlay.canvas import Canvas
from src.overlay.renderer import AnnotationRenderer
from src.video.detector import ObjectDetector
from src.video.focus import classify
from src.video.sharpness import clamp_region, estimate_sharpness
from src.video.source import VideoSource

logger = logging.getLogger(__name__)

# Presentation hook: (frame, canvas, annotations) after each render
CycleCallback = Callable[[np.ndarray, Canvas, list[Annotation]], None]


class LoopLifecycle:
    """Cancellation token shared by a loop and whoever owns its lifetime."""

    def __init__(self) -> None:
        self._state = LoopState.WAITING_FOR_SOURCE
        self._stopped = asyncio.Event()

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def stopped(self) -> asyncio.Event:
        """Set once ``stop()`` is called; lets waits end without a full timeout."""
        return self._stopped

    @property
    def running(self) -> bool:
        return self._state is not LoopState.STOPPED

    def mark_running(self) -> None:
        if self.running:
            self._state = LoopState.RUNNING

    def stop(self) -> None:
        self._state = LoopState.STOPPED
        self._stopped.set()


def annotate(
    frame: np.ndarray, boxes: list[BoundingBox], settings: Settings
) -> list[Annotation]:
    """Score and classify every box whose label is not excluded."""
    frame_h, frame_w = frame.shape[:2]
    excluded = set(settings.excluded_labels)

    annotations: list[Annotation] = []
    for box in boxes:
        if box.label in excluded:
            continue
        x, y, w, h = clamp_region(box, frame_w, frame_h)
        score = estimate_sharpness(frame, x, y, w, h)
        annotations.append(
            Annotation(
                box=box,
                sharpness=score,
                state=classify(score, settings.sharpness_threshold),
            )
        )
    return annotations


class DetectionLoop:
    """Self-pacing detect → annotate → render loop over one video source.

    Usage::

        loop = DetectionLoop(source, detector, Canvas(), renderer, settings)
        loop.start()
        # … cycles run until stopped …
        await loop.close()
    """

    def __init__(
        self,
        source: VideoSource,
        detector: ObjectDetector,
        canvas: Canvas,
        renderer: AnnotationRenderer,
        settings: Settings,
        lifecycle: LoopLifecycle | None = None,
        on_cycle: CycleCallback | None = None,
    ) -> None:
        self._source = source
        self._detector = detector
        self._canvas = canvas
        self._renderer = renderer
        self._settings = settings
        self._lifecycle = lifecycle or LoopLifecycle()
        self._on_cycle = on_cycle
        self._task: asyncio.Task | None = None
        self._cycle_count = 0
        self._detector_failures = 0
        self._last_annotations: list[Annotation] = []
        self._failure: Exception | None = None

    @property
    def lifecycle(self) -> LoopLifecycle:
        return self._lifecycle

    @property
    def state(self) -> LoopState:
        return self._lifecycle.state

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    @property
    def detector_failures(self) -> int:
        return self._detector_failures

    @property
    def failure(self) -> Exception | None:
        """The exception that ended the loop, or None if it stopped normally."""
        return self._failure

    @property
    def last_annotations(self) -> list[Annotation]:
        return list(self._last_annotations)

    def start(self) -> asyncio.Task:
        """Schedule ``run()`` on the current event loop.

        Raises:
            RuntimeError: If the loop was already started.
        """
        if self._task is not None:
            raise RuntimeError("DetectionLoop already started")
        self._task = asyncio.create_task(self.run(), name="detection-loop")
        return self._task

    def stop(self) -> None:
        """Decline to start any further cycle; does not interrupt one in flight."""
        self._lifecycle.stop()

    async def close(self) -> None:
        """Stop and wait for the current cycle, if any, to finish."""
        self.stop()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        if self._failure is not None:
            logger.error(
                "Detection loop ended by %r after %d cycles",
                self._failure,
                self._cycle_count,
            )
            return
        logger.info(
            "Detection loop stopped after %d cycles (%d detector failures)",
            self._cycle_count,
            self._detector_failures,
        )

    async def run(self) -> None:
        try:
            if not await self._wait_for_source():
                return

            self._lifecycle.mark_running()
            logger.info(
                "Detection loop running — source %dx%d, cycle delay %.3fs",
                self._source.width,
                self._source.height,
                self._settings.cycle_delay_s,
            )

            while self._lifecycle.running:
                frame = self._source.read()
                if frame is None:
                    await asyncio.sleep(self._settings.source_poll_interval_s)
                    continue

                await self._run_cycle(frame)
                await asyncio.sleep(self._settings.cycle_delay_s)
        except Exception as exc:
            self._failure = exc
            logger.exception(
                "Detection loop crashed after %d cycles: %s", self._cycle_count, exc
            )
        finally:
            self._lifecycle.stop()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _wait_for_source(self) -> bool:
        """Block until the source has non-zero dimensions or the loop is stopped."""
        poll_interval = self._settings.source_poll_interval_s
        while self._lifecycle.running:
            if self._source.width and self._source.height:
                return True

            # Wake early on readiness or on stop, whichever comes first.
            waiters = [asyncio.ensure_future(self._lifecycle.stopped.wait())]
            ready = self._source.ready
            if ready is not None and not ready.is_set():
                waiters.append(asyncio.ensure_future(ready.wait()))
            try:
                await asyncio.wait(
                    waiters, timeout=poll_interval, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                for waiter in waiters:
                    waiter.cancel()
        return False

    async def _run_cycle(self, frame: np.ndarray) -> None:
        start = time.monotonic()
        height, width = frame.shape[:2]
        self._canvas.resize(width, height)

        try:
            boxes = await self._detector.detect(frame)
        except Exception:
            self._detector_failures += 1
            logger.exception(
                "Detector failed on cycle %d — continuing", self._cycle_count + 1
            )
            self._canvas.clear()
            self._last_annotations = []
            return

        annotations = annotate(frame, boxes, self._settings)
        self._renderer.render(self._canvas, annotations)
        self._last_annotations = annotations
        self._cycle_count += 1

        if self._on_cycle is not None:
            self._on_cycle(frame, self._canvas, annotations)

        logger.debug(
            "Cycle %d — %d boxes, %d annotated in %.1f ms",
            self._cycle_count,
            len(boxes),
            len(annotations),
            (time.monotonic() - start) * 1000,
        )
