"""Video sources feeding the detection loop.

``CameraSource`` wraps ``cv2.VideoCapture``.  Frames are grabbed by a
background thread that keeps only the latest one; readiness is bridged onto
the asyncio event loop with ``loop.call_soon_threadsafe`` so the detection
loop can await it instead of polling.

Usage::

    source = CameraSource(0)
    await source.start()
    frame = source.read()     # latest BGR frame, or None before the first one
    await source.close()
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class VideoSourceError(RuntimeError):
    """Raised when a capture device cannot be opened."""


class VideoSource(ABC):
    # One-shot readiness notification.  Sources that cannot signal readiness
    # leave this as None and the loop falls back to polling dimensions.
    ready: asyncio.Event | None = None

    @property
    @abstractmethod
    def width(self) -> int:
        """Natural frame width in pixels, 0 until the source is ready."""

    @property
    @abstractmethod
    def height(self) -> int:
        """Natural frame height in pixels, 0 until the source is ready."""

    @abstractmethod
    def read(self) -> np.ndarray | None:
        """Return the current frame, or None if none is available yet."""


class CameraSource(VideoSource):
    """Latest-frame wrapper around an OpenCV capture device or stream."""

    _READ_FAIL_WARN_STREAK = 30  # warn after this many consecutive failed grabs
    _RETRY_INTERVAL: float = 0.01

    def __init__(self, device: int | str) -> None:
        self._device = device
        self._capture: cv2.VideoCapture | None = None
        self._frame: np.ndarray | None = None
        self._frame_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self.ready = asyncio.Event()

    @property
    def width(self) -> int:
        with self._frame_lock:
            return 0 if self._frame is None else int(self._frame.shape[1])

    @property
    def height(self) -> int:
        with self._frame_lock:
            return 0 if self._frame is None else int(self._frame.shape[0])

    async def start(self) -> None:
        """Open the capture device and start the grab thread.

        Raises:
            VideoSourceError: If OpenCV cannot open ``device``.
        """
        loop = asyncio.get_running_loop()
        capture = cv2.VideoCapture(self._device)
        if not capture.isOpened():
            capture.release()
            raise VideoSourceError(f"Cannot open video device {self._device!r}")
        self._capture = capture

        self._thread = threading.Thread(
            target=self._grab_loop,
            args=(loop,),
            name=f"camera-{self._device}",
            daemon=True,
        )
        self._thread.start()
        logger.info("CameraSource started — device=%s", self._device)

    def read(self) -> np.ndarray | None:
        with self._frame_lock:
            return self._frame

    async def close(self) -> None:
        """Stop the grab thread and release the device."""
        self._stop_event.set()
        if self._thread is not None:
            await asyncio.to_thread(self._thread.join, 2.0)
            self._thread = None
        if self._capture is not None:
            self._capture.release()
            self._capture = None
        logger.info("CameraSource closed — device=%s", self._device)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _grab_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Background thread: keep ``self._frame`` pointing at the newest frame."""
        fail_streak = 0
        while not self._stop_event.is_set():
            ok, frame = self._capture.read()
            if not ok or frame is None:
                fail_streak += 1
                if fail_streak == self._READ_FAIL_WARN_STREAK:
                    logger.warning(
                        "No frame from device %s for %d reads", self._device, fail_streak
                    )
                self._stop_event.wait(self._RETRY_INTERVAL)
                continue

            fail_streak = 0
            with self._frame_lock:
                first = self._frame is None
                self._frame = frame
            if first:
                logger.info(
                    "Video source ready — %dx%d", frame.shape[1], frame.shape[0]
                )
                loop.call_soon_threadsafe(self.ready.set)
