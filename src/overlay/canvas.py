"""Transparent BGRA overlay drawn with OpenCV primitives.

Mirrors the small subset of a 2D canvas API the annotation renderer needs:
clear, stroke a rectangle, stroke an open path, with a settable stroke
color and line width.
"""

from collections.abc import Sequence

import cv2
import numpy as np

Point = tuple[float, float]


class Canvas:
    def __init__(self, width: int = 640, height: int = 480) -> None:
        self._pixels = np.zeros((height, width, 4), dtype=np.uint8)
        self.stroke_color: tuple[int, int, int] = (255, 255, 255)
        self.line_width: int = 1

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def pixels(self) -> np.ndarray:
        """The underlying ``(H, W, 4)`` BGRA buffer."""
        return self._pixels

    def resize(self, width: int, height: int) -> None:
        """Match the overlay to the source dimensions; contents are discarded."""
        if (width, height) != (self.width, self.height):
            self._pixels = np.zeros((height, width, 4), dtype=np.uint8)

    def clear(self) -> None:
        self._pixels.fill(0)

    def stroke_rect(self, x: float, y: float, width: float, height: float) -> None:
        cv2.rectangle(
            self._pixels,
            (round(x), round(y)),
            (round(x + width), round(y + height)),
            self._stroke_bgra(),
            self.line_width,
        )

    def stroke_path(self, points: Sequence[Point]) -> None:
        """Stroke an open polyline through ``points``."""
        pts = np.array([(round(px), round(py)) for px, py in points], dtype=np.int32)
        cv2.polylines(
            self._pixels,
            [pts.reshape(-1, 1, 2)],
            isClosed=False,
            color=self._stroke_bgra(),
            thickness=self.line_width,
        )

    def composite(self, frame: np.ndarray) -> np.ndarray:
        """Return a copy of a BGR ``frame`` with the drawn overlay pixels on top."""
        out = frame.copy()
        h = min(out.shape[0], self.height)
        w = min(out.shape[1], self.width)
        overlay = self._pixels[:h, :w]
        mask = overlay[..., 3] > 0
        out[:h, :w][mask] = overlay[..., :3][mask]
        return out

    def _stroke_bgra(self) -> tuple[int, int, int, int]:
        b, g, r = self.stroke_color
        return (int(b), int(g), int(r), 255)
