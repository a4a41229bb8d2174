"""Region sharpness scoring via local gradient energy.

For every pixel in a region the score adds ``|max(neighbor gray) - gray|``
over its 3×3 neighborhood, clipped to the region.  Uniform regions score
zero; textured, in-focus regions score high.  This is a cheap stand-in for
Laplacian variance that needs no separate convolution pass.
"""

import math

import numpy as np

from src.models import BoundingBox

# 3×3 window minus the center
_NEIGHBOR_OFFSETS = tuple(
    (dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0)
)


def _read_region(frame: np.ndarray, x: int, y: int, width: int, height: int) -> np.ndarray:
    """Copy a rectangle out of ``frame``; parts outside the frame read as 0."""
    h, w = frame.shape[:2]
    region = np.zeros((height, width) + frame.shape[2:], dtype=frame.dtype)

    x1, y1 = max(0, x), max(0, y)
    x2, y2 = min(w, x + width), min(h, y + height)
    if x2 > x1 and y2 > y1:
        region[y1 - y : y2 - y, x1 - x : x2 - x] = frame[y1:y2, x1:x2]
    return region


def _grayscale(region: np.ndarray) -> np.ndarray:
    """Mean of the first three channels; alpha is ignored."""
    if region.ndim == 2:
        return region.astype(np.float64)
    return region[..., :3].astype(np.float64).sum(axis=2) / 3.0


def estimate_sharpness(
    frame: np.ndarray, x: int, y: int, width: int, height: int
) -> float:
    """Return the gradient-energy sharpness of a rectangle of ``frame``.

    Args:
        frame: ``uint8`` image, ``(H, W)``, ``(H, W, 3)`` or ``(H, W, 4)``.
        x, y, width, height: Rectangle in frame pixels.  Callers should clamp
            it with :func:`clamp_region` first; pixels that still fall outside
            the frame are read as 0 rather than rejected.

    Returns:
        A non-negative float.  Zero-area rectangles score 0.
    """
    x, y, width, height = int(x), int(y), int(width), int(height)
    if width <= 0 or height <= 0:
        return 0.0

    gray = _grayscale(_read_region(frame, x, y, width, height))

    # Pad with -inf so neighbors outside the rectangle never win the max.
    padded = np.full((height + 2, width + 2), -np.inf)
    padded[1:-1, 1:-1] = gray

    neighbor_max = np.full((height, width), -np.inf)
    for dy, dx in _NEIGHBOR_OFFSETS:
        shifted = padded[1 + dy : 1 + dy + height, 1 + dx : 1 + dx + width]
        np.maximum(neighbor_max, shifted, out=neighbor_max)

    # A 1×1 region has no neighbors at all; such a pixel contributes nothing.
    has_neighbors = np.isfinite(neighbor_max)
    gradient = neighbor_max[has_neighbors] - gray[has_neighbors]
    return float(np.abs(gradient).sum())


def clamp_region(
    box: BoundingBox, frame_width: int, frame_height: int
) -> tuple[int, int, int, int]:
    """Clip a detector box to the frame as integer ``(x, y, width, height)``.

    Boxes entirely outside the frame, or with negative size, clamp to a
    zero-area rectangle.
    """
    x1 = min(max(0, math.floor(box.x)), frame_width)
    y1 = min(max(0, math.floor(box.y)), frame_height)
    x2 = min(max(0, math.floor(box.x + box.width)), frame_width)
    y2 = min(max(0, math.floor(box.y + box.height)), frame_height)
    return x1, y1, max(0, x2 - x1), max(0, y2 - y1)
