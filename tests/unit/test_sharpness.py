"""Unit tests for src/video/sharpness.py."""

import numpy as np
import pytest

from src.models import BoundingBox
from src.video.sharpness import clamp_region, estimate_sharpness


def _gray_frame(values) -> np.ndarray:
    """Build a BGR frame whose per-pixel gray level equals ``values``."""
    gray = np.array(values, dtype=np.uint8)
    return np.repeat(gray[:, :, None], 3, axis=2)


def _solid_frame(h: int = 100, w: int = 100, value: int = 128) -> np.ndarray:
    return np.full((h, w, 3), value, dtype=np.uint8)


def _checkerboard_frame(h: int = 100, w: int = 100) -> np.ndarray:
    frame = np.zeros((h, w, 3), dtype=np.uint8)
    rows = np.arange(h)
    cols = np.arange(w)
    mask = (rows[:, None] + cols[None, :]) % 2 == 0
    frame[mask] = 255
    return frame


_SPIKE = [[10, 10, 10], [10, 50, 10], [10, 10, 10]]


def test_solid_region_is_zero():
    assert estimate_sharpness(_solid_frame(), 0, 0, 100, 100) == 0.0


@pytest.mark.parametrize("value", [0, 77, 255])
def test_solid_region_is_zero_at_any_level(value):
    assert estimate_sharpness(_solid_frame(value=value), 10, 10, 30, 20) == 0.0


def test_returns_float():
    assert isinstance(estimate_sharpness(_solid_frame(), 0, 0, 10, 10), float)


def test_spike_golden_value():
    # Center: max(10) - 50 -> 40.  Every other pixel neighbors the center:
    # 50 - 10 -> 40.  Nine pixels at 40 each.
    assert estimate_sharpness(_gray_frame(_SPIKE), 0, 0, 3, 3) == 360.0


def test_gradient_golden_value_with_edge_clipping():
    # Neighbors outside the 2×3 region are omitted, not zero and not wrapped.
    #   (0,0): 120-0    (0,1): 150-30   (0,2): 150-60
    #   (1,0): 120-90   (1,1): 150-120  (1,2): |120-150|
    frame = _gray_frame([[0, 30, 60], [90, 120, 150]])
    assert estimate_sharpness(frame, 0, 0, 3, 2) == 420.0


def test_neighbors_outside_region_are_ignored():
    frame = np.full((9, 9, 3), 255, dtype=np.uint8)
    frame[3:6, 3:6] = _gray_frame(_SPIKE)
    assert estimate_sharpness(frame, 3, 3, 3, 3) == 360.0


def test_grayscale_frame():
    frame = np.array(_SPIKE, dtype=np.uint8)
    assert estimate_sharpness(frame, 0, 0, 3, 3) == 360.0


def test_gray_is_channel_mean():
    # Gray levels 10 and 20 from unequal channels: |20 - 10| for both pixels.
    frame = np.array([[[0, 0, 30], [60, 0, 0]]], dtype=np.uint8)
    assert estimate_sharpness(frame, 0, 0, 2, 1) == pytest.approx(20.0)


def test_alpha_channel_is_ignored():
    frame = np.full((20, 20, 4), 90, dtype=np.uint8)
    frame[..., 3] = np.random.default_rng(0).integers(0, 256, size=(20, 20))
    assert estimate_sharpness(frame, 0, 0, 20, 20) == 0.0


@pytest.mark.parametrize("w,h", [(0, 10), (10, 0), (0, 0), (-5, 10), (10, -3)])
def test_degenerate_region_is_zero(w, h):
    assert estimate_sharpness(_checkerboard_frame(), 5, 5, w, h) == 0.0


def test_single_pixel_region_is_zero():
    assert estimate_sharpness(_checkerboard_frame(), 4, 4, 1, 1) == 0.0


def test_pixels_outside_frame_read_as_zero():
    frame = _solid_frame(h=2, w=2, value=100)
    # Second pixel of the 2×1 region is off the right edge: gray 100 vs 0.
    assert estimate_sharpness(frame, 1, 0, 2, 1) == 200.0


def test_checkerboard_is_sharp():
    # Diagonal neighbors share a color, so only dark pixels contribute 255.
    assert estimate_sharpness(_checkerboard_frame(), 0, 0, 100, 100) == 255.0 * 5000


def test_non_negative_and_deterministic():
    frame = np.random.default_rng(42).integers(0, 256, size=(60, 80, 3), dtype=np.uint8)
    first = estimate_sharpness(frame, 7, 3, 50, 40)
    second = estimate_sharpness(frame.copy(), 7, 3, 50, 40)
    assert first >= 0.0
    assert first == second


def test_does_not_mutate_frame():
    frame = _checkerboard_frame(h=20, w=20)
    before = frame.copy()
    estimate_sharpness(frame, -5, -5, 30, 30)
    assert np.array_equal(frame, before)


# ---------------------------------------------------------------------------
# clamp_region
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "box,expected",
    [
        (BoundingBox(10.7, 20.2, 30.5, 40.9, "cup"), (10, 20, 31, 41)),
        (BoundingBox(-5, -5, 20, 20, "cup"), (0, 0, 15, 15)),
        (BoundingBox(90, 90, 20, 20, "cup"), (90, 90, 10, 10)),
        (BoundingBox(150, 150, 10, 10, "cup"), (100, 100, 0, 0)),
        (BoundingBox(10, 10, -5, -5, "cup"), (10, 10, 0, 0)),
    ],
)
def test_clamp_region(box, expected):
    assert clamp_region(box, 100, 100) == expected
