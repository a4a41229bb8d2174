"""Threshold a sharpness score into a focus state and its overlay color."""

from typing import TYPE_CHECKING

from src.models import FocusState

if TYPE_CHECKING:
    from src.config import Settings

# Gradient-energy sum above which a region counts as in focus
SHARPNESS_THRESHOLD = 7500.0


def classify(score: float, threshold: float = SHARPNESS_THRESHOLD) -> FocusState:
    """Return SHARP if ``score`` is strictly above ``threshold``, else BLURRED."""
    if score > threshold:
        return FocusState.SHARP
    return FocusState.BLURRED


def focus_color(state: FocusState, settings: "Settings") -> tuple[int, int, int]:
    """BGR stroke color for a focus state; anything not SHARP is neutral."""
    if state is FocusState.SHARP:
        return settings.focused_color
    return settings.neutral_color
