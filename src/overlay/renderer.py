"""Draws focus annotations: a box outline plus four L-shaped corner brackets.

Each bracket's corner sits ``corner_gap`` px diagonally outside the matching
box corner, with both arms ``corner_size`` px long pointing back toward the
box.  Outline and brackets share one color, chosen by focus state.
"""

import logging
from collections.abc import Iterable

from src.config import Settings
from src.models import Annotation, BoundingBox
from src.overlay.canvas import Canvas, Point
from src.video.focus import focus_color

logger = logging.getLogger(__name__)


def corner_brackets(box: BoundingBox, size: float, gap: float) -> list[list[Point]]:
    """Return the four 3-point bracket paths for ``box``.

    Order: top-left, top-right, bottom-right, bottom-left.
    """
    left = box.x - gap
    top = box.y - gap
    right = box.x + box.width + gap
    bottom = box.y + box.height + gap
    return [
        [(left, top + size), (left, top), (left + size, top)],
        [(right, top + size), (right, top), (right - size, top)],
        [(right, bottom - size), (right, bottom), (right - size, bottom)],
        [(left + size, bottom), (left, bottom), (left, bottom - size)],
    ]


class AnnotationRenderer:
    """Repaints the overlay with one annotation per non-excluded detection."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._excluded = frozenset(settings.excluded_labels)

    def is_excluded(self, label: str) -> bool:
        return label in self._excluded

    def render(self, canvas: Canvas, annotations: Iterable[Annotation]) -> int:
        """Clear ``canvas`` and draw every annotation whose label is not excluded.

        Returns:
            The number of annotations drawn.
        """
        settings = self._settings
        canvas.clear()
        canvas.line_width = settings.line_width

        drawn = 0
        for annotation in annotations:
            box = annotation.box
            if self.is_excluded(box.label):
                continue

            canvas.stroke_color = focus_color(annotation.state, settings)
            canvas.stroke_rect(box.x, box.y, box.width, box.height)
            for path in corner_brackets(box, settings.corner_size, settings.corner_gap):
                canvas.stroke_path(path)

            logger.debug(
                "Annotated %s — sharpness=%.1f state=%s",
                box.label,
                annotation.sharpness,
                annotation.state.value,
            )
            drawn += 1
        return drawn
