from dataclasses import dataclass
from enum import Enum


class FocusState(str, Enum):
    SHARP = "sharp"
    BLURRED = "blurred"


class LoopState(str, Enum):
    WAITING_FOR_SOURCE = "waiting_for_source"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class BoundingBox:
    """A single detector result in frame pixel coordinates."""

    x: float
    y: float
    width: float
    height: float
    label: str  # opaque class name, e.g. "cup"
    score: float = 1.0  # detector confidence, logged only


@dataclass
class Annotation:
    """One box's focus verdict for the current cycle; never carried over."""

    box: BoundingBox
    sharpness: float
    state: FocusState

    @property
    def in_focus(self) -> bool:
        return self.state is FocusState.SHARP
