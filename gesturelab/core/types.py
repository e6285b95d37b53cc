"""
Shared domain types for the gesture capture/recognition tool.

Centralizes enums, data classes, and type definitions used across modules
to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

# MediaPipe Hands emits 21 points per hand
NUM_LANDMARKS = 21
COORDS_PER_LANDMARK = 3
FEATURE_LENGTH = NUM_LANDMARKS * COORDS_PER_LANDMARK

DEFAULT_FRAME_LIMIT = 30


# =============================================================================
# Modes
# =============================================================================

class Mode(Enum):
    """Capture session mode. Exactly one is active at a time."""
    DISABLED = "none"
    IDLE = "idle"
    RECORD = "record"
    PREDICT = "predict"

    @property
    def is_active(self) -> bool:
        """True when frames are being routed somewhere."""
        return self in (Mode.RECORD, Mode.PREDICT)

    @property
    def display_name(self) -> str:
        return self.value.upper()


# =============================================================================
# Landmarks
# =============================================================================

class Landmark(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height
    z: float  # Depth relative to wrist

    def to_pixel(self, width: int, height: int) -> Tuple[int, int]:
        return (int(self.x * width), int(self.y * height))


@dataclass
class HandLandmarks:
    """Detected landmarks of one hand, in detector order."""
    landmarks: List[Landmark]
    handedness: str = "unknown"
    score: float = 0.0

    def __len__(self):
        return len(self.landmarks)

    def __iter__(self):
        return iter(self.landmarks)

    def to_numpy(self) -> np.ndarray:
        """(N, 3) float32 array of x, y, z."""
        return np.array([[lm.x, lm.y, lm.z] for lm in self.landmarks], dtype=np.float32)


@dataclass
class DetectionResult:
    """Output of one detector invocation on one frame."""
    image: np.ndarray                                   # BGR frame
    hands: List[HandLandmarks] = field(default_factory=list)
    frame_id: int = 0
    raw_landmarks: list = field(default_factory=list)  # MediaPipe landmark lists, for drawing

    @property
    def primary_hand(self) -> Optional[HandLandmarks]:
        return self.hands[0] if self.hands else None

    @property
    def hand_count(self) -> int:
        return len(self.hands)

    @property
    def image_size(self) -> Tuple[int, int]:
        """(width, height) of the source frame."""
        h, w = self.image.shape[:2]
        return (w, h)


# =============================================================================
# Dataset / prediction containers
# =============================================================================

@dataclass(frozen=True)
class LabeledSample:
    """A labelled, full-length landmark sequence. Immutable once built."""
    label: str
    sequence: Tuple[Tuple[float, ...], ...]

    @classmethod
    def from_window(cls, label: str, window) -> "LabeledSample":
        return cls(label=label, sequence=tuple(tuple(float(v) for v in row) for row in window))

    @property
    def num_frames(self) -> int:
        return len(self.sequence)

    def to_dict(self) -> dict:
        return {"label": self.label, "sequence": [list(row) for row in self.sequence]}


class Prediction:
    """Classifier output for one inference call.

    Uses __slots__, created once per inference.
    """

    __slots__ = ("index", "label", "confidence")

    def __init__(self, index: int, label: Optional[str], confidence: Optional[float] = None):
        self.index = index
        self.label = label
        self.confidence = confidence

    @property
    def display_label(self) -> str:
        return self.label if self.label is not None else "undefined"

    def __repr__(self):
        if self.confidence is None:
            return f"Prediction({self.index}, {self.label!r})"
        return f"Prediction({self.index}, {self.label!r}, conf={self.confidence:.2f}%)"


class CropBox(NamedTuple):
    """Pixel-space crop rectangle (may be fractional)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0
