"""
Landmark conversion and feature preparation.

Turns MediaPipe hand results into HandLandmarks, flattens a hand into the
per-frame feature vector, and computes the padded hand crop used by the
image classifier.
"""

import logging
from typing import List, Sequence

import cv2
import numpy as np

from gesturelab.core.types import CropBox, HandLandmarks, Landmark

logger = logging.getLogger(__name__)

DEFAULT_PADDING_RATIO = 0.2
DEFAULT_CROP_SIZE = 224


def hands_from_results(results) -> List[HandLandmarks]:
    """Convert a MediaPipe Hands results object to HandLandmarks.

    Returns an empty list when nothing was detected.
    """
    if results is None or not getattr(results, "multi_hand_landmarks", None):
        return []

    handedness = getattr(results, "multi_handedness", None) or []
    hands = []
    for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
        label, score = "unknown", 0.0
        if i < len(handedness) and handedness[i].classification:
            cls = handedness[i].classification[0]
            label, score = cls.label, float(cls.score)
        points = [Landmark(lm.x, lm.y, lm.z) for lm in hand_landmarks.landmark]
        hands.append(HandLandmarks(landmarks=points, handedness=label, score=score))
    return hands


def flatten_landmarks(landmarks: Sequence[Landmark]) -> List[float]:
    """Flatten a hand into [x0, y0, z0, x1, y1, z1, ...] in detector order."""
    vec = []
    for pt in landmarks:
        vec.extend((float(pt.x), float(pt.y), float(pt.z)))
    return vec


def bounding_box(landmarks: Sequence[Landmark]):
    """Normalized (min_x, min_y, max_x, max_y) over a hand's landmarks.

    Seeded with min=1, max=0, so points outside [0, 1] only ever widen the
    box toward the image edge.
    """
    min_x, min_y, max_x, max_y = 1.0, 1.0, 0.0, 0.0
    for pt in landmarks:
        min_x = min(min_x, pt.x)
        min_y = min(min_y, pt.y)
        max_x = max(max_x, pt.x)
        max_y = max(max_y, pt.y)
    return min_x, min_y, max_x, max_y


def compute_crop_box(landmarks: Sequence[Landmark], img_width: int, img_height: int,
                     padding_ratio: float = DEFAULT_PADDING_RATIO) -> CropBox:
    """Padded, image-clamped pixel crop around a hand.

    The box grows by ``padding_ratio`` of its own size, half on each side.
    The result may have non-positive width or height; callers must check
    ``CropBox.is_valid`` before cropping.
    """
    min_x, min_y, max_x, max_y = bounding_box(landmarks)

    crop_x = min_x * img_width
    crop_y = min_y * img_height
    crop_w = (max_x - min_x) * img_width
    crop_h = (max_y - min_y) * img_height

    crop_x = max(0.0, crop_x - crop_w * padding_ratio / 2)
    crop_y = max(0.0, crop_y - crop_h * padding_ratio / 2)
    crop_w = min(img_width - crop_x, crop_w * (1 + padding_ratio))
    crop_h = min(img_height - crop_y, crop_h * (1 + padding_ratio))

    return CropBox(crop_x, crop_y, crop_w, crop_h)


def crop_and_resize(frame_bgr: np.ndarray, box: CropBox,
                    size: int = DEFAULT_CROP_SIZE) -> np.ndarray:
    """Crop a BGR frame, resample to size x size and normalize to [0, 1].

    Returns:
        float32 array of shape (1, 3, size, size), RGB channel order
    """
    if not box.is_valid:
        raise ValueError(f"Invalid crop box: {box}")

    h, w = frame_bgr.shape[:2]
    x0 = int(np.floor(box.x))
    y0 = int(np.floor(box.y))
    x1 = min(w, int(np.ceil(box.x + box.width)))
    y1 = min(h, int(np.ceil(box.y + box.height)))
    if x1 <= x0 or y1 <= y0:
        raise ValueError(f"Crop box {box} is empty for a {w}x{h} frame")

    region = frame_bgr[y0:y1, x0:x1]
    rgb = cv2.cvtColor(region, cv2.COLOR_BGR2RGB)
    resized = cv2.resize(rgb, (size, size), interpolation=cv2.INTER_LINEAR)
    tensor = resized.astype(np.float32) / 255.0
    return np.transpose(tensor, (2, 0, 1))[np.newaxis, ...]
