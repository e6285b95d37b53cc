"""
Predictor strategies for predict mode.

Both strategies consume one DetectionResult per frame, call the model
service when they have a complete input, and keep the gesture text shown
to the user. Selected by ``predictor.strategy`` in the config.
"""

import logging
from typing import Optional

from gesturelab.core.types import DetectionResult, Prediction
from gesturelab.detection.landmark_features import (
    DEFAULT_CROP_SIZE,
    DEFAULT_PADDING_RATIO,
    compute_crop_box,
    crop_and_resize,
    flatten_landmarks,
)
from gesturelab.recognition.model_service import ModelService
from gesturelab.recognition.sequence_buffer import PredictBuffer

logger = logging.getLogger(__name__)

MODEL_NOT_READY_TEXT = "GESTURE: Model not loaded yet."
NO_HAND_TEXT = "GESTURE: No hand detected."
CANNOT_CROP_TEXT = "GESTURE: Hand detected but cannot crop."
WAITING_TEXT = "GESTURE: Waiting for hand..."


class Predictor:
    """Base class: per-frame update plus the current gesture text."""

    name = "base"

    def __init__(self, model_service: ModelService):
        self._model = model_service
        self._status = WAITING_TEXT
        self._last_prediction: Optional[Prediction] = None

    def update(self, detection: DetectionResult) -> Optional[Prediction]:
        """Process one frame. Returns a Prediction when inference ran."""
        raise NotImplementedError

    def reset(self):
        self._status = WAITING_TEXT
        self._last_prediction = None

    @property
    def status(self) -> str:
        if not self._model.is_ready:
            return MODEL_NOT_READY_TEXT
        return self._status

    @property
    def last_prediction(self) -> Optional[Prediction]:
        return self._last_prediction


class SequencePredictor(Predictor):
    """Sliding window of landmark vectors classified on every full frame."""

    name = "sequence"

    def __init__(self, model_service: ModelService, capacity=None, feature_length=None):
        super().__init__(model_service)
        self._buffer = PredictBuffer(
            capacity=capacity or model_service.frame_limit,
            feature_length=feature_length or model_service.feature_length,
        )
        self._current_label = ""

    @property
    def buffer(self) -> PredictBuffer:
        return self._buffer

    def update(self, detection: DetectionResult) -> Optional[Prediction]:
        hand = detection.primary_hand
        if hand is None:
            # Gap in the window, not a zero-filled frame
            return None

        window = self._buffer.push(flatten_landmarks(hand.landmarks))
        if not self._model.is_ready:
            # Frames are still buffered while no model is loaded
            return None

        if window is None:
            if self._last_prediction is None:
                self._status = "GESTURE: Collecting frames ({}/{})".format(
                    len(self._buffer), self._buffer.capacity)
            return None

        try:
            prediction = self._model.classify_sequence(window)
        except Exception as e:
            logger.error("Prediction failed: %s", e)
            return None

        if prediction.display_label != self._current_label:
            self._current_label = prediction.display_label
            logger.debug("Predicted: %s", self._current_label)

        self._last_prediction = prediction
        self._status = f"GESTURE: {self._current_label}"
        return prediction

    def reset(self):
        super().reset()
        self._buffer.clear()
        self._current_label = ""


class CropPredictor(Predictor):
    """Classifies a padded crop around the first hand, frame by frame."""

    name = "crop"

    def __init__(self, model_service: ModelService,
                 padding_ratio=DEFAULT_PADDING_RATIO, crop_size=DEFAULT_CROP_SIZE):
        super().__init__(model_service)
        self._padding_ratio = padding_ratio
        self._crop_size = crop_size
        self._last_box = None

    @property
    def last_box(self):
        """Crop box used for the most recent frame (None if skipped)."""
        return self._last_box

    def update(self, detection: DetectionResult) -> Optional[Prediction]:
        self._last_box = None
        hand = detection.primary_hand

        if not self._model.is_ready:
            self._status = MODEL_NOT_READY_TEXT
            return None
        if hand is None:
            self._status = NO_HAND_TEXT
            return None

        img_w, img_h = detection.image_size
        box = compute_crop_box(hand.landmarks, img_w, img_h, self._padding_ratio)
        if not box.is_valid:
            logger.warning("Invalid hand bounding box dimensions %s. Skipping prediction.", box)
            self._status = CANNOT_CROP_TEXT
            return None

        try:
            tensor = crop_and_resize(detection.image, box, self._crop_size)
            prediction = self._model.classify_image(tensor)
        except Exception as e:
            logger.error("Prediction failed: %s", e)
            return None

        self._last_box = box
        self._last_prediction = prediction
        self._status = "GESTURE: {} ({:.2f}%)".format(prediction.display_label, prediction.confidence)
        return prediction

    def reset(self):
        super().reset()
        self._last_box = None


_STRATEGIES = {
    SequencePredictor.name: SequencePredictor,
    CropPredictor.name: CropPredictor,
}


def build_predictor(strategy: str, model_service: ModelService, config: dict = None) -> Predictor:
    """Create the predictor named by ``strategy`` ('sequence' or 'crop')."""
    config = config or {}
    if strategy not in _STRATEGIES:
        raise ValueError(f"Unknown predictor strategy '{strategy}', "
                         f"expected one of {sorted(_STRATEGIES)}")
    if strategy == CropPredictor.name:
        return CropPredictor(
            model_service,
            padding_ratio=config.get("padding_ratio", DEFAULT_PADDING_RATIO),
            crop_size=config.get("crop_size", DEFAULT_CROP_SIZE),
        )
    return SequencePredictor(model_service)
