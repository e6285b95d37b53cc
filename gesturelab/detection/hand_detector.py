"""
MediaPipe Hands wrapper.
"""

import logging

import cv2
import numpy as np
import mediapipe as mp

from gesturelab.core.types import DetectionResult
from gesturelab.detection.landmark_features import hands_from_results

logger = logging.getLogger(__name__)

_LANDMARK_COLOR = (0, 0, 255)     # red points (BGR)
_CONNECTION_COLOR = (0, 255, 0)   # green connectors


class HandDetector:
    """Runs MediaPipe Hands on BGR frames and returns DetectionResult objects."""

    def __init__(self, config: dict):
        self._model_complexity = config.get("model_complexity", 1)
        self._max_hands = config.get("max_num_hands", 2)
        self._min_detect_conf = config.get("min_detection_confidence", 0.7)
        self._min_track_conf = config.get("min_tracking_confidence", 0.5)

        self._mp_hands = mp.solutions.hands
        self._mp_drawing = mp.solutions.drawing_utils
        self._landmark_spec = self._mp_drawing.DrawingSpec(
            color=_LANDMARK_COLOR, thickness=2, circle_radius=3)
        self._connection_spec = self._mp_drawing.DrawingSpec(
            color=_CONNECTION_COLOR, thickness=4)

        self._hands = None
        self._initialized = False

    def initialize(self):
        """Initialize MediaPipe Hands solution."""
        self._hands = self._mp_hands.Hands(
            static_image_mode=False,
            model_complexity=self._model_complexity,
            max_num_hands=self._max_hands,
            min_detection_confidence=self._min_detect_conf,
            min_tracking_confidence=self._min_track_conf,
        )
        self._initialized = True
        logger.info(
            "MediaPipe Hands initialized (complexity=%d, max_hands=%d, "
            "detect_conf=%.2f, track_conf=%.2f)",
            self._model_complexity, self._max_hands,
            self._min_detect_conf, self._min_track_conf,
        )

    def detect(self, bgr_frame: np.ndarray, frame_id: int = 0) -> DetectionResult:
        """Run hand detection on a BGR frame."""
        if not self._initialized:
            self.initialize()

        rgb = cv2.cvtColor(bgr_frame, cv2.COLOR_BGR2RGB)
        # Set frame as non-writable for performance
        rgb.flags.writeable = False
        results = self._hands.process(rgb)

        return DetectionResult(image=bgr_frame, hands=hands_from_results(results),
                               frame_id=frame_id,
                               raw_landmarks=list(results.multi_hand_landmarks or []))

    def draw_landmarks(self, frame: np.ndarray, detection: DetectionResult) -> np.ndarray:
        """Draw every detected hand's points and connections on a BGR frame."""
        for hand_landmarks in detection.raw_landmarks:
            self._mp_drawing.draw_landmarks(
                frame,
                hand_landmarks,
                self._mp_hands.HAND_CONNECTIONS,
                self._landmark_spec,
                self._connection_spec,
            )
        return frame

    def close(self):
        """Release MediaPipe resources."""
        if self._hands:
            self._hands.close()
            self._hands = None
            self._initialized = False
            logger.info("MediaPipe Hands closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
