"""
On-frame overlay: hand landmarks, status bar, record progress and key help.
"""

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

_KEY_HELP = "e=enable  d=disable  r=record/predict  s=save  i=info  q=quit"


class Overlay:
    """Renders session status on top of the camera frame."""

    def __init__(self, config: dict):
        self._show_landmarks = config.get("show_landmarks", True)
        self._show_fps = config.get("show_fps", True)

        colors = config.get("colors", {})
        self._color_text = tuple(colors.get("text", [255, 255, 255]))
        self._color_record = tuple(colors.get("record", [0, 0, 255]))
        self._color_predict = tuple(colors.get("predict", [0, 255, 0]))
        self._color_message = tuple(colors.get("message", [0, 200, 255]))
        self._color_bbox = tuple(colors.get("bbox", [0, 255, 255]))

        self._bar_height = config.get("bar_height", 70)
        self._bar_opacity = config.get("bar_opacity", 0.7)

    def render(self, frame: np.ndarray, state: dict, detection=None, detector=None) -> np.ndarray:
        """Draw the overlay.

        Args:
            frame: BGR frame to draw on
            state: dict with mode, mode_text, gesture_text, message,
                   record_progress (0-1), dataset_size, fps, crop_box
            detection: optional DetectionResult for landmark drawing
            detector: HandDetector used to draw landmarks
        """
        h, w = frame.shape[:2]

        if self._show_landmarks and detection is not None and detector is not None:
            detector.draw_landmarks(frame, detection)

        if state.get("crop_box") is not None:
            self._draw_box(frame, state["crop_box"])

        self._draw_status_bar(frame, w, state)

        if state.get("mode") == "record":
            self._draw_record_progress(frame, w, h, state.get("record_progress", 0.0))

        if state.get("message"):
            cv2.putText(frame, state["message"], (15, self._bar_height + 30),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, self._color_message, 2)

        cv2.putText(frame, _KEY_HELP, (10, h - 10),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.4, (180, 180, 180), 1)
        return frame

    def _draw_status_bar(self, frame, w, state):
        overlay = frame.copy()
        cv2.rectangle(overlay, (0, 0), (w, self._bar_height), (20, 20, 20), -1)
        cv2.addWeighted(overlay, self._bar_opacity, frame, 1 - self._bar_opacity, 0, frame)

        mode = state.get("mode", "none")
        if mode == "record":
            mode_color = self._color_record
        elif mode == "predict":
            mode_color = self._color_predict
        else:
            mode_color = self._color_text

        cv2.putText(frame, state.get("mode_text", ""), (15, 28),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, mode_color, 2)
        cv2.putText(frame, state.get("gesture_text", ""), (15, 58),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, self._color_text, 2)

        cv2.putText(frame, f"Samples: {state.get('dataset_size', 0)}", (w - 170, 28),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, self._color_text, 1)
        if self._show_fps:
            cv2.putText(frame, f"FPS: {state.get('fps', 0.0):.1f}", (w - 170, 58),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, self._color_text, 1)

    def _draw_record_progress(self, frame, w, h, progress):
        bar_w = min(300, w - 40)
        bar_h = 14
        x = (w - bar_w) // 2
        y = h - 40
        cv2.rectangle(frame, (x, y), (x + bar_w, y + bar_h), (60, 60, 60), -1)
        cv2.rectangle(frame, (x, y), (x + int(progress * bar_w), y + bar_h), self._color_record, -1)
        cv2.rectangle(frame, (x, y), (x + bar_w, y + bar_h), (255, 255, 255), 1)

    def _draw_box(self, frame, box):
        x, y, bw, bh = (int(round(v)) for v in box)
        cv2.rectangle(frame, (x, y), (x + bw, y + bh), self._color_bbox, 2)
