"""
Webcam capture with an optional background thread holding the latest frame.

While the consumer is busy (e.g. blocked on the label prompt) the capture
thread keeps overwriting its single slot, so stale frames are dropped
rather than queued.
"""

import time
import threading
import logging

import cv2
import numpy as np

from gesturelab.core.errors import CameraError

logger = logging.getLogger(__name__)

_BACKENDS = {
    "v4l2": cv2.CAP_V4L2,
    "gstreamer": cv2.CAP_GSTREAMER,
    "auto": cv2.CAP_ANY,
}


class CameraManager:
    """Frame source with an explicit running flag."""

    def __init__(self, config: dict):
        self._device_id = config.get("device_id", 0)
        self._width = config.get("width", 640)
        self._height = config.get("height", 480)
        self._fps = config.get("fps", 30)
        self._backend = config.get("backend", "auto")
        self._flip_h = config.get("flip_horizontal", True)
        self._warmup_frames = config.get("warmup_frames", 5)
        self._threaded = config.get("threaded", True)

        self._cap = None
        self._frame = None
        self._frame_id = 0
        self._lock = threading.Lock()
        self._running = False
        self._thread = None

    def start(self):
        """Open the device and begin capturing.

        Raises:
            CameraError: if the device cannot be opened.
        """
        if self._running:
            return

        backend = _BACKENDS.get(self._backend, cv2.CAP_ANY)
        self._cap = cv2.VideoCapture(self._device_id, backend)
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            logger.error("Failed to open camera %d with backend %s", self._device_id, self._backend)
            raise CameraError(f"Could not open camera {self._device_id}")

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap.set(cv2.CAP_PROP_FPS, self._fps)

        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(
            "Camera opened: %dx%d (requested %dx%d @ %d)",
            actual_w, actual_h, self._width, self._height, self._fps,
        )

        # Warmup - let auto-exposure stabilize
        for _ in range(self._warmup_frames):
            self._cap.read()

        self._frame = None
        self._frame_id = 0
        self._running = True

        if self._threaded:
            self._thread = threading.Thread(target=self._capture_loop, daemon=True)
            self._thread.start()
            logger.info("Async capture started")

    def _grab(self, cap):
        ret, frame = cap.read()
        if not ret or frame is None:
            return None
        if self._flip_h:
            frame = cv2.flip(frame, 1)
        return frame

    def _capture_loop(self):
        """Background capture thread - always holds the latest frame."""
        while self._running:
            cap = self._cap
            if cap is None:
                break
            frame = self._grab(cap)
            if frame is not None:
                with self._lock:
                    self._frame = frame
                    self._frame_id += 1
            else:
                time.sleep(0.001)

    def read(self):
        """Get the latest frame.

        Returns:
            tuple: (frame_id, BGR ndarray) or (None, None) if no frame
        """
        if not self._running:
            return None, None

        if self._threaded:
            with self._lock:
                if self._frame is None:
                    return None, None
                frame, self._frame = self._frame, None
                return self._frame_id, frame

        frame = self._grab(self._cap)
        if frame is None:
            return None, None
        self._frame_id += 1
        return self._frame_id, frame

    def stop(self):
        """Stop capture and release the device."""
        if not self._running and self._cap is None:
            return
        self._running = False
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None
        if self._cap:
            self._cap.release()
            self._cap = None
        logger.info("Camera stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def resolution(self) -> tuple:
        return (self._width, self._height)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()


def blank_frame(width=640, height=480) -> np.ndarray:
    """Black BGR frame, shown while the camera is off."""
    return np.zeros((height, width, 3), dtype=np.uint8)
