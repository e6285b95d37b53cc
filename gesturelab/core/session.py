"""
Capture session: mode state machine, record/predict routing and dataset.

All mutable state the UI cares about (mode, buffers, dataset, status text)
lives on one CaptureSession owned by the application loop. Frame results
and user commands are handled on that loop's thread only.
"""

import logging
from typing import Callable, Optional

from gesturelab.core.errors import EmptyDatasetError, ModelLoadError
from gesturelab.core.events import EventBus, Events
from gesturelab.core.types import (
    DEFAULT_FRAME_LIMIT,
    FEATURE_LENGTH,
    DetectionResult,
    HandLandmarks,
    LabeledSample,
    Mode,
)
from gesturelab.data.dataset import DEFAULT_EXPORT_FILENAME, Dataset
from gesturelab.detection.landmark_features import flatten_landmarks
from gesturelab.recognition.model_service import ModelService
from gesturelab.recognition.predictors import Predictor
from gesturelab.recognition.sequence_buffer import RecordBuffer

logger = logging.getLogger(__name__)

LABEL_PROMPT = "Enter a label for this gesture:"
CAMERA_OFF_MESSAGE = "Turn on the camera first!"

# Mode reached by the toggle command from each mode
_TOGGLE_TARGET = {
    Mode.IDLE: Mode.RECORD,
    Mode.RECORD: Mode.PREDICT,
    Mode.PREDICT: Mode.RECORD,
}


class ModeController:
    """Holds the current Mode and enforces transition preconditions.

    Every mode other than DISABLED needs an active frame source. A refused
    request is a silent no-op.
    """

    def __init__(self, source_active: Callable[[], bool], event_bus: Optional[EventBus] = None):
        self._source_active = source_active
        self._bus = event_bus or EventBus()
        self._mode = Mode.DISABLED
        self._listeners = []

    @property
    def mode(self) -> Mode:
        return self._mode

    def on_transition(self, callback: Callable[[Mode, Mode], None]):
        """Register callback(previous, current), run synchronously on each transition."""
        self._listeners.append(callback)

    def can_enter(self, requested: Mode) -> bool:
        if requested is Mode.DISABLED:
            return True
        return self._source_active()

    def set_mode(self, requested: Mode) -> bool:
        """Switch to ``requested``. Returns True only if a transition happened."""
        if requested is self._mode:
            return False
        if not self.can_enter(requested):
            logger.debug("Refused mode change %s -> %s (frame source inactive)",
                         self._mode.name, requested.name)
            return False

        previous, self._mode = self._mode, requested
        logger.info("Mode: %s -> %s", previous.display_name, requested.display_name)
        for callback in self._listeners:
            callback(previous, requested)
        self._bus.emit(Events.MODE_CHANGED, previous=previous, mode=requested)
        return True

    def toggle(self) -> bool:
        """IDLE -> RECORD, RECORD <-> PREDICT. No-op when DISABLED."""
        target = _TOGGLE_TARGET.get(self._mode)
        if target is None:
            return False
        return self.set_mode(target)


class CaptureSession:
    """Routes detection results by mode and implements the user commands.

    Args:
        source: frame source with start(), stop() and an ``is_running`` flag
        model_service: classifier wrapper (may be unloaded)
        predictor: predict-mode strategy
        prompt: callable(message) -> str or None; None means cancelled
    """

    def __init__(self, source, model_service: ModelService, predictor: Predictor,
                 prompt: Callable[[str], Optional[str]],
                 dataset: Optional[Dataset] = None,
                 event_bus: Optional[EventBus] = None,
                 frame_limit: int = DEFAULT_FRAME_LIMIT,
                 feature_length: int = FEATURE_LENGTH,
                 auto_predict: bool = True,
                 export_dir: str = ".",
                 export_filename: str = DEFAULT_EXPORT_FILENAME):
        self._source = source
        self._model = model_service
        self._predictor = predictor
        self._prompt = prompt
        self._dataset = dataset if dataset is not None else Dataset()
        self._bus = event_bus or EventBus()
        self._auto_predict = auto_predict
        self._export_dir = export_dir
        self._export_filename = export_filename

        self._record = RecordBuffer(capacity=frame_limit, feature_length=feature_length)

        self._modes = ModeController(lambda: self._source.is_running, self._bus)
        self._modes.on_transition(self._on_transition)

        self._mode_text = "MODE: NONE"
        self._gesture_text = "GESTURE: "
        self._message = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._modes.mode

    @property
    def mode_text(self) -> str:
        return self._mode_text

    @property
    def gesture_text(self) -> str:
        return self._gesture_text

    @property
    def message(self) -> Optional[str]:
        """Last user-facing alert (e.g. empty dataset)."""
        return self._message

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def record_buffer(self) -> RecordBuffer:
        return self._record

    @property
    def predictor(self) -> Predictor:
        return self._predictor

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def controls(self) -> dict:
        """Which commands are currently available."""
        running = self._source.is_running
        return {
            "enable": not running,
            "disable": running,
            "toggle": running,
            "export": running,
        }

    def _set_status(self, mode_text=None, gesture_text=None):
        if mode_text is not None:
            self._mode_text = mode_text
        if gesture_text is not None:
            self._gesture_text = gesture_text
        self._bus.emit(Events.STATUS_CHANGED,
                       mode_text=self._mode_text, gesture_text=self._gesture_text)

    def _alert(self, message: str):
        self._message = message
        logger.warning(message)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def load_model(self, path) -> bool:
        """Load the classifier; on failure predict mode reports the model as unavailable."""
        try:
            self._model.load(path)
        except ModelLoadError as e:
            logger.error("Model failed to load: %s", e)
            self._set_status("MODE: ERROR", f"GESTURE: Error: {e}")
            self._bus.emit(Events.MODEL_ERROR, error=str(e))
            return False
        self._bus.emit(Events.MODEL_LOADED, path=path)
        return True

    def enable_capture(self) -> bool:
        """Start the frame source; enters IDLE (then PREDICT when auto_predict)."""
        if self._source.is_running:
            return False
        try:
            self._source.start()
        except Exception as e:
            logger.error("Failed to start webcam: %s", e)
            self._set_status("MODE: ERROR", f"GESTURE: Error: {e}")
            self._bus.emit(Events.CAMERA_ERROR, error=str(e))
            return False

        logger.info("Webcam started.")
        self._bus.emit(Events.CAMERA_STARTED)
        self._modes.set_mode(Mode.IDLE)
        if self._auto_predict:
            self._modes.set_mode(Mode.PREDICT)
        return True

    def disable_capture(self) -> bool:
        """Stop the frame source and drop any partial windows."""
        if not self._source.is_running:
            return False
        try:
            self._source.stop()
        except Exception as e:
            logger.error("Failed to stop webcam: %s", e)
            self._set_status("MODE: ERROR", f"GESTURE: Error: {e}")
            self._bus.emit(Events.CAMERA_ERROR, error=str(e))
            return False

        logger.info("Webcam stopped.")
        self._bus.emit(Events.CAMERA_STOPPED)
        self._modes.set_mode(Mode.DISABLED)
        return True

    def toggle_capture_mode(self) -> bool:
        """Switch between record and predict."""
        if not self._source.is_running:
            self._alert(CAMERA_OFF_MESSAGE)
            return False
        return self._modes.toggle()

    def set_mode(self, mode: Mode) -> bool:
        return self._modes.set_mode(mode)

    def export_dataset(self) -> Optional[str]:
        """Write the dataset to disk. Returns the path, or None if nothing was written."""
        if not self._source.is_running:
            return None
        try:
            path = self._dataset.export(self._export_dir, self._export_filename)
        except EmptyDatasetError as e:
            self._alert(str(e))
            return None
        except OSError as e:
            logger.error("Dataset export failed: %s", e)
            self._alert(f"Export failed: {e}")
            return None

        self._message = f"Dataset saved to {path}"
        logger.info("Dataset downloaded successfully.")
        self._bus.emit(Events.DATASET_EXPORTED, path=path, samples=len(self._dataset))
        return path

    # ------------------------------------------------------------------
    # Frame handling
    # ------------------------------------------------------------------

    def on_results(self, detection: DetectionResult):
        """Handle one frame's detection result. Runs to completion before the next."""
        mode = self._modes.mode

        if mode is Mode.RECORD:
            hand = detection.primary_hand
            if hand is not None:
                self._capture_frame(hand)
        elif mode is Mode.PREDICT:
            previous = self._predictor.last_prediction
            prediction = self._predictor.update(detection)
            if prediction is not None and (previous is None or previous.label != prediction.label):
                self._bus.emit(Events.GESTURE_PREDICTED, prediction=prediction)
            if self._predictor.status != self._gesture_text:
                self._set_status(gesture_text=self._predictor.status)

    def _capture_frame(self, hand: HandLandmarks):
        window = self._record.push(flatten_landmarks(hand.landmarks))
        if window is not None:
            self._flush(window)

    def _flush(self, window):
        """Ask for a label and store the full window. Blocks until answered."""
        response = self._prompt(LABEL_PROMPT)
        if response is None:
            logger.warning("Label prompt cancelled; discarding %d-frame sequence", len(window))
            self._bus.emit(Events.SAMPLE_DISCARDED, frames=len(window))
            return

        label = str(response).upper()
        self._dataset.append(LabeledSample.from_window(label, window))
        self._bus.emit(Events.SAMPLE_RECORDED, label=label, frames=len(window),
                       dataset_size=len(self._dataset))

    def _on_transition(self, previous: Mode, current: Mode):
        # Alerts only describe the state they were raised in
        self._message = None
        # Partial windows never carry across modes
        if previous is Mode.RECORD:
            self._record.clear()
        if previous is Mode.PREDICT:
            self._predictor.reset()

        gesture_text = None
        if current is Mode.PREDICT:
            gesture_text = self._predictor.status
        elif current is Mode.RECORD:
            gesture_text = "GESTURE: Recording..."
        elif current is Mode.DISABLED:
            gesture_text = "GESTURE: "
        self._set_status(f"MODE: {current.display_name}", gesture_text)
