"""
Gesture Lab - webcam hand-gesture recording and live recognition.

Usage:
    gesturelab                          # sequence classifier, default config
    gesturelab --strategy crop          # classify padded hand crops instead
    gesturelab --model models/x.pth     # load a specific checkpoint
    gesturelab --config my.yaml

Keys in the preview window:
    e  enable camera        d  disable camera
    r  toggle record/predict
    s  save dataset         i  dataset info       q  quit
"""

import time
import signal
import argparse
import logging

import cv2

from gesturelab import __version__
from gesturelab.capture.camera_manager import CameraManager, blank_frame
from gesturelab.core.events import EventBus, Events
from gesturelab.core.session import CaptureSession
from gesturelab.core.types import COORDS_PER_LANDMARK, Mode
from gesturelab.detection.hand_detector import HandDetector
from gesturelab.recognition.model_service import ModelService, build_label_table
from gesturelab.recognition.predictors import CropPredictor, build_predictor
from gesturelab.utils.config import Config
from gesturelab.utils.logger import GestureLogger, setup_logging
from gesturelab.utils.performance_monitor import PerformanceMonitor
from gesturelab.visualization.overlay import Overlay
from gesturelab.visualization.prompt import ConsoleLabelPrompt

logger = logging.getLogger(__name__)


class GestureLabApp:
    """Owns the camera, detector and session and runs the preview loop."""

    def __init__(self, config: Config, camera=None, detector=None, prompt=None):
        self._config = config
        self._running = False

        session_cfg = config.session
        frame_limit = session_cfg.get("frame_limit", 30)
        feature_length = session_cfg.get("num_landmarks", 21) * COORDS_PER_LANDMARK

        self._bus = EventBus()
        self._camera = camera or CameraManager(config.camera)
        self._detector = detector or HandDetector(config.mediapipe)
        self._overlay = Overlay(config.visualization)
        self._perf = PerformanceMonitor()
        self._gesture_logger = GestureLogger()

        model_cfg = config.model
        self._model_service = ModelService(
            labels=build_label_table(model_cfg, resolve=config.resolve_path),
            frame_limit=frame_limit,
            feature_length=feature_length,
            device=model_cfg.get("device", "auto"),
        )
        predictor_cfg = config.predictor
        self._predictor = build_predictor(
            predictor_cfg.get("strategy", "sequence"), self._model_service, predictor_cfg,
        )

        export_cfg = config.data_collection
        self._session = CaptureSession(
            source=self._camera,
            model_service=self._model_service,
            predictor=self._predictor,
            prompt=prompt or ConsoleLabelPrompt(),
            event_bus=self._bus,
            frame_limit=frame_limit,
            feature_length=feature_length,
            auto_predict=session_cfg.get("auto_predict", True),
            export_dir=config.resolve_path(export_cfg.get("output_dir", ".")),
            export_filename=export_cfg.get("filename", "gesture_dataset.json"),
        )

        self._bus.subscribe(Events.SAMPLE_RECORDED, self._on_sample_recorded)
        self._bus.subscribe(Events.GESTURE_PREDICTED, self._on_gesture_predicted)

        logger.info("GestureLabApp initialized (strategy=%s, frame_limit=%d)",
                    self._predictor.name, frame_limit)

    @property
    def session(self) -> CaptureSession:
        return self._session

    @property
    def gesture_logger(self) -> GestureLogger:
        return self._gesture_logger

    def _on_sample_recorded(self, label, frames, dataset_size, **kwargs):
        self._gesture_logger.log_sample(label, frames, dataset_size)

    def _on_gesture_predicted(self, prediction, **kwargs):
        self._gesture_logger.log_prediction(prediction.display_label,
                                            prediction.confidence, prediction.index)

    def load_model(self) -> bool:
        path = self._config.resolve_path(self._config.get("model.path"))
        return self._session.load_model(path)

    def handle_key(self, key: int) -> bool:
        """Dispatch a key press. Returns False when the app should quit."""
        if key == ord("q"):
            return False
        controls = self._session.controls
        if key == ord("e") and controls["enable"]:
            self._session.enable_capture()
        elif key == ord("d") and controls["disable"]:
            self._session.disable_capture()
        elif key == ord("r"):
            # toggle reports "camera off" itself
            self._session.toggle_capture_mode()
        elif key == ord("s") and controls["export"]:
            self._session.export_dataset()
        elif key == ord("i"):
            self._session.dataset.print_status()
        return True

    def build_state(self) -> dict:
        session = self._session
        crop_box = None
        if isinstance(self._predictor, CropPredictor) and session.mode is Mode.PREDICT:
            crop_box = self._predictor.last_box
        return {
            "mode": session.mode.value,
            "mode_text": session.mode_text,
            "gesture_text": session.gesture_text,
            "message": session.message,
            "record_progress": session.record_buffer.fill_ratio,
            "dataset_size": len(session.dataset),
            "fps": self._perf.fps,
            "crop_box": crop_box,
        }

    def step(self):
        """One loop iteration: read, detect, route, render. Returns the frame shown (or None)."""
        detection = None
        with self._perf.measure("capture"):
            frame_id, frame = self._camera.read()

        if frame is not None:
            with self._perf.measure("detection"):
                detection = self._detector.detect(frame, frame_id)
            with self._perf.measure("session"):
                self._session.on_results(detection)
            self._perf.tick()
        elif self._camera.is_running:
            return None
        else:
            w, h = self._camera.resolution
            frame = blank_frame(w, h)

        with self._perf.measure("render"):
            return self._overlay.render(frame, self.build_state(), detection, self._detector)

    def run(self, autostart: bool = False):
        """Main preview loop."""
        window_name = self._config.get("visualization.window_name", "Gesture Lab")
        show = self._config.get("visualization.enabled", True)

        self.load_model()
        if autostart:
            self._session.enable_capture()

        self._running = True
        logger.info("Starting main loop (press q to quit)")
        while self._running:
            with self._perf.measure("total"):
                display = self.step()
                if display is not None and show:
                    cv2.imshow(window_name, display)

            key = cv2.waitKey(1) & 0xFF
            if key != 0xFF and not self.handle_key(key):
                self._running = False
            if display is None:
                time.sleep(0.002)

        self.shutdown()

    def shutdown(self):
        logger.info("Shutting down...")
        self._running = False
        self._session.disable_capture()
        self._detector.close()
        cv2.destroyAllWindows()
        self._perf.print_report()
        self._session.dataset.print_status()
        logger.info("Shutdown complete.")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Gesture Lab - record and recognize hand gestures from a webcam"
    )
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    parser.add_argument("--camera", type=int, default=None, help="Camera device ID")
    parser.add_argument("--model", type=str, default=None, help="Path to model checkpoint")
    parser.add_argument("--labels", type=str, default=None, help="Path to labels JSON/YAML")
    parser.add_argument(
        "--strategy", choices=["sequence", "crop"], default=None,
        help="Prediction strategy",
    )
    parser.add_argument("--frame-limit", type=int, default=None,
                        help="Frames per gesture sequence")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="Directory for the exported dataset")
    parser.add_argument("--autostart", action="store_true",
                        help="Enable the camera immediately")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


_CLI_OVERRIDES = {
    "camera": "camera.device_id",
    "model": "model.path",
    "labels": "model.labels_file",
    "strategy": "predictor.strategy",
    "frame_limit": "session.frame_limit",
    "output_dir": "data_collection.output_dir",
    "log_level": "logging.level",
}


def apply_overrides(config: Config, args) -> Config:
    for attr, key_path in _CLI_OVERRIDES.items():
        value = getattr(args, attr, None)
        if value is not None:
            config.set(key_path, value)
    return config


def main(argv=None):
    args = parse_args(argv)

    config = Config()
    config.load(config_path=args.config)
    apply_overrides(config, args)

    log_cfg = config.get_section("logging")
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    logger.info("=" * 60)
    logger.info("  GESTURE LAB  v%s", __version__)
    logger.info("  Strategy: %s", config.get("predictor.strategy"))
    logger.info("=" * 60)

    app = GestureLabApp(config)

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    app.run(autostart=args.autostart)


if __name__ == "__main__":
    main()
