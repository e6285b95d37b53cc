"""
Logging setup plus a small event logger for predictions and recorded samples.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Remove existing handlers
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class GestureLogger:
    """Keeps a history of predicted gestures and recorded samples."""

    def __init__(self, max_history=500):
        self.logger = logging.getLogger("gesture_events")
        self._history = []
        self._max_history = max_history

    def _append(self, entry):
        self._history.append(entry)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    def log_prediction(self, label, confidence=None, index=None):
        """Log a prediction that changed the displayed gesture."""
        self._append({
            "timestamp": time.time(),
            "event": "prediction",
            "label": label,
            "index": index,
            "confidence": confidence,
        })
        self.logger.info(
            "Predicted: %-15s | Index: %s | Confidence: %s",
            label,
            index,
            f"{confidence:.2f}%" if confidence is not None else "N/A",
        )

    def log_sample(self, label, frames, dataset_size):
        """Log a labelled sequence appended to the dataset."""
        self._append({
            "timestamp": time.time(),
            "event": "sample",
            "label": label,
            "frames": frames,
        })
        self.logger.info(
            "Saved sequence for label: %r (%d frames, %d samples total)",
            label, frames, dataset_size,
        )

    def get_history(self, last_n=None):
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def total_predictions(self):
        return sum(1 for e in self._history if e["event"] == "prediction")

    @property
    def total_samples(self):
        return sum(1 for e in self._history if e["event"] == "sample")


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
