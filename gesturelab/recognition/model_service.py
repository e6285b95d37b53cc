"""
Label/Model Service
===================

Loads a trained PyTorch classifier and its label table, and exposes
argmax classification for landmark windows and hand crops.
"""

import os
import json
import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np
import torch
import yaml

from gesturelab.core.errors import ModelLoadError, ModelNotReadyError
from gesturelab.core.types import DEFAULT_FRAME_LIMIT, FEATURE_LENGTH, Prediction
from gesturelab.recognition.networks import load_checkpoint
from gesturelab.utils.logger import log_timing

logger = logging.getLogger(__name__)

DEFAULT_LABELS = ["Hello", "Yes", "No", "Thank You", "I Love You", "Other/None"]


class LabelTable:
    """Index-aligned class names for the model output."""

    def __init__(self, labels: Iterable[str]):
        self._labels = [str(label) for label in labels]

    @classmethod
    def from_file(cls, path) -> "LabelTable":
        """Load a JSON or YAML list of class names."""
        with open(path, "r") as f:
            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Label file {path} must contain a list, got {type(data).__name__}")
        logger.info("Loaded %d labels from %s", len(data), path)
        return cls(data)

    def lookup(self, index: int) -> Optional[str]:
        """Class name for an index, or None when the index is out of range."""
        if 0 <= index < len(self._labels):
            return self._labels[index]
        return None

    def check_width(self, output_width: int) -> bool:
        """Warn when the table cannot name every model output."""
        if len(self._labels) < output_width:
            logger.warning("Label table has %d entries but the model outputs %d classes",
                           len(self._labels), output_width)
            return False
        return True

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    def __len__(self):
        return len(self._labels)


def _resolve_device(device: str) -> str:
    if device == "auto":
        return "cuda" if torch.cuda.is_available() else "cpu"
    return device


class ModelService:
    """Wraps a loaded classifier. Inference is rejected until load() succeeds."""

    def __init__(self, labels: Optional[LabelTable] = None,
                 frame_limit: int = DEFAULT_FRAME_LIMIT,
                 feature_length: int = FEATURE_LENGTH,
                 device: str = "auto"):
        self._labels = labels or LabelTable(DEFAULT_LABELS)
        self._frame_limit = frame_limit
        self._feature_length = feature_length
        self._device = _resolve_device(device)
        self._model = None
        self._arch = None
        self._path = None
        self._width_checked = False

    @log_timing
    def load(self, path):
        """Load a checkpoint (.pth) or a TorchScript archive (.pt).

        Raises:
            ModelLoadError: if the file is missing or cannot be loaded.
        """
        if not path or not os.path.isfile(path):
            raise ModelLoadError(f"Model file not found: {path}")

        try:
            if path.endswith(".pt"):
                model = torch.jit.load(path, map_location=self._device)
                model.eval()
                arch, labels = "torchscript", None
            else:
                model, arch, labels = load_checkpoint(path, device=self._device)
        except Exception as e:
            raise ModelLoadError(f"Failed to load model {path}: {e}") from e

        self._model = model
        self._arch = arch
        self._path = path
        self._width_checked = False
        if labels:
            self._labels = LabelTable(labels)
            logger.info("Using %d labels stored in checkpoint", len(labels))
        logger.info("Model loaded from %s (arch=%s, device=%s)", path, arch, self._device)

    def unload(self):
        self._model = None
        self._arch = None

    @property
    def is_ready(self) -> bool:
        return self._model is not None

    @property
    def arch(self) -> Optional[str]:
        return self._arch

    @property
    def labels(self) -> LabelTable:
        return self._labels

    @property
    def frame_limit(self) -> int:
        return self._frame_limit

    @property
    def feature_length(self) -> int:
        return self._feature_length

    def predict(self, array: np.ndarray) -> np.ndarray:
        """Run the model and return the flat class-probability distribution."""
        if not self.is_ready:
            raise ModelNotReadyError("Model not loaded yet")

        tensor = torch.as_tensor(np.asarray(array, dtype=np.float32), device=self._device)
        with torch.no_grad():
            logits = self._model(tensor)
            probs = torch.softmax(logits, dim=-1)
        probs = probs.cpu().numpy().reshape(-1)
        if not self._width_checked:
            self._labels.check_width(probs.shape[0])
            self._width_checked = True
        return probs

    def classify_sequence(self, window: Sequence[Sequence[float]]) -> Prediction:
        """Classify a full landmark window shaped [frame_limit][feature_length]."""
        if len(window) != self._frame_limit:
            raise ValueError(f"Window has {len(window)} frames, expected {self._frame_limit}")
        for i, row in enumerate(window):
            if len(row) != self._feature_length:
                raise ValueError(
                    f"Frame {i} has {len(row)} values, expected {self._feature_length}"
                )

        array = np.asarray(window, dtype=np.float32).reshape(
            1, self._frame_limit, self._feature_length)
        probs = self.predict(array)
        index = int(np.argmax(probs))
        return Prediction(index, self._labels.lookup(index))

    def classify_image(self, tensor: np.ndarray) -> Prediction:
        """Classify a (1, 3, H, W) crop tensor; confidence is max-probability * 100."""
        tensor = np.asarray(tensor, dtype=np.float32)
        if tensor.ndim != 4 or tensor.shape[0] != 1 or tensor.shape[1] != 3:
            raise ValueError(f"Expected a (1, 3, H, W) tensor, got {tensor.shape}")

        probs = self.predict(tensor)
        index = int(np.argmax(probs))
        confidence = float(probs[index]) * 100.0
        return Prediction(index, self._labels.lookup(index), confidence)


def build_label_table(model_config: dict, resolve=lambda p: p) -> LabelTable:
    """Label table from config: inline list, then labels file, then defaults."""
    inline = model_config.get("labels")
    if inline:
        return LabelTable(inline)

    labels_file = model_config.get("labels_file")
    if labels_file:
        path = resolve(labels_file)
        try:
            return LabelTable.from_file(path)
        except FileNotFoundError:
            logger.warning("Labels file not found: %s, using defaults", path)
        except (ValueError, json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error("Failed to load labels from %s: %s", path, e)

    return LabelTable(DEFAULT_LABELS)
