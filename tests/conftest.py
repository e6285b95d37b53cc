"""
Shared fixtures and mock builders for the test suite.
"""

import numpy as np
import pytest
import torch

from gesturelab.core.types import DetectionResult, HandLandmarks, Landmark
from gesturelab.recognition.model_service import LabelTable, ModelService
from gesturelab.recognition.networks import (
    CROP_ARCH,
    SEQUENCE_ARCH,
    CropNet,
    SequenceNet,
    save_checkpoint,
)

LABELS = ["Hello", "Yes", "No", "Thank You", "I Love You", "Other/None"]


def create_mock_hand(num_points=21, origin=(0.4, 0.3), step=0.01, handedness="Right"):
    """Hand whose point i sits at (origin + i*step, origin + i*step, -i/1000)."""
    ox, oy = origin
    points = [
        Landmark(x=ox + i * step, y=oy + i * step, z=-i / 1000.0)
        for i in range(num_points)
    ]
    return HandLandmarks(landmarks=points, handedness=handedness, score=0.9)


def create_detection(hands=None, width=640, height=480, frame_id=0):
    image = np.zeros((height, width, 3), dtype=np.uint8)
    return DetectionResult(image=image, hands=list(hands or []), frame_id=frame_id)


class FakeSource:
    """Frame source stand-in with the same start/stop/is_running contract."""

    def __init__(self, fail_start=False):
        self.fail_start = fail_start
        self._running = False
        self.start_calls = 0

    def start(self):
        self.start_calls += 1
        if self.fail_start:
            raise RuntimeError("Permission denied")
        self._running = True

    def stop(self):
        self._running = False

    @property
    def is_running(self):
        return self._running


class ScriptedPrompt:
    """Returns queued responses in order and records every question."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.calls = []

    def __call__(self, message):
        self.calls.append(message)
        if self._responses:
            return self._responses.pop(0)
        return "gesture"


def _force_winner(model, winner):
    with torch.no_grad():
        model.classifier.weight.zero_()
        model.classifier.bias.zero_()
        model.classifier.bias[winner] = 10.0


def write_sequence_model(path, num_classes=len(LABELS), winner=0, labels=None):
    """Save a SequenceNet that always predicts ``winner``."""
    model = SequenceNet(num_classes=num_classes)
    _force_winner(model, winner)
    save_checkpoint(model, str(path), SEQUENCE_ARCH, labels=labels)
    return str(path)


def write_crop_model(path, num_classes=len(LABELS), winner=0):
    """Save a CropNet that always predicts ``winner``."""
    model = CropNet(num_classes=num_classes)
    _force_winner(model, winner)
    save_checkpoint(model, str(path), CROP_ARCH)
    return str(path)


@pytest.fixture
def labels():
    return LabelTable(LABELS)


@pytest.fixture
def model_service(labels):
    """Unloaded model service with a short window."""
    return ModelService(labels=labels, frame_limit=5, device="cpu")


@pytest.fixture
def sequence_model_path(tmp_path):
    return write_sequence_model(tmp_path / "sequence.pth", winner=1)


@pytest.fixture
def crop_model_path(tmp_path):
    return write_crop_model(tmp_path / "crop.pth", winner=4)
