"""
Tests for landmark conversion, flattening and hand cropping
============================================================
"""

from types import SimpleNamespace

import numpy as np
import pytest

from gesturelab.core.types import CropBox, Landmark
from gesturelab.detection.landmark_features import (
    bounding_box,
    compute_crop_box,
    crop_and_resize,
    flatten_landmarks,
    hands_from_results,
)

from conftest import create_mock_hand


class TestFlatten:

    def test_matches_hand_computed_vector(self):
        points = [Landmark(0.1, 0.2, 0.3), Landmark(0.4, 0.5, 0.6), Landmark(0.7, 0.8, -0.9)]
        assert flatten_landmarks(points) == [0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, -0.9]

    def test_length_is_three_per_landmark(self):
        hand = create_mock_hand()
        vec = flatten_landmarks(hand.landmarks)

        assert len(vec) == 3 * 21
        assert vec[3 * 5:3 * 5 + 3] == pytest.approx([0.45, 0.35, -0.005])


class TestCropBox:

    def test_padding_on_reference_box(self):
        points = [Landmark(0.4, 0.3, 0.0), Landmark(0.5, 0.4, 0.0), Landmark(0.6, 0.5, 0.0)]
        box = compute_crop_box(points, 1000, 1000, padding_ratio=0.2)

        assert box.x == pytest.approx(380.0)
        assert box.y == pytest.approx(280.0)
        assert box.width == pytest.approx(240.0)
        assert box.height == pytest.approx(240.0)
        assert box.is_valid

    def test_clamped_to_image(self):
        points = [Landmark(0.0, 0.0, 0.0), Landmark(1.0, 1.0, 0.0)]
        box = compute_crop_box(points, 200, 100)

        assert box.x == 0.0
        assert box.y == 0.0
        assert box.width == pytest.approx(200.0)
        assert box.height == pytest.approx(100.0)

    def test_identical_landmarks_give_invalid_box(self):
        points = [Landmark(0.5, 0.5, 0.0)] * 21
        box = compute_crop_box(points, 640, 480)

        assert box.width == 0
        assert not box.is_valid

    def test_bounding_box_seeded_at_unit_square(self):
        points = [Landmark(1.4, 1.2, 0.0)]
        assert bounding_box(points) == (1.0, 1.0, 1.4, 1.2)


class TestCropAndResize:

    def test_output_shape_and_range(self):
        frame = np.zeros((100, 100, 3), dtype=np.uint8)
        frame[10:30, 10:30] = (255, 0, 0)  # blue in BGR

        tensor = crop_and_resize(frame, CropBox(10, 10, 20, 20), size=224)

        assert tensor.shape == (1, 3, 224, 224)
        assert tensor.dtype == np.float32
        # RGB order: blue lands in the last channel
        assert tensor[0, 2].mean() == pytest.approx(1.0)
        assert tensor[0, 0].max() == 0.0

    def test_invalid_box_raises(self):
        frame = np.zeros((50, 50, 3), dtype=np.uint8)
        with pytest.raises(ValueError):
            crop_and_resize(frame, CropBox(10, 10, 0, 5))


class TestHandsFromResults:

    def test_converts_landmarks_and_handedness(self):
        landmark = [SimpleNamespace(x=0.1 * i, y=0.2, z=0.0) for i in range(21)]
        results = SimpleNamespace(
            multi_hand_landmarks=[SimpleNamespace(landmark=landmark)],
            multi_handedness=[SimpleNamespace(
                classification=[SimpleNamespace(label="Left", score=0.8)])],
        )

        hands = hands_from_results(results)

        assert len(hands) == 1
        assert hands[0].handedness == "Left"
        assert hands[0].score == pytest.approx(0.8)
        assert hands[0].landmarks[3].x == pytest.approx(0.3)
        assert hands[0].landmarks[3].y == pytest.approx(0.2)
        assert len(hands[0]) == 21

    def test_no_hands(self):
        assert hands_from_results(SimpleNamespace(multi_hand_landmarks=None)) == []
        assert hands_from_results(None) == []
