"""
Tests for the predict-mode strategies
=====================================
"""

import pytest

from gesturelab.recognition.predictors import (
    CANNOT_CROP_TEXT,
    MODEL_NOT_READY_TEXT,
    NO_HAND_TEXT,
    WAITING_TEXT,
    CropPredictor,
    SequencePredictor,
    build_predictor,
)

from conftest import create_detection, create_mock_hand


def feed(predictor, frames, hand=None):
    hand = hand or create_mock_hand()
    results = []
    for i in range(frames):
        results.append(predictor.update(create_detection([hand], frame_id=i)))
    return results


class TestSequencePredictor:

    def test_reports_collection_progress(self, model_service, sequence_model_path):
        model_service.load(sequence_model_path)
        predictor = SequencePredictor(model_service)
        feed(predictor, 3)
        assert predictor.status == "GESTURE: Collecting frames (3/5)"

    def test_without_model_keeps_buffering_and_reports_it(self, model_service):
        predictor = SequencePredictor(model_service)

        assert predictor.update(create_detection([create_mock_hand()])) is None
        assert predictor.status == MODEL_NOT_READY_TEXT
        assert len(predictor.buffer) == 1

        predictor.update(create_detection([]))
        assert predictor.status == MODEL_NOT_READY_TEXT

    def test_full_window_without_model(self, model_service):
        predictor = SequencePredictor(model_service)
        results = feed(predictor, 6)

        assert all(r is None for r in results)
        assert predictor.status == MODEL_NOT_READY_TEXT

    def test_predicts_on_every_frame_once_full(self, model_service, sequence_model_path):
        model_service.load(sequence_model_path)
        predictor = SequencePredictor(model_service)

        results = feed(predictor, 8)

        assert results[:4] == [None] * 4
        assert [r.label for r in results[4:]] == ["Yes"] * 4
        assert predictor.status == "GESTURE: Yes"

    def test_frames_without_hand_are_skipped(self, model_service):
        predictor = SequencePredictor(model_service)
        feed(predictor, 2)

        assert predictor.update(create_detection([])) is None
        assert len(predictor.buffer) == 2

    def test_reset_empties_window(self, model_service, sequence_model_path):
        model_service.load(sequence_model_path)
        predictor = SequencePredictor(model_service)
        feed(predictor, 5)

        predictor.reset()

        assert len(predictor.buffer) == 0
        assert predictor.last_prediction is None
        assert predictor.status == WAITING_TEXT


class TestCropPredictor:

    def test_model_checked_before_hand(self, model_service):
        predictor = CropPredictor(model_service)
        assert predictor.update(create_detection([])) is None
        assert predictor.status == MODEL_NOT_READY_TEXT

    def test_no_hand(self, model_service, crop_model_path):
        model_service.load(crop_model_path)
        predictor = CropPredictor(model_service)

        assert predictor.update(create_detection([])) is None
        assert predictor.status == NO_HAND_TEXT

    def test_degenerate_box_is_skipped(self, model_service, crop_model_path):
        model_service.load(crop_model_path)
        predictor = CropPredictor(model_service)
        flat_hand = create_mock_hand(step=0.0)

        assert predictor.update(create_detection([flat_hand])) is None
        assert predictor.status == CANNOT_CROP_TEXT
        assert predictor.last_box is None

    def test_label_with_confidence(self, model_service, crop_model_path):
        model_service.load(crop_model_path)
        predictor = CropPredictor(model_service, crop_size=64)

        prediction = predictor.update(create_detection([create_mock_hand()]))

        assert prediction.label == "I Love You"
        assert predictor.status.startswith("GESTURE: I Love You (")
        assert predictor.status.endswith("%)")
        assert predictor.last_box.is_valid


class TestBuildPredictor:

    def test_sequence(self, model_service):
        assert isinstance(build_predictor("sequence", model_service), SequencePredictor)

    def test_crop_uses_config(self, model_service):
        predictor = build_predictor("crop", model_service, {"padding_ratio": 0.1, "crop_size": 96})
        assert isinstance(predictor, CropPredictor)
        assert predictor._crop_size == 96

    def test_unknown(self, model_service):
        with pytest.raises(ValueError):
            build_predictor("tfjs", model_service)
