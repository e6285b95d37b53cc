"""
Tests for the Label/Model Service
=================================
"""

import json

import numpy as np
import pytest
import torch

from gesturelab.core.errors import ModelLoadError, ModelNotReadyError
from gesturelab.recognition.model_service import (
    DEFAULT_LABELS,
    LabelTable,
    ModelService,
    build_label_table,
)
from gesturelab.recognition.networks import SequenceNet, load_checkpoint

from conftest import LABELS, write_crop_model, write_sequence_model


def window(frames=5, length=63, value=0.1):
    return [[value] * length for _ in range(frames)]


class TestLabelTable:

    def test_lookup_in_range(self, labels):
        assert labels.lookup(0) == "Hello"
        assert labels.lookup(5) == "Other/None"

    def test_lookup_out_of_range_is_none(self, labels):
        assert labels.lookup(6) is None
        assert labels.lookup(-1) is None

    def test_check_width(self, labels):
        assert labels.check_width(6)
        assert not labels.check_width(13)

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "labels.json"
        path.write_text(json.dumps(["A", "B"]))
        assert LabelTable.from_file(str(path)).labels == ["A", "B"]

    def test_from_file_rejects_non_list(self, tmp_path):
        path = tmp_path / "labels.json"
        path.write_text(json.dumps({"a": 1}))
        with pytest.raises(ValueError):
            LabelTable.from_file(str(path))

    def test_build_prefers_inline_labels(self):
        table = build_label_table({"labels": ["X", "Y"], "labels_file": "missing.json"})
        assert table.labels == ["X", "Y"]

    def test_build_falls_back_to_defaults(self, tmp_path):
        table = build_label_table({"labels_file": str(tmp_path / "missing.json")})
        assert table.labels == DEFAULT_LABELS


class TestModelLoading:

    def test_missing_file(self, model_service, tmp_path):
        with pytest.raises(ModelLoadError):
            model_service.load(str(tmp_path / "nope.pth"))
        assert not model_service.is_ready

    def test_corrupt_file(self, model_service, tmp_path):
        path = tmp_path / "broken.pth"
        path.write_bytes(b"not a checkpoint")
        with pytest.raises(ModelLoadError):
            model_service.load(str(path))

    def test_predict_before_load_is_rejected(self, model_service):
        with pytest.raises(ModelNotReadyError):
            model_service.predict(np.zeros((1, 5, 63), dtype=np.float32))

    def test_checkpoint_roundtrip_infers_hyperparameters(self, tmp_path):
        path = write_sequence_model(tmp_path / "seq.pth", num_classes=4, winner=2)
        model, arch, labels = load_checkpoint(path)

        assert arch == "sequence"
        assert isinstance(model, SequenceNet)
        assert model.classifier.out_features == 4
        assert labels is None

    def test_raw_state_dict(self, tmp_path):
        net = SequenceNet(num_classes=3, hidden_dim=16, num_layers=1)
        path = tmp_path / "raw.pth"
        torch.save(net.state_dict(), str(path))

        model, arch, _ = load_checkpoint(str(path))

        assert arch == "sequence"
        assert model.hidden_dim == 16
        assert model.num_layers == 1

    def test_checkpoint_labels_replace_table(self, tmp_path, model_service):
        path = write_sequence_model(tmp_path / "seq.pth", num_classes=2, winner=1,
                                    labels=["LEFT", "RIGHT"])
        model_service.load(path)
        assert model_service.labels.labels == ["LEFT", "RIGHT"]


class TestSequenceClassification:

    def test_argmax_label(self, model_service, sequence_model_path):
        model_service.load(sequence_model_path)
        prediction = model_service.classify_sequence(window())

        assert prediction.index == 1
        assert prediction.label == "Yes"
        assert prediction.confidence is None

    def test_distribution_is_flat_probabilities(self, model_service, sequence_model_path):
        model_service.load(sequence_model_path)
        probs = model_service.predict(np.zeros((1, 5, 63), dtype=np.float32))

        assert probs.shape == (len(LABELS),)
        assert probs.sum() == pytest.approx(1.0, abs=1e-5)

    def test_wrong_frame_count(self, model_service, sequence_model_path):
        model_service.load(sequence_model_path)
        with pytest.raises(ValueError):
            model_service.classify_sequence(window(frames=4))

    def test_wrong_row_length(self, model_service, sequence_model_path):
        model_service.load(sequence_model_path)
        rows = window()
        rows[2] = rows[2][:-1]
        with pytest.raises(ValueError):
            model_service.classify_sequence(rows)

    def test_index_beyond_label_table_is_undefined(self, tmp_path):
        path = write_sequence_model(tmp_path / "wide.pth", num_classes=8, winner=7)
        service = ModelService(labels=LabelTable(["A", "B"]), frame_limit=5, device="cpu")
        service.load(path)

        prediction = service.classify_sequence(window())

        assert prediction.index == 7
        assert prediction.label is None
        assert prediction.display_label == "undefined"


class TestImageClassification:

    def test_confidence_percentage(self, model_service, crop_model_path):
        model_service.load(crop_model_path)
        tensor = np.random.rand(1, 3, 224, 224).astype(np.float32)

        prediction = model_service.classify_image(tensor)

        assert prediction.index == 4
        assert prediction.label == "I Love You"
        assert 99.0 < prediction.confidence <= 100.0

    def test_rejects_channels_last(self, model_service, crop_model_path):
        model_service.load(crop_model_path)
        with pytest.raises(ValueError):
            model_service.classify_image(np.zeros((1, 224, 224, 3), dtype=np.float32))

    def test_torchscript_archive(self, tmp_path, model_service):
        path = write_crop_model(tmp_path / "crop.pth", winner=2)
        model, _, _ = load_checkpoint(path)
        scripted = torch.jit.trace(model, torch.zeros(1, 3, 64, 64))
        ts_path = tmp_path / "crop.pt"
        scripted.save(str(ts_path))

        model_service.load(str(ts_path))

        assert model_service.arch == "torchscript"
        assert model_service.classify_image(np.zeros((1, 3, 64, 64))).index == 2
