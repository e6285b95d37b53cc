"""
Tests for Config
================
"""

import pytest
import yaml

from gesturelab.utils.config import DEFAULTS, Config


@pytest.fixture(autouse=True)
def fresh_config():
    Config.reset()
    yield
    Config.reset()


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestConfig:

    def test_singleton(self):
        assert Config() is Config()

    def test_defaults_without_file(self, tmp_path):
        config = Config().load(str(tmp_path / "missing.yaml"))
        assert config.get("session.frame_limit") == DEFAULTS["session"]["frame_limit"]
        assert config.get("predictor.strategy") == "sequence"

    def test_file_overrides_are_merged(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {"camera": {"width": 1280}})
        config = Config().load(path)

        assert config.get("camera.width") == 1280
        assert config.get("camera.height") == 480

    def test_get_default_for_missing_key(self):
        assert Config().get("camera.nope", "fallback") == "fallback"
        assert Config().get("nope.deeper") is None

    def test_set_creates_path(self):
        config = Config()
        config.set("model.path", "/tmp/m.pth")
        config.set("extra.flag", True)

        assert config.model["path"] == "/tmp/m.pth"
        assert config.get("extra.flag") is True

    def test_validation_reports_type_errors(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {
            "session": {"frame_limit": "thirty"},
            "camera": {"width": True},
            "mediapipe": {"min_detection_confidence": 1},
        })
        warnings = Config().load(path)._validate()

        assert any("session.frame_limit" in w for w in warnings)
        assert any("camera.width" in w for w in warnings)
        assert not any("min_detection_confidence" in w for w in warnings)

    def test_non_mapping_root_is_ignored(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("- just\n- a list\n")
        config = Config().load(str(path))
        assert config.session == DEFAULTS["session"]

    def test_load_does_not_mutate_defaults(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {"session": {"frame_limit": 10}})
        Config().load(path)
        assert DEFAULTS["session"]["frame_limit"] == 30

    def test_resolve_path(self):
        config = Config()
        assert config.resolve_path("/abs/file") == "/abs/file"
        assert config.resolve_path("config/labels.json").startswith(config.base_dir)
        assert config.resolve_path(None) is None
