"""
Tests for ShuffleboardConfig
"""

import json

import pytest

from shuffleboard.config import ConfigError, ShuffleboardConfig


class TestEnvironmentDefaults:
    """Fields default from environment variables"""

    def test_defaults(self, monkeypatch):
        for name in ("SHUFFLEBOARD_PORT", "SHUFFLEBOARD_LOG_LEVEL", "SHUFFLEBOARD_UPDATE_PERIOD"):
            monkeypatch.delenv(name, raising=False)
        config = ShuffleboardConfig()
        assert config.port == 5810
        assert config.log_level == "INFO"
        assert config.update_period == 0.02
        assert config.ws_url == "ws://localhost:5810"

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SHUFFLEBOARD_PORT", "1735")
        monkeypatch.setenv("SHUFFLEBOARD_LOG_LEVEL", "debug")
        monkeypatch.setenv("SHUFFLEBOARD_RECORDINGS_DIR", str(tmp_path))
        monkeypatch.setenv("SHUFFLEBOARD_FILE_LOGGING", "no")
        config = ShuffleboardConfig()
        assert config.port == 1735
        assert config.log_level == "DEBUG"
        assert config.recordings_dir == tmp_path
        assert config.file_logging is False

    def test_invalid_int_falls_back(self, monkeypatch):
        monkeypatch.setenv("SHUFFLEBOARD_PORT", "not-a-port")
        assert ShuffleboardConfig().port == 5810

    def test_port_is_clamped(self, monkeypatch):
        monkeypatch.setenv("SHUFFLEBOARD_PORT", "99999")
        assert ShuffleboardConfig().port == 65535

    def test_invalid_float_falls_back(self, monkeypatch):
        monkeypatch.setenv("SHUFFLEBOARD_UPDATE_PERIOD", "fast")
        assert ShuffleboardConfig().update_period == 0.02


class TestValidation:
    """Tests for validate()"""

    def test_valid(self):
        config = ShuffleboardConfig(log_level="INFO")
        assert config.validate() is config

    def test_bad_log_level(self):
        with pytest.raises(ConfigError, match="log level"):
            ShuffleboardConfig(log_level="LOUD").validate()

    def test_bad_update_period(self):
        with pytest.raises(ConfigError):
            ShuffleboardConfig(log_level="INFO", update_period=0).validate()

    def test_recordings_path_is_file(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("x")
        with pytest.raises(ConfigError):
            ShuffleboardConfig(log_level="INFO", recordings_dir=path).validate()


class TestPersistence:
    """Tests for save/load"""

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.json"
        ShuffleboardConfig(port=1234, host="0.0.0.0").save(path)

        loaded = ShuffleboardConfig.load(path)
        assert loaded.port == 1234
        assert loaded.host == "0.0.0.0"
        assert json.loads(path.read_text())["port"] == 1234

    def test_load_missing(self, tmp_path):
        assert ShuffleboardConfig.load(tmp_path / "none.json").port == ShuffleboardConfig().port

    def test_load_corrupt_raises(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{")
        with pytest.raises(ConfigError):
            ShuffleboardConfig.load(path)
