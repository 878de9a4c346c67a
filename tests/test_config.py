"""Tests for rollover/config.py — RotationConfig and its loaders."""

import dataclasses
import os

import pytest
import yaml

from rollover.config import RotationConfig, _parse_bool, load_config, load_yaml_config
from rollover.naming import RolloverMode

ENV_VARS = [
    "LOG_DIR", "LOG_FILE_PREFIX", "LOG_FILE_COUNT", "LOG_LIMIT_BYTES", "LOG_LIMIT_MB",
    "LOG_DAILY", "SWEEP_INITIAL_DELAY_SECONDS", "SWEEP_INTERVAL_SECONDS",
    "MAX_ROLLOVER_ATTEMPTS", "SWEEP_AFTER_ROLLOVER",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestParseBool:
    @pytest.mark.parametrize("value", ["true", "True", "1", "yes", " YES ", True])
    def test_truthy_values(self, value):
        assert _parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "", "random", False])
    def test_falsy_values(self, value):
        assert _parse_bool(value) is False


class TestRotationConfig:
    def test_defaults(self):
        cfg = RotationConfig()
        assert cfg.file_count == 10
        assert cfg.size_limit_bytes == 0
        assert cfg.file_prefix == "application.log"
        assert cfg.daily is False
        assert cfg.directory == "./logs"
        assert cfg.sweep_initial_delay_seconds == 60
        assert cfg.sweep_interval_seconds == 86400
        assert cfg.max_rollover_attempts == 10
        assert cfg.sweep_after_rollover is False

    @pytest.mark.parametrize("count", [0, -3])
    def test_file_count_clamped_to_one(self, count):
        assert RotationConfig(file_count=count).file_count == 1

    def test_negative_size_limit_rejected(self):
        with pytest.raises(ValueError):
            RotationConfig(size_limit_bytes=-1)

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValueError):
            RotationConfig(sweep_interval_seconds=0)

    def test_zero_rollover_attempts_rejected(self):
        with pytest.raises(ValueError):
            RotationConfig(max_rollover_attempts=0)

    def test_frozen(self):
        cfg = RotationConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.file_count = 4

    @pytest.mark.parametrize("daily,limit,mode", [
        (False, 0, RolloverMode.NONE),
        (False, 100, RolloverMode.SIZE),
        (True, 0, RolloverMode.DAILY),
        (True, 100, RolloverMode.DAILY_SIZE),
    ])
    def test_mode(self, daily, limit, mode):
        assert RotationConfig(daily=daily, size_limit_bytes=limit).mode is mode

    def test_active_path_joins_bare_prefix(self):
        cfg = RotationConfig(directory="/var/log/app", file_prefix="agent.log")
        assert cfg.active_path == os.path.join("/var/log/app", "agent.log")

    def test_active_path_keeps_prefix_with_directory(self):
        cfg = RotationConfig(directory="/var/log/app", file_prefix="/var/log/app/agent.log")
        assert cfg.active_path == "/var/log/app/agent.log"


class TestLoadYamlConfig:
    def test_no_path_returns_empty(self):
        assert load_yaml_config(None) == {}

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_yaml_config(str(tmp_path / "missing.yml")) == {}

    def test_reads_rotation_section(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(yaml.dump({"rotation": {"file_count": 4, "daily": True}}))
        assert load_yaml_config(str(path)) == {"file_count": 4, "daily": True}

    def test_file_without_rotation_section(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(yaml.dump({"server": {"port": 1}}))
        assert load_yaml_config(str(path)) == {}


class TestLoadConfig:
    def test_defaults_without_env(self, clean_env):
        assert load_config() == RotationConfig()

    def test_env_overrides(self, clean_env, tmp_path):
        clean_env.setenv("LOG_DIR", str(tmp_path))
        clean_env.setenv("LOG_FILE_PREFIX", "agent.log")
        clean_env.setenv("LOG_FILE_COUNT", "3")
        clean_env.setenv("LOG_LIMIT_BYTES", "2048")
        clean_env.setenv("LOG_DAILY", "yes")
        clean_env.setenv("SWEEP_INITIAL_DELAY_SECONDS", "5")
        clean_env.setenv("SWEEP_INTERVAL_SECONDS", "30")
        clean_env.setenv("MAX_ROLLOVER_ATTEMPTS", "4")
        clean_env.setenv("SWEEP_AFTER_ROLLOVER", "true")
        cfg = load_config()
        assert cfg.directory == str(tmp_path)
        assert cfg.file_prefix == "agent.log"
        assert cfg.file_count == 3
        assert cfg.size_limit_bytes == 2048
        assert cfg.daily is True
        assert cfg.sweep_initial_delay_seconds == 5.0
        assert cfg.sweep_interval_seconds == 30.0
        assert cfg.max_rollover_attempts == 4
        assert cfg.sweep_after_rollover is True

    def test_limit_mb(self, clean_env):
        clean_env.setenv("LOG_LIMIT_MB", "0.5")
        assert load_config().size_limit_bytes == 512 * 1024

    def test_limit_bytes_takes_precedence_over_mb(self, clean_env):
        clean_env.setenv("LOG_LIMIT_BYTES", "100")
        clean_env.setenv("LOG_LIMIT_MB", "5")
        assert load_config().size_limit_bytes == 100

    def test_yaml_values_used(self, clean_env):
        cfg = load_config({"file_count": 2, "size_limit_bytes": 500, "daily": "true"})
        assert cfg.file_count == 2
        assert cfg.size_limit_bytes == 500
        assert cfg.daily is True

    def test_env_beats_yaml(self, clean_env):
        clean_env.setenv("LOG_FILE_COUNT", "7")
        clean_env.setenv("LOG_LIMIT_BYTES", "10")
        cfg = load_config({"file_count": 2, "size_limit_bytes": 500})
        assert cfg.file_count == 7
        assert cfg.size_limit_bytes == 10

    def test_zero_file_count_from_env_is_clamped(self, clean_env):
        clean_env.setenv("LOG_FILE_COUNT", "0")
        assert load_config().file_count == 1
