"""
tests/unit/test_config.py

Unit tests for settings loading.
"""

import json
from pathlib import Path

import pytest

from blinkit_agent.config import Config, load_settings
from blinkit_agent.exceptions import ConfigurationError


def write_config(data_dir: Path, data: dict) -> None:
    (data_dir / "config.json").write_text(json.dumps(data), encoding="utf-8")


class TestLoadSettings:
    """config.json merged with BLINKIT_* environment overrides."""

    def test_defaults_without_file_or_env(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path, env={})
        assert settings.warn_threshold == 500
        assert settings.max_order_amount == 2000
        assert settings.headless
        assert settings.default_lat is None

    def test_file_values(self, tmp_path: Path) -> None:
        write_config(tmp_path, {"warn_threshold": 300, "debug": True})
        settings = load_settings(tmp_path, env={})
        assert settings.warn_threshold == 300
        assert settings.debug

    def test_env_overrides_file(self, tmp_path: Path) -> None:
        write_config(tmp_path, {"max_order_amount": 1000, "headless": True})
        settings = load_settings(tmp_path, env={"BLINKIT_MAX_ORDER_AMOUNT": "1500", "BLINKIT_HEADLESS": "false"})
        assert settings.max_order_amount == 1500
        assert not settings.headless

    def test_unreadable_file_is_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "config.json").write_text("{not json", encoding="utf-8")
        assert load_settings(tmp_path, env={}).warn_threshold == 500

    @pytest.mark.parametrize("env", [
        {"BLINKIT_WARN_THRESHOLD": "0"},
        {"BLINKIT_DEFAULT_LAT": "91"},
        {"BLINKIT_DEFAULT_LON": "-181"},
        {"BLINKIT_SLOW_MO": "-5"},
    ])
    def test_out_of_range_values_rejected(self, tmp_path: Path, env: dict[str, str]) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(tmp_path, env=env)


class TestConfig:

    def test_as_dict_lists_uppercase_attributes(self) -> None:
        values = Config.as_dict()
        assert "LOG_LEVEL" in values
        assert "DATA_DIR" in values
        assert all(key.isupper() for key in values)
