"""Unit tests for configuration management module."""

import json
import os
from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from toolbelt.config import (
    ConcurrencySettings,
    HttpSettings,
    RetrySettings,
    ToolbeltConfig,
    get_config,
    load_config,
    reset_config,
)


@pytest.fixture
def valid_config_dict() -> dict[str, Any]:
    """Fixture providing valid configuration dictionary."""
    return {
        "retry": {
            "attempts": 4,
            "delay_ms": 250,
        },
        "concurrency": {
            "limit": 5,
            "batch_size": 20,
        },
        "http": {
            "base_url": "https://api.example.com",
            "timeout_ms": 3000,
            "headers": {"Accept": "application/json"},
        },
        "logging_level": "DEBUG",
        "json_logs": False,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, valid_config_dict: dict[str, Any]) -> Path:
    """Fixture providing temporary YAML config file."""
    config_path = tmp_path / "toolbelt.yaml"
    with config_path.open("w") as f:
        yaml.dump(valid_config_dict, f)
    return config_path


@pytest.fixture
def temp_json_config_file(tmp_path: Path, valid_config_dict: dict[str, Any]) -> Path:
    """Fixture providing temporary JSON config file."""
    config_path = tmp_path / "toolbelt.json"
    with config_path.open("w") as f:
        json.dump(valid_config_dict, f)
    return config_path


@pytest.fixture(autouse=True)
def reset_config_singleton():
    """Reset configuration singleton before and after each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def clean_env_vars(monkeypatch):
    """Remove TOOLBELT_* overrides inherited from the environment."""
    for key in list(os.environ.keys()):
        if key.startswith("TOOLBELT_"):
            monkeypatch.delenv(key, raising=False)


class TestSettingsModels:
    """Tests for the individual settings sections."""

    def test_defaults(self):
        """Test that every section has sensible defaults."""
        config = ToolbeltConfig()

        assert config.retry.attempts == 3
        assert config.retry.delay_ms == 0
        assert config.concurrency.limit is None
        assert config.concurrency.batch_size == 10
        assert config.http.base_url == ""
        assert config.http.timeout_ms is None
        assert config.http.headers == {}
        assert config.logging_level == "INFO"
        assert config.json_logs is True

    @pytest.mark.parametrize("attempts", [0, -1])
    def test_retry_attempts_must_be_positive(self, attempts):
        """Test that the attempt budget must be at least one."""
        with pytest.raises(ValidationError):
            RetrySettings(attempts=attempts)

    def test_retry_delay_must_be_non_negative(self):
        """Test that negative delays are rejected."""
        with pytest.raises(ValidationError):
            RetrySettings(delay_ms=-5)

    @pytest.mark.parametrize("field", ["limit", "batch_size"])
    def test_concurrency_values_must_be_positive(self, field):
        """Test that limit and batch_size reject zero."""
        with pytest.raises(ValidationError):
            ConcurrencySettings(**{field: 0})

    def test_http_timeout_must_be_positive(self):
        """Test that a zero timeout is rejected (use None for no timeout)."""
        with pytest.raises(ValidationError):
            HttpSettings(timeout_ms=0)

    def test_http_base_url_is_stripped(self):
        """Test that surrounding whitespace is removed."""
        assert HttpSettings(base_url="  https://api.example.com ").base_url == (
            "https://api.example.com"
        )

    def test_invalid_logging_level(self):
        """Test that unknown logging levels are rejected."""
        with pytest.raises(ValidationError):
            ToolbeltConfig(logging_level="VERBOSE")


class TestFromYaml:
    """Tests for loading configuration files."""

    def test_load_yaml(self, temp_config_file):
        """Test loading a complete YAML file."""
        config = ToolbeltConfig.from_yaml(temp_config_file)

        assert config.retry.attempts == 4
        assert config.retry.delay_ms == 250
        assert config.concurrency.limit == 5
        assert config.concurrency.batch_size == 20
        assert config.http.base_url == "https://api.example.com"
        assert config.http.timeout_ms == 3000
        assert config.http.headers == {"Accept": "application/json"}
        assert config.logging_level == "DEBUG"
        assert config.json_logs is False

    def test_load_json(self, temp_json_config_file):
        """Test that JSON files load through the YAML parser."""
        config = ToolbeltConfig.from_yaml(temp_json_config_file)
        assert config.concurrency.limit == 5

    def test_partial_file_uses_defaults(self, tmp_path):
        """Test that omitted sections fall back to defaults."""
        config_path = tmp_path / "toolbelt.yaml"
        config_path.write_text("retry:\n  attempts: 2\n")

        config = ToolbeltConfig.from_yaml(config_path)

        assert config.retry.attempts == 2
        assert config.concurrency.limit is None

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            ToolbeltConfig.from_yaml(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        """Test that an empty file is rejected."""
        config_path = tmp_path / "toolbelt.yaml"
        config_path.write_text("")

        with pytest.raises(ValueError, match="Configuration file is empty"):
            ToolbeltConfig.from_yaml(config_path)

    def test_invalid_yaml(self, tmp_path):
        """Test that malformed YAML is reported as ValueError."""
        config_path = tmp_path / "toolbelt.yaml"
        config_path.write_text("retry: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            ToolbeltConfig.from_yaml(config_path)

    def test_invalid_values(self, tmp_path, valid_config_dict):
        """Test that schema violations surface as ValidationError."""
        valid_config_dict["concurrency"]["limit"] = 0
        config_path = tmp_path / "toolbelt.yaml"
        config_path.write_text(yaml.dump(valid_config_dict))

        with pytest.raises(ValidationError):
            ToolbeltConfig.from_yaml(config_path)


class TestEnvOverrides:
    """Tests for TOOLBELT_* environment overrides."""

    def test_numeric_overrides(self, temp_config_file, monkeypatch):
        """Test that numeric overrides are converted to int."""
        monkeypatch.setenv("TOOLBELT_RETRY_ATTEMPTS", "7")
        monkeypatch.setenv("TOOLBELT_RETRY_DELAY_MS", "0")
        monkeypatch.setenv("TOOLBELT_CONCURRENCY_LIMIT", "2")
        monkeypatch.setenv("TOOLBELT_BATCH_SIZE", "50")
        monkeypatch.setenv("TOOLBELT_HTTP_TIMEOUT_MS", "1500")

        config = ToolbeltConfig.from_yaml(temp_config_file)

        assert config.retry.attempts == 7
        assert config.retry.delay_ms == 0
        assert config.concurrency.limit == 2
        assert config.concurrency.batch_size == 50
        assert config.http.timeout_ms == 1500

    def test_string_and_bool_overrides(self, temp_config_file, monkeypatch):
        """Test string and boolean overrides."""
        monkeypatch.setenv("TOOLBELT_HTTP_BASE_URL", "https://staging.example.com")
        monkeypatch.setenv("TOOLBELT_LOGGING_LEVEL", "WARNING")
        monkeypatch.setenv("TOOLBELT_JSON_LOGS", "yes")

        config = ToolbeltConfig.from_yaml(temp_config_file)

        assert config.http.base_url == "https://staging.example.com"
        assert config.logging_level == "WARNING"
        assert config.json_logs is True

    def test_override_creates_missing_section(self, tmp_path, monkeypatch):
        """Test that an override can populate a section absent from the file."""
        config_path = tmp_path / "toolbelt.yaml"
        config_path.write_text("logging_level: INFO\n")
        monkeypatch.setenv("TOOLBELT_CONCURRENCY_LIMIT", "3")

        config = ToolbeltConfig.from_yaml(config_path)

        assert config.concurrency.limit == 3


class TestValidateConfig:
    """Tests for configuration warnings."""

    def test_no_warnings_for_bounded_config(self, temp_config_file):
        """Test a fully bounded configuration."""
        assert ToolbeltConfig.from_yaml(temp_config_file).validate_config() == []

    def test_default_config_warnings(self):
        """Test that defaults warn about unbounded concurrency and missing timeout."""
        warnings = ToolbeltConfig().validate_config()

        assert len(warnings) == 2
        assert any("unbounded" in warning for warning in warnings)
        assert any("no timeout" in warning for warning in warnings)

    def test_high_retry_delay_warning(self):
        """Test the warning for very long retry delays."""
        config = ToolbeltConfig(
            retry=RetrySettings(delay_ms=120_000),
            concurrency=ConcurrencySettings(limit=4),
            http=HttpSettings(timeout_ms=1000),
        )

        warnings = config.validate_config()

        assert len(warnings) == 1
        assert "120000ms" in warnings[0]


class TestConfigManager:
    """Tests for the singleton helpers."""

    def test_load_config_explicit_path(self, temp_config_file):
        """Test load_config with an explicit path."""
        assert load_config(temp_config_file).concurrency.limit == 5

    def test_load_config_default_file(self, temp_config_file, monkeypatch):
        """Test that toolbelt.yaml in the working directory is found."""
        monkeypatch.chdir(temp_config_file.parent)
        assert load_config().retry.attempts == 4

    def test_load_config_no_default_file(self, tmp_path, monkeypatch):
        """Test the error when no default file exists."""
        monkeypatch.chdir(tmp_path)
        with pytest.raises(FileNotFoundError, match="No configuration file found"):
            load_config()

    def test_get_config_is_cached(self, temp_config_file):
        """Test that get_config returns the same instance until reloaded."""
        first = get_config(temp_config_file)
        second = get_config()

        assert first is second

    def test_get_config_reload(self, temp_config_file, valid_config_dict):
        """Test that reload=True re-reads the file."""
        first = get_config(temp_config_file)

        valid_config_dict["retry"]["attempts"] = 9
        temp_config_file.write_text(yaml.dump(valid_config_dict))
        reloaded = get_config(temp_config_file, reload=True)

        assert reloaded is not first
        assert reloaded.retry.attempts == 9

    def test_reset_config(self, temp_config_file):
        """Test that reset_config drops the cached instance."""
        first = get_config(temp_config_file)
        reset_config()

        assert get_config(temp_config_file) is not first
