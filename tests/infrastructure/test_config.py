"""Tests for environment-driven settings."""

import os
from pathlib import Path

import pytest

from retailpos.domain.exceptions import ValidationError
from retailpos.domain.service.checkout_sequencer import FailurePolicy
from retailpos.infrastructure.config import (
    DEFAULT_DATA_DIR,
    STOCK_SYNC_OPTIMISTIC,
    STOCK_SYNC_REFETCH,
    load_settings,
)

ENV_VARS = [
    "RETAILPOS_DATA_DIR",
    "RETAILPOS_API_URL",
    "RETAILPOS_API_TOKEN",
    "RETAILPOS_API_TIMEOUT",
    "RETAILPOS_FAILURE_POLICY",
    "RETAILPOS_STOCK_SYNC",
    "RETAILPOS_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for name in ENV_VARS:
        os.environ.pop(name, None)


@pytest.fixture
def no_env_file(tmp_path):
    return str(tmp_path / "missing.env")


class TestLoadSettings:

    def test_defaults(self, no_env_file):
        settings = load_settings(no_env_file)

        assert settings.data_dir == DEFAULT_DATA_DIR
        assert settings.api_url is None
        assert not settings.uses_http_backend
        assert settings.api_timeout == 10.0
        assert settings.failure_policy is FailurePolicy.HALT
        assert settings.stock_sync == STOCK_SYNC_OPTIMISTIC
        assert settings.log_level == "WARNING"

    def test_values_from_environment(self, monkeypatch, tmp_path, no_env_file):
        monkeypatch.setenv("RETAILPOS_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("RETAILPOS_API_URL", "https://pos.example/api")
        monkeypatch.setenv("RETAILPOS_API_TOKEN", "abc")
        monkeypatch.setenv("RETAILPOS_API_TIMEOUT", "2.5")
        monkeypatch.setenv("RETAILPOS_FAILURE_POLICY", "Rollback")
        monkeypatch.setenv("RETAILPOS_STOCK_SYNC", "refetch")
        monkeypatch.setenv("RETAILPOS_LOG_LEVEL", "info")

        settings = load_settings(no_env_file)

        assert settings.data_dir == Path(tmp_path)
        assert settings.uses_http_backend
        assert settings.api_token == "abc"
        assert settings.api_timeout == 2.5
        assert settings.failure_policy is FailurePolicy.ROLLBACK_ALL
        assert settings.stock_sync == STOCK_SYNC_REFETCH
        assert settings.log_level == "INFO"

    def test_env_file_is_read(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("RETAILPOS_FAILURE_POLICY=continue\n", encoding="utf-8")

        settings = load_settings(str(env_file))

        assert settings.failure_policy is FailurePolicy.CONTINUE_REMAINING

    def test_environment_wins_over_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("RETAILPOS_STOCK_SYNC=refetch\n", encoding="utf-8")
        monkeypatch.setenv("RETAILPOS_STOCK_SYNC", "optimistic")

        assert load_settings(str(env_file)).stock_sync == STOCK_SYNC_OPTIMISTIC

    @pytest.mark.parametrize("name, value, message", [
        ("RETAILPOS_FAILURE_POLICY", "retry", "RETAILPOS_FAILURE_POLICY"),
        ("RETAILPOS_STOCK_SYNC", "sometimes", "RETAILPOS_STOCK_SYNC"),
        ("RETAILPOS_API_TIMEOUT", "soon", "RETAILPOS_API_TIMEOUT"),
    ])
    def test_invalid_values_rejected(self, monkeypatch, no_env_file, name, value, message):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError, match=message):
            load_settings(no_env_file)
