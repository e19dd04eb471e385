"""
Unit tests for settings and startup validation.

Usage:
    pytest tests/test_config.py -v
"""
import logging
import os

import pytest

from server.fitness_api.config import Settings, validate_environment


class TestValidateEnvironment:
    """Test required and recommended settings checks."""

    def test_complete_settings_pass(self, settings):
        validate_environment(settings)

    def test_missing_google_client_raises(self):
        settings = Settings(google_client_id=None, google_client_secret=None, openai_api_key="k")

        with pytest.raises(ValueError) as exc_info:
            validate_environment(settings)

        message = str(exc_info.value)
        assert "FITNESS_GOOGLE_CLIENT_ID" in message
        assert "FITNESS_GOOGLE_CLIENT_SECRET" in message

    def test_missing_openai_key_only_warns(self, settings, caplog):
        settings = settings.model_copy(update={"openai_api_key": None})

        with caplog.at_level(logging.WARNING):
            validate_environment(settings)

        assert "FITNESS_OPENAI_API_KEY" in caplog.text


class TestSettings:
    """Test derived settings."""

    def test_relative_database_file_joined_to_data_path(self, tmp_path):
        settings = Settings(data_path=str(tmp_path), database_file="metrics.db")
        assert settings.database_path == os.path.join(str(tmp_path), "metrics.db")

    def test_absolute_database_file_kept(self, tmp_path):
        path = str(tmp_path / "elsewhere.db")
        assert Settings(database_file=path).database_path == path

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("FITNESS_SYNC_DEFAULT_DAYS", "14")
        assert Settings().sync_default_days == 14
