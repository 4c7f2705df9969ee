"""
Test environment loading and settings parsing.

Tests that already-set environment variables take precedence over .env files,
that the legacy MONGODB_* names are still honoured, and that grouped settings
parse from their prefixed variables.
"""

import os

import pytest
from pydantic import ValidationError

from receptiondesk.core.config import (
    DatabaseSettings,
    OutboxSettings,
    RelaySettings,
    SecuritySettings,
    _load_env_file_if_available,
    get_settings,
    reset_settings,
)


def test_env_file_is_loaded_from_working_directory(monkeypatch, tmp_path):
    """Test that .env in the working directory is picked up."""
    monkeypatch.delenv("MONGO_URI", raising=False)
    monkeypatch.delenv("MONGO_DB_NAME", raising=False)
    (tmp_path / ".env").write_text("MONGO_URI=mongodb://from-env-file:27017/test\nMONGO_DB_NAME=from_env\n")
    monkeypatch.chdir(tmp_path)

    try:
        _load_env_file_if_available()
        assert os.getenv("MONGO_URI") == "mongodb://from-env-file:27017/test"
        assert os.getenv("MONGO_DB_NAME") == "from_env"
    finally:
        # load_dotenv writes to os.environ directly
        os.environ.pop("MONGO_URI", None)
        os.environ.pop("MONGO_DB_NAME", None)


def test_env_file_is_found_in_parent_directory(monkeypatch, tmp_path):
    monkeypatch.delenv("MONGO_DB_NAME", raising=False)
    (tmp_path / ".env").write_text("MONGO_DB_NAME=from_parent\n")
    child = tmp_path / "nested" / "deeper"
    child.mkdir(parents=True)
    monkeypatch.chdir(child)

    try:
        _load_env_file_if_available()
        assert os.getenv("MONGO_DB_NAME") == "from_parent"
    finally:
        os.environ.pop("MONGO_DB_NAME", None)


def test_already_set_env_vars_take_precedence(monkeypatch, tmp_path):
    """Test that already-set environment variables are not overridden."""
    monkeypatch.setenv("MONGO_URI", "mongodb://already-set:27017/test")
    (tmp_path / ".env").write_text("MONGO_URI=mongodb://from-env-file:27017/test\n")
    monkeypatch.chdir(tmp_path)

    _load_env_file_if_available()

    assert os.getenv("MONGO_URI") == "mongodb://already-set:27017/test"


def test_no_env_files_no_crash(monkeypatch, tmp_path):
    """Test that missing env files don't cause crashes."""
    monkeypatch.chdir(tmp_path)
    _load_env_file_if_available()
    assert get_settings().app_env == "testing"


def test_legacy_mongodb_uri_fallback(monkeypatch):
    monkeypatch.delenv("MONGO_URI", raising=False)
    monkeypatch.delenv("MONGO_DB_NAME", raising=False)
    monkeypatch.setenv("MONGODB_URI", "mongodb+srv://legacy.example.net/clinic")
    monkeypatch.setenv("MONGODB_DB", "legacy_db")

    settings = DatabaseSettings()
    assert settings.uri == "mongodb+srv://legacy.example.net/clinic"
    assert settings.db_name == "legacy_db"


def test_mongo_uri_wins_over_legacy_name(monkeypatch):
    monkeypatch.setenv("MONGO_URI", "mongodb://primary:27017")
    monkeypatch.setenv("MONGODB_URI", "mongodb://legacy:27017")
    assert DatabaseSettings().uri == "mongodb://primary:27017"


def test_invalid_mongo_uri_is_rejected(monkeypatch):
    monkeypatch.setenv("MONGO_URI", "postgres://nope")
    with pytest.raises(ValidationError):
        DatabaseSettings()


def test_short_secret_key_is_rejected(monkeypatch):
    monkeypatch.setenv("SECURITY_SECRET_KEY", "too-short")
    with pytest.raises(ValidationError):
        SecuritySettings()


def test_grouped_settings_parse_from_environment(monkeypatch):
    monkeypatch.setenv("OUTBOX_MAX_ATTEMPTS", "7")
    monkeypatch.setenv("OUTBOX_RETRY_BACKOFF_SECONDS", "[1, 5, 25]")
    monkeypatch.setenv("RELAY_RECONNECT_ATTEMPTS", "9")
    monkeypatch.setenv("AUTH_REQUIRE_SESSION", "true")
    reset_settings()

    settings = get_settings()
    assert settings.outbox.max_attempts == 7
    assert settings.outbox.retry_backoff_seconds == [1.0, 5.0, 25.0]
    assert settings.relay.reconnect_attempts == 9
    assert settings.auth.require_session is True


def test_out_of_range_values_are_rejected():
    with pytest.raises(ValidationError):
        OutboxSettings(max_attempts=0)
    with pytest.raises(ValidationError):
        RelaySettings(reconnect_attempts=-1)
