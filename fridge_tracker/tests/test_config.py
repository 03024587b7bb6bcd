"""Tests for configuration loading."""

from fridge_tracker.utils.config import Config, get_config
from fridge_tracker.utils.constants import DEFAULT_COOKED_EXPIRY_DAYS


class TestConfig:
    def test_defaults(self):
        config = get_config("development")

        assert config.is_development
        assert config.cooked_expiry_days == DEFAULT_COOKED_EXPIRY_DAYS
        assert config.database_url.startswith("sqlite:///")
        assert config.database_url.endswith("fridge_tracker.db")

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("FRIDGE_TRACKER_DATABASE_URL", "sqlite:///:memory:")

        assert Config().database_url == "sqlite:///:memory:"

    def test_cooked_expiry_days_from_environment(self, monkeypatch):
        monkeypatch.setenv("FRIDGE_TRACKER_COOKED_EXPIRY_DAYS", "5")

        assert Config().cooked_expiry_days == 5

    def test_invalid_expiry_days_fall_back(self, monkeypatch):
        monkeypatch.setenv("FRIDGE_TRACKER_COOKED_EXPIRY_DAYS", "soon")
        assert Config().cooked_expiry_days == DEFAULT_COOKED_EXPIRY_DAYS

        monkeypatch.setenv("FRIDGE_TRACKER_COOKED_EXPIRY_DAYS", "-2")
        assert Config().cooked_expiry_days == DEFAULT_COOKED_EXPIRY_DAYS

    def test_singleton_keeps_environment(self):
        first = get_config("development")

        assert get_config("production") is first
