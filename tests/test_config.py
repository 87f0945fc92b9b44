"""Tests for environment-driven settings."""

import pytest

from fleetx.config import ApiSettings, AppSettings, get_settings, validate_all_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for settings parsing and validation."""

    def test_defaults(self):
        settings = get_settings()
        assert settings.api.max_retries >= 1
        assert settings.interaction.double_tap_window_ms == 300
        assert settings.app.default_summary_period == "monthly"

    def test_base_url_trailing_slash_is_removed(self):
        assert ApiSettings(base_url="https://fleet.example.com/api/").base_url == "https://fleet.example.com/api"

    def test_base_url_must_be_http(self):
        with pytest.raises(ValueError):
            ApiSettings(base_url="fleet.example.com")

    def test_log_level_is_normalized(self):
        assert AppSettings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValueError):
            AppSettings(log_level="chatty")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FLEETX_API_BASE_URL", "https://fleet.example.com/api")
        monkeypatch.setenv("FLEETX_INTERACTION_DOUBLE_TAP_WINDOW_MS", "450")
        settings = get_settings()
        assert settings.api.base_url == "https://fleet.example.com/api"
        assert settings.interaction.double_tap_window_ms == 450

    def test_validate_all_settings_reports_broken_sections(self, monkeypatch):
        monkeypatch.setenv("FLEETX_INTERACTION_DOUBLE_TAP_WINDOW_MS", "5")
        results = validate_all_settings()
        assert results["api"] is True
        assert results["interaction"] is False
        assert "interaction_error" in results
