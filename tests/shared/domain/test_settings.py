"""Tests for environment-driven settings."""

import pytest

from shared.config import DEFAULT_DATABASE_URL, Settings

_VARS = (
    "APP_ENV",
    "DATABASE_URL",
    "PRINTER_WEBHOOK_SECRET",
    "ADMIN_API_KEY",
    "ADMIN_EMAIL",
    "PRINTER_EMAIL",
    "SITE_URL",
    "EMAIL_ADAPTER",
    "NOTIFICATION_MAX_RETRIES",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettingsFromEnv:
    def test_defaults(self):
        settings = Settings.from_env()
        assert settings.app_env == "development"
        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.printer_webhook_secret is None
        assert settings.admin_api_key is None
        assert settings.admin_email is None
        assert settings.email_adapter == "fake"
        assert settings.notification_max_retries == 3

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "Production")
        monkeypatch.setenv("PRINTER_WEBHOOK_SECRET", "xyz")
        monkeypatch.setenv("ADMIN_EMAIL", "ops@example.com")
        monkeypatch.setenv("SITE_URL", "https://shop.example.com/")
        monkeypatch.setenv("NOTIFICATION_MAX_RETRIES", "5")

        settings = Settings.from_env()

        assert settings.is_production
        assert settings.printer_webhook_secret == "xyz"
        assert settings.admin_email == "ops@example.com"
        assert settings.site_url == "https://shop.example.com"
        assert settings.notification_max_retries == 5

    def test_empty_secret_means_unset(self, monkeypatch):
        monkeypatch.setenv("PRINTER_WEBHOOK_SECRET", "")
        assert Settings.from_env().printer_webhook_secret is None

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_MAX_RETRIES", "many")
        with pytest.raises(ValueError, match="NOTIFICATION_MAX_RETRIES"):
            Settings.from_env()

    def test_site_link(self):
        settings = Settings(site_url="https://shop.example.com/")
        assert settings.site_link("/printer/success") == "https://shop.example.com/printer/success"
