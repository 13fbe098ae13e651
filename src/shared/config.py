"""Environment-driven settings for the PrintFlow service."""

import os
from dataclasses import dataclass

DEFAULT_DATABASE_URL = "sqlite:///data/printflow.db"
DEFAULT_SITE_URL = "http://localhost:8000"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_env: str = "development"
    database_url: str = DEFAULT_DATABASE_URL
    # Unset or empty means the printer webhooks are open (legacy behaviour)
    printer_webhook_secret: str | None = None
    # Unset or empty means the admin routes are open (local development)
    admin_api_key: str | None = None
    admin_email: str | None = None
    printer_email: str = "printer@example.com"
    site_url: str = DEFAULT_SITE_URL
    email_adapter: str = "fake"
    resend_api_key: str | None = None
    email_from: str | None = None
    notification_max_retries: int = 3
    notification_retry_backoff_seconds: int = 60

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def site_link(self, path: str) -> str:
        return f"{self.site_url.rstrip('/')}/{path.lstrip('/')}"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            app_env=(os.environ.get("APP_ENV") or "development").lower(),
            database_url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            printer_webhook_secret=os.environ.get("PRINTER_WEBHOOK_SECRET") or None,
            admin_api_key=os.environ.get("ADMIN_API_KEY") or None,
            admin_email=os.environ.get("ADMIN_EMAIL") or None,
            printer_email=os.environ.get("PRINTER_EMAIL", "printer@example.com"),
            site_url=(os.environ.get("SITE_URL") or DEFAULT_SITE_URL).rstrip("/"),
            email_adapter=(os.environ.get("EMAIL_ADAPTER") or "fake").lower(),
            resend_api_key=os.environ.get("RESEND_API_KEY") or None,
            email_from=os.environ.get("EMAIL_FROM") or None,
            notification_max_retries=_int_env("NOTIFICATION_MAX_RETRIES", 3),
            notification_retry_backoff_seconds=_int_env("NOTIFICATION_RETRY_BACKOFF_SECONDS", 60),
        )
