"""Email channel selection.

The fake adapter is the default so development and tests never send real
mail. Set ``EMAIL_ADAPTER=resend`` (with ``RESEND_API_KEY``) in production.
"""

from notifications.channel.email_port import EmailPort
from shared.config import Settings


def build_email_channel(settings: Settings) -> EmailPort:
    """Return the email adapter named by ``settings.email_adapter``."""
    if settings.email_adapter == "fake":
        from notifications.channel.fake_email import FakeEmailAdapter

        return FakeEmailAdapter()
    if settings.email_adapter == "resend":
        from notifications.channel.resend_adapter import ResendEmailAdapter

        return ResendEmailAdapter(api_key=settings.resend_api_key, sender=settings.email_from)
    raise ValueError(f"Unknown email adapter: {settings.email_adapter}")
