"""Resend email adapter — delivers mail through the Resend HTTP API."""

import httpx
import structlog

from notifications.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
DEFAULT_FROM = "PrintFlow <orders@printflow.local>"


class ResendEmailAdapter(EmailPort):
    def __init__(
        self,
        api_key: str,
        sender: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not api_key:
            raise ValueError("RESEND_API_KEY is required for the resend email adapter")
        self._sender = sender or DEFAULT_FROM
        self._client = httpx.Client(
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        payload = {
            "from": self._sender,
            "to": [to],
            "subject": subject,
            "text": body,
        }
        if html_body:
            payload["html"] = html_body

        try:
            response = self._client.post(RESEND_API_URL, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Resend request failed", to=to, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        if response.is_error:
            error = f"Resend returned {response.status_code}: {response.text[:200]}"
            logger.warning("Resend rejected email", to=to, status_code=response.status_code)
            return {"message_id": None, "status": "failed", "error": error}

        message_id = response.json().get("id")
        return {"message_id": message_id, "status": "sent"}

    def close(self) -> None:
        self._client.close()
