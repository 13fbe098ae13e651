"""Shared-secret authorization for the printer webhooks and the admin API.

The printer authenticates with a shared secret, sent either in the
``x-printer-secret`` header (system-to-system callers) or as a ``token``
query parameter (plain links clicked from notification emails). Admin
callers (the studio dashboard, the notification cron) send
``x-admin-key`` and have no query-string form.

When no secret is configured the guard lets every request through. This
keeps older printer integrations and local development working and is not
a recommended production setup.
"""

import hmac

import structlog
from fastapi import Request

from shared.exceptions import Unauthorized

logger = structlog.get_logger(__name__)

SECRET_HEADER = "x-printer-secret"
TOKEN_PARAM = "token"
ADMIN_HEADER = "x-admin-key"


class WebhookAuthGuard:
    def __init__(
        self,
        secret: str | None,
        header: str = SECRET_HEADER,
        token_param: str | None = TOKEN_PARAM,
    ) -> None:
        self._secret = secret or None
        self._header = header
        self._token_param = token_param

    @property
    def enabled(self) -> bool:
        return self._secret is not None

    def check(self, header_value: str | None = None, query_token: str | None = None) -> None:
        """Raise ``Unauthorized`` unless the presented secret matches.

        The header wins over the query parameter when both are present.
        """
        if self._secret is None:
            return

        presented = header_value or query_token
        if not presented or not hmac.compare_digest(presented.encode(), self._secret.encode()):
            logger.warning(
                "Rejected unauthenticated call",
                header=self._header,
                via="header" if header_value else ("token" if query_token else "none"),
            )
            raise Unauthorized()

    def check_request(self, request: Request) -> None:
        self.check(
            header_value=request.headers.get(self._header),
            query_token=request.query_params.get(self._token_param) if self._token_param else None,
        )

    def link_params(self) -> dict[str, str]:
        """Query parameters to embed in links the printer will click."""
        if self._secret and self._token_param:
            return {self._token_param: self._secret}
        return {}
