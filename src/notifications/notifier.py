"""Notifier — turns fulfillment events into emails.

Called after the owning transaction has committed. Every message goes
through the outbox under a deterministic dedupe key, so a webhook that is
delivered twice never emails anyone twice. Nothing here raises: a
notification problem is logged and the caller carries on.
"""

from urllib.parse import urlencode

import structlog

from notifications.notification.notification import NotificationType, RecipientType
from notifications.notification.outbox import NotificationOutbox
from notifications.templates import get_template
from ordering.order.order import OrderStatus
from shared.config import Settings
from shared.webhook_auth import WebhookAuthGuard

logger = structlog.get_logger(__name__)

# Customer-facing notification per order status. Statuses not listed send nothing.
_CUSTOMER_NOTIFICATIONS = {
    OrderStatus.SHIPPED: NotificationType.SHIPPING_UPDATE,
    OrderStatus.DELIVERED: NotificationType.DELIVERY_CONFIRMATION,
    OrderStatus.CANCELLED: NotificationType.ORDER_CANCELLATION,
}

SETTLEMENT_ACTIONS = ("agree", "needs-updated", "paid")


def order_dedupe_key(order_id: str, status: OrderStatus, recipient_type: str) -> str:
    return f"order:{order_id}:{status.value}:{recipient_type}"


def settlement_dedupe_key(settlement_id: str) -> str:
    return f"settlement:{settlement_id}:{RecipientType.PRINTER.value}"


class Notifier:
    def __init__(self, outbox: NotificationOutbox, settings: Settings, guard: WebhookAuthGuard) -> None:
        self._outbox = outbox
        self._settings = settings
        self._guard = guard

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def order_status_changed(self, order: dict, status: OrderStatus) -> None:
        """Email the customer and the admin about a new order status."""
        customer_type = _CUSTOMER_NOTIFICATIONS.get(status)
        if customer_type is None:
            return

        context = {
            "order_ref": order["id"][:8],
            "order_url": self._settings.site_link(f"/store/orders/{order['id']}"),
            "status": status.value,
            "customer_email": order.get("email"),
            "tracking_number": order.get("tracking_number"),
            "carrier": order.get("carrier"),
        }

        self._send(
            order_dedupe_key(order["id"], status, RecipientType.CUSTOMER.value),
            order.get("email"),
            get_template(customer_type.value),
            context,
        )

        if not self._settings.admin_email:
            logger.info("ADMIN_EMAIL not configured, skipping admin notice", order_id=order["id"])
            return
        self._send(
            order_dedupe_key(order["id"], status, RecipientType.ADMIN.value),
            self._settings.admin_email,
            get_template(NotificationType.ADMIN_ORDER_UPDATE.value),
            context,
        )

    # -------------------------------------------------------------------
    # Settlements
    # -------------------------------------------------------------------
    def settlement_action_links(self, settlement_id: str) -> dict[str, str]:
        """Links the printer clicks to agree, ask for changes, or confirm payment."""
        query = urlencode(self._guard.link_params())
        links = {}
        for action in SETTLEMENT_ACTIONS:
            url = self._settings.site_link(f"/settlements/{settlement_id}/{action}")
            links[action] = f"{url}?{query}" if query else url
        return links

    def settlement_sent(self, settlement: dict, lines: list[dict]) -> None:
        """Send the settlement summary to the printer."""
        context = {
            "settlement_id": settlement["id"],
            "total_cents": settlement["total_cents"],
            "note": settlement.get("notes"),
            "lines": lines,
            "links": self.settlement_action_links(settlement["id"]),
        }
        self._send(
            settlement_dedupe_key(settlement["id"]),
            settlement.get("printer_email") or self._settings.printer_email,
            get_template(NotificationType.PRINTER_SETTLEMENT.value),
            context,
        )

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _send(self, dedupe_key: str, recipient: str | None, template, context: dict) -> None:
        try:
            rendered = template.render(context)
            notification_id = self._outbox.enqueue(
                dedupe_key=dedupe_key,
                recipient=recipient,
                notification_type=template.notification_type,
                subject=rendered["subject"],
                body=rendered["body"],
                recipient_type=template.recipient_type,
            )
            if notification_id is None:
                return
            status = self._outbox.dispatch(notification_id)
            logger.info("Notification processed", dedupe_key=dedupe_key, status=status)
        except Exception as exc:
            logger.error("Notification could not be queued", dedupe_key=dedupe_key, error=str(exc))
