"""Shipping update template — sent to the customer when the printer ships."""

from urllib.parse import quote

from notifications.notification.notification import NotificationType, RecipientType

TRACKING_URLS = {
    "USPS": "https://tools.usps.com/go/TrackConfirmAction?tLabels={tracking}",
    "UPS": "https://www.ups.com/track?tracknum={tracking}",
    "FEDEX": "https://www.fedex.com/fedextrack/?trknbr={tracking}",
    "DHL": "https://www.dhl.com/us-en/home/tracking.html?tracking-id={tracking}",
}


def tracking_url(tracking_number: str, carrier: str | None = None) -> str:
    """Carrier tracking page for a shipment. Unknown carriers fall back to USPS."""
    pattern = TRACKING_URLS.get((carrier or "USPS").upper(), TRACKING_URLS["USPS"])
    return pattern.format(tracking=quote(tracking_number, safe=""))


class ShippingUpdateTemplate:
    notification_type = NotificationType.SHIPPING_UPDATE.value
    recipient_type = RecipientType.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = context.get("order_ref", "N/A")
        order_url = context.get("order_url", "")
        tracking_number = context.get("tracking_number")

        if tracking_number:
            carrier = context.get("carrier") or "USPS"
            tracking_info = (
                f"Carrier: {carrier}\n"
                f"Tracking Number: {tracking_number}\n"
                f"Track your package: {tracking_url(tracking_number, carrier)}\n"
            )
        else:
            tracking_info = "Your order is on its way! You will receive tracking information soon.\n"

        return {
            "subject": "Your order has shipped!",
            "body": (
                f"Great news! Your order #{order_ref} is on its way to you.\n\n"
                f"{tracking_info}\n"
                f"View your order: {order_url}\n\n"
                "Thank you for your order!"
            ),
        }
