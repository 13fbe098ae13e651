"""Order cancellation template — sent when an order is cancelled."""

from notifications.notification.notification import NotificationType, RecipientType


class OrderCancellationTemplate:
    notification_type = NotificationType.ORDER_CANCELLATION.value
    recipient_type = RecipientType.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = context.get("order_ref", "N/A")
        order_url = context.get("order_url", "")
        return {
            "subject": "Your order has been cancelled",
            "body": (
                f"Order #{order_ref} has been CANCELLED.\n\n"
                "If you did not request this cancellation or have any "
                "questions, please contact us immediately.\n\n"
                f"View your order: {order_url}"
            ),
        }
