"""Delivery confirmation template — sent when the order is delivered."""

from notifications.notification.notification import NotificationType, RecipientType


class DeliveryConfirmationTemplate:
    notification_type = NotificationType.DELIVERY_CONFIRMATION.value
    recipient_type = RecipientType.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = context.get("order_ref", "N/A")
        order_url = context.get("order_url", "")
        return {
            "subject": "Your order was delivered",
            "body": (
                f"Order #{order_ref} was marked as DELIVERED.\n\n"
                "We hope you love your new gear! If you have any issues, "
                "please don't hesitate to reach out.\n\n"
                f"View your order: {order_url}\n\n"
                "Thank you for your support!"
            ),
        }
