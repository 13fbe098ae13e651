"""Admin order update template — internal notice of a status change."""

from notifications.notification.notification import NotificationType, RecipientType


class AdminOrderUpdateTemplate:
    notification_type = NotificationType.ADMIN_ORDER_UPDATE.value
    recipient_type = RecipientType.ADMIN.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = context.get("order_ref", "N/A")
        status = context.get("status", "UNKNOWN")
        customer = context.get("customer_email", "N/A")

        lines = [
            f"Order #{order_ref} has been marked as {status}.",
            "",
            f"Customer: {customer}",
        ]
        if status == "SHIPPED":
            lines.append(f"Tracking: {context.get('tracking_number') or 'Not provided'}")

        return {
            "subject": f"Order {status} - #{order_ref}",
            "body": "\n".join(lines),
        }
