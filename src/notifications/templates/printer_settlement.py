"""Printer settlement template — the batch summary with action links."""

from notifications.notification.notification import NotificationType, RecipientType


def format_cents(cents: int) -> str:
    return f"${cents / 100:.2f}"


class PrinterSettlementTemplate:
    notification_type = NotificationType.PRINTER_SETTLEMENT.value
    recipient_type = RecipientType.PRINTER.value

    @staticmethod
    def render(context: dict) -> dict:
        settlement_id = context.get("settlement_id", "N/A")
        total = format_cents(context.get("total_cents", 0))
        lines = context.get("lines", [])
        links = context.get("links", {})
        note = context.get("note")

        order_lines = "\n".join(
            f"  - Order {line['order_id']}: {format_cents(line['amount_cents'])}" for line in lines
        )
        body = f"Settlement {settlement_id}\n\nTotal: {total}\n\nOrders:\n{order_lines}\n"
        if note:
            body += f"\nNote: {note}\n"
        body += (
            "\nActions:\n"
            f"  Agree: {links.get('agree', '')}\n"
            f"  Needs updated: {links.get('needs-updated', '')}\n"
            f"  Paid in full: {links.get('paid', '')}\n"
        )

        return {
            "subject": f"Settlement {settlement_id} - Total {total}",
            "body": body,
        }
