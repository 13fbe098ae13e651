"""Template registry — maps NotificationType to template classes.

Each template knows its recipient type and how to render a subject and
plain-text body from context data.
"""

from notifications.notification.notification import NotificationType
from notifications.templates.admin_order_update import AdminOrderUpdateTemplate
from notifications.templates.delivery_confirmation import (
    DeliveryConfirmationTemplate,
)
from notifications.templates.order_cancellation import OrderCancellationTemplate
from notifications.templates.printer_settlement import PrinterSettlementTemplate
from notifications.templates.shipping_update import ShippingUpdateTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.SHIPPING_UPDATE.value: ShippingUpdateTemplate,
    NotificationType.DELIVERY_CONFIRMATION.value: DeliveryConfirmationTemplate,
    NotificationType.ORDER_CANCELLATION.value: OrderCancellationTemplate,
    NotificationType.ADMIN_ORDER_UPDATE.value: AdminOrderUpdateTemplate,
    NotificationType.PRINTER_SETTLEMENT.value: PrinterSettlementTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
