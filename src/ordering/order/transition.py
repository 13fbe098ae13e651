"""Order status machine — the single entry point for order status changes.

Each call is one unit of work: lock the order row, validate the move
against the transition table, persist, commit. Notifications go out only
after the commit, and a notification failure never fails the call.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from ordering.order.order import Order, OrderStatus, parse_order_status
from shared.db import Database
from shared.exceptions import NotFound

logger = structlog.get_logger(__name__)


def load_order_for_update(session: Session, order_id: str) -> Order:
    """Fetch an order with a row lock (ignored by SQLite) or raise NotFound."""
    if not order_id:
        raise NotFound("Order not found")
    order = session.scalars(select(Order).where(Order.id == order_id).with_for_update()).first()
    if order is None:
        raise NotFound("Order not found")
    return order


class OrderStatusMachine:
    def __init__(self, database: Database, notifier=None) -> None:
        self._database = database
        self._notifier = notifier

    def transition(
        self,
        order_id: str,
        target_status: OrderStatus | str,
        tracking_number: str | None = None,
        carrier: str | None = None,
    ) -> dict:
        """Move an order to ``target_status`` and return its new state.

        Repeating the order's current status changes nothing (beyond
        recording any tracking details supplied) and sends nothing.
        """
        if not isinstance(target_status, OrderStatus):
            target_status = parse_order_status(target_status)

        with self._database.session() as session:
            order = load_order_for_update(session, order_id)
            previous = order.status
            changed = order.transition_to(target_status, tracking_number=tracking_number, carrier=carrier)
            snapshot = order.to_dict()

        if not changed:
            logger.info("Order already in requested status", order_id=order_id, status=target_status.value)
            return snapshot

        logger.info(
            "Order status changed",
            order_id=order_id,
            from_status=previous,
            to_status=target_status.value,
        )
        if self._notifier is not None:
            self._notifier.order_status_changed(snapshot, target_status)
        return snapshot
