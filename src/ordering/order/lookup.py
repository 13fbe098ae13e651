"""Read-only order lookups."""

from ordering.order.order import Order
from shared.db import Database
from shared.exceptions import NotFound


class OrderLookup:
    def __init__(self, database: Database) -> None:
        self._database = database

    def get_order(self, order_id: str) -> dict:
        """Return ``{"order": ..., "items": [...]}`` for one order."""
        with self._database.session() as session:
            order = session.get(Order, order_id)
            if order is None:
                raise NotFound("Order not found")
            return {
                "order": order.to_dict(),
                "items": [item.to_dict() for item in order.items],
            }
