"""Tracking updates without a status change."""

import structlog

from ordering.order.order import DEFAULT_CARRIER
from ordering.order.transition import load_order_for_update
from shared.db import Database
from shared.exceptions import ValidationError

logger = structlog.get_logger(__name__)


class TrackingRecorder:
    def __init__(self, database: Database) -> None:
        self._database = database

    def update_tracking(self, order_id: str, tracking_number: str, carrier: str | None = DEFAULT_CARRIER) -> dict:
        if not order_id:
            raise ValidationError({"orderId": ["Order id is required"]})
        if not tracking_number:
            raise ValidationError({"trackingNumber": ["Tracking number is required"]})

        with self._database.session() as session:
            order = load_order_for_update(session, order_id)
            order.record_tracking(tracking_number, carrier or DEFAULT_CARRIER)
            snapshot = order.to_dict()

        logger.info("Tracking recorded", order_id=order_id, carrier=snapshot["carrier"])
        return snapshot
