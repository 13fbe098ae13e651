"""Settlement batching — turn a set of unbatched orders into one settlement.

Everything that touches the database happens in a single unit of work:
the settlement, its order links and the BATCHED flags either all commit or
none do. The printer email goes out after the commit.
"""

import structlog
from sqlalchemy import select

from ordering.order.order import Order, PayableStatus
from settlements.settlement import calculator
from settlements.settlement.settlement import Settlement, SettlementOrderLink
from shared.config import Settings
from shared.db import Database
from shared.exceptions import NotFound, ValidationError

logger = structlog.get_logger(__name__)


class SettlementBatcher:
    def __init__(self, database: Database, settings: Settings, notifier=None) -> None:
        self._database = database
        self._settings = settings
        self._notifier = notifier

    def create_settlement(self, order_ids: list[str], note: str | None = None) -> dict:
        """Batch ``order_ids`` into a SENT settlement and email the printer.

        Orders that are already batched or settled are skipped. If that
        leaves nothing and every requested order already belongs to the
        same settlement, that settlement is returned unchanged so a retried
        request is harmless.
        """
        order_ids = list(dict.fromkeys(oid for oid in (order_ids or []) if oid))
        if not order_ids:
            raise ValidationError({"orderIds": ["At least one order id is required"]})

        with self._database.session() as session:
            orders = session.scalars(select(Order).where(Order.id.in_(order_ids)).with_for_update()).all()
            by_id = {order.id: order for order in orders}
            missing = [oid for oid in order_ids if oid not in by_id]
            if missing:
                raise NotFound(f"Orders not found: {', '.join(missing)}")

            eligible = [
                by_id[oid]
                for oid in order_ids
                if by_id[oid].printer_payable_status == PayableStatus.UNBATCHED.value
            ]
            if not eligible:
                existing = self._settlement_covering(session, order_ids)
                if existing is None:
                    raise ValidationError({"orderIds": ["None of the orders are awaiting settlement"]})
                logger.info("Settlement already exists for orders", settlement_id=existing.id)
                return existing.to_dict()

            skipped = len(order_ids) - len(eligible)
            if skipped:
                logger.info("Skipping orders that are already batched", skipped=skipped)

            lines = []
            for order in eligible:
                detail = calculator.breakdown(order, order.items)
                lines.append({"order": order, "amount_cents": detail["amount_cents"], "detail": detail})

            settlement = Settlement.create(
                printer_email=self._settings.printer_email,
                amounts=[line["amount_cents"] for line in lines],
                notes=note,
            )
            session.add(settlement)
            # Links reference the settlement row, so it must exist first
            session.flush()

            for line in lines:
                settlement.add_order(line["order"].id, line["amount_cents"], line["detail"])
                line["order"].mark_batched()

            snapshot = settlement.to_dict()
            email_lines = [{"order_id": line["order"].id, "amount_cents": line["amount_cents"]} for line in lines]

        logger.info(
            "Settlement created",
            settlement_id=snapshot["id"],
            order_count=snapshot["order_count"],
            total_cents=snapshot["total_cents"],
        )
        if self._notifier is not None:
            self._notifier.settlement_sent(snapshot, email_lines)
        return snapshot

    @staticmethod
    def _settlement_covering(session, order_ids: list[str]) -> Settlement | None:
        links = session.scalars(select(SettlementOrderLink).where(SettlementOrderLink.order_id.in_(order_ids))).all()
        settlement_ids = {link.settlement_id for link in links}
        if len(settlement_ids) != 1 or {link.order_id for link in links} != set(order_ids):
            return None
        return session.get(Settlement, settlement_ids.pop())
