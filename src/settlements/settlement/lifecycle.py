"""Settlement status machine — printer responses to a settlement.

Each status change, its audit entry and (for PAID) the SETTLED cascade to
the linked orders commit together.
"""

import structlog
from sqlalchemy import select

from ordering.order.order import Order, PayableStatus
from settlements.audit.log import AuditLog
from settlements.audit.printer_action import PrinterActionType
from settlements.settlement.settlement import Settlement, SettlementStatus
from shared.db import Database
from shared.exceptions import NotFound

logger = structlog.get_logger(__name__)

_AUDIT_ACTIONS = {
    SettlementStatus.AGREED: PrinterActionType.AGREED,
    SettlementStatus.ADJUST_REQUESTED: PrinterActionType.NEEDS_UPDATED,
    SettlementStatus.PAID: PrinterActionType.PAID_IN_FULL,
}


class SettlementStatusMachine:
    def __init__(self, database: Database, audit: AuditLog) -> None:
        self._database = database
        self._audit = audit

    def agree(self, settlement_id: str) -> dict:
        return self.transition(settlement_id, SettlementStatus.AGREED)

    def request_adjustment(self, settlement_id: str) -> dict:
        return self.transition(settlement_id, SettlementStatus.ADJUST_REQUESTED)

    def mark_paid(self, settlement_id: str) -> dict:
        return self.transition(settlement_id, SettlementStatus.PAID)

    def transition(self, settlement_id: str, target_status: SettlementStatus) -> dict:
        with self._database.session() as session:
            settlement = session.scalars(
                select(Settlement).where(Settlement.id == settlement_id).with_for_update()
            ).first()
            if settlement is None:
                raise NotFound("Settlement not found")

            previous = settlement.status
            if not settlement.transition_to(target_status):
                logger.info("Settlement already in requested status", settlement_id=settlement_id)
                return settlement.to_dict()

            self._audit.record(session, settlement.id, _AUDIT_ACTIONS[target_status])
            if target_status == SettlementStatus.PAID:
                self._settle_orders(session, settlement)

            snapshot = settlement.to_dict()

        logger.info(
            "Settlement status changed",
            settlement_id=settlement_id,
            from_status=previous,
            to_status=target_status.value,
        )
        return snapshot

    @staticmethod
    def _settle_orders(session, settlement: Settlement) -> None:
        order_ids = settlement.order_ids
        if not order_ids:
            return
        orders = session.scalars(select(Order).where(Order.id.in_(order_ids)).with_for_update()).all()
        for order in orders:
            if order.printer_payable_status == PayableStatus.BATCHED.value:
                order.mark_settled()
        logger.info("Linked orders settled", settlement_id=settlement.id, order_count=len(orders))
