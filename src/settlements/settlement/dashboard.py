"""Read models for the settlements dashboard."""

from sqlalchemy import func, select

from ordering.order.order import Order, OrderStatus, PayableStatus
from settlements.audit.log import AuditLog
from settlements.settlement import calculator
from settlements.settlement.settlement import Settlement, SettlementStatus
from shared.db import Database
from shared.exceptions import NotFound


class SettlementDashboard:
    def __init__(self, database: Database, audit: AuditLog) -> None:
        self._database = database
        self._audit = audit

    def unbatched_summary(self) -> dict:
        """Orders with a purchased label still waiting to be settled."""
        with self._database.session() as session:
            orders = session.scalars(
                select(Order)
                .where(
                    Order.status == OrderStatus.LABEL_PURCHASED.value,
                    Order.printer_payable_status == PayableStatus.UNBATCHED.value,
                )
                .order_by(Order.created_at)
            ).all()
            rows = [{**order.to_dict(), "payable_cents": calculator.payable(order, order.items)} for order in orders]
            pending = session.scalar(
                select(func.count()).select_from(Settlement).where(Settlement.status != SettlementStatus.PAID.value)
            )

        return {
            "orders": rows,
            "unbatched_count": len(rows),
            "total_owed_cents": sum(row["payable_cents"] for row in rows),
            "pending_settlements": pending or 0,
        }

    def list_settlements(self) -> list[dict]:
        """All settlements, newest first."""
        with self._database.session() as session:
            settlements = session.scalars(select(Settlement).order_by(Settlement.created_at.desc())).all()
            return [settlement.to_dict() for settlement in settlements]

    def get_settlement(self, settlement_id: str) -> dict:
        with self._database.session() as session:
            settlement = session.get(Settlement, settlement_id)
            if settlement is None:
                raise NotFound("Settlement not found")
            data = settlement.to_dict(include_links=True)
            data["actions"] = self._audit.history_in(session, settlement_id)
            return data
