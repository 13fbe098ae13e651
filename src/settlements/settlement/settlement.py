"""Settlement aggregate — a batch of printer payables.

A settlement is created once per batch with its contractual total already
fixed; afterwards only its status moves. The financial columns and the
per-order link rows are write-once and the ORM refuses to update them.

State Machine:
    SENT → AGREED
    SENT → ADJUST_REQUESTED
    {SENT, AGREED, ADJUST_REQUESTED} → PAID   (terminal)
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, event, inspect
from sqlalchemy.orm import relationship

from shared.db import Base
from shared.exceptions import ValidationError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class SettlementStatus(Enum):
    SENT = "SENT"
    AGREED = "AGREED"
    ADJUST_REQUESTED = "ADJUST_REQUESTED"
    PAID = "PAID"


_VALID_TRANSITIONS = {
    SettlementStatus.SENT: {
        SettlementStatus.AGREED,
        SettlementStatus.ADJUST_REQUESTED,
        SettlementStatus.PAID,
    },
    SettlementStatus.AGREED: {SettlementStatus.PAID},
    SettlementStatus.ADJUST_REQUESTED: {SettlementStatus.PAID},
    SettlementStatus.PAID: set(),  # terminal
}

_FROZEN_COLUMNS = ("printer_email", "subtotal_cents", "total_cents")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
class SettlementOrderLink(Base):
    """One order's frozen payable inside a settlement."""

    __tablename__ = "settlement_orders"
    __table_args__ = (UniqueConstraint("settlement_id", "order_id", name="uq_settlement_orders_pair"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    settlement_id = Column(String(36), ForeignKey("settlements.id"), nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    calc_detail_json = Column(JSON, nullable=False)

    def to_dict(self) -> dict:
        return {
            "settlement_id": self.settlement_id,
            "order_id": self.order_id,
            "amount_cents": self.amount_cents,
            "calc_detail_json": self.calc_detail_json,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
class Settlement(Base):
    __tablename__ = "settlements"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    status = Column(String(32), nullable=False, default=SettlementStatus.SENT.value, index=True)
    printer_email = Column(String(255), nullable=False)
    subtotal_cents = Column(Integer, nullable=False)
    total_cents = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    links = relationship(SettlementOrderLink, lazy="selectin", order_by=SettlementOrderLink.id)

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, printer_email: str, amounts: list[int], notes: str | None = None) -> "Settlement":
        """Open a settlement whose total is the sum of ``amounts``."""
        total = sum(amounts)
        now = datetime.now(UTC)
        return cls(
            id=str(uuid4()),
            status=SettlementStatus.SENT.value,
            printer_email=printer_email,
            subtotal_cents=total,
            total_cents=total,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    def add_order(self, order_id: str, amount_cents: int, calc_detail: dict) -> SettlementOrderLink:
        link = SettlementOrderLink(
            settlement_id=self.id,
            order_id=order_id,
            amount_cents=amount_cents,
            calc_detail_json=calc_detail,
        )
        self.links.append(link)
        return link

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> SettlementStatus:
        return SettlementStatus(self.status)

    def _assert_can_transition(self, target_status: SettlementStatus) -> None:
        current = self.current_status
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def transition_to(self, target_status: SettlementStatus) -> bool:
        """Move to ``target_status``. Returns False when already there."""
        if self.current_status == target_status:
            return False
        self._assert_can_transition(target_status)
        self.status = target_status.value
        self.updated_at = datetime.now(UTC)
        return True

    @property
    def order_ids(self) -> list[str]:
        return [link.order_id for link in self.links]

    def to_dict(self, include_links: bool = False) -> dict:
        data = {
            "id": self.id,
            "status": self.status,
            "printer_email": self.printer_email,
            "subtotal_cents": self.subtotal_cents,
            "total_cents": self.total_cents,
            "notes": self.notes,
            "order_count": len(self.links),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_links:
            data["orders"] = [link.to_dict() for link in self.links]
        return data


# ---------------------------------------------------------------------------
# Write-once guards
# ---------------------------------------------------------------------------
@event.listens_for(Settlement, "before_update")
def _refuse_financial_changes(mapper, connection, target):  # noqa: ARG001
    state = inspect(target)
    changed = [name for name in _FROZEN_COLUMNS if state.attrs[name].history.has_changes()]
    if changed:
        raise ValidationError({name: ["Settlement amounts are fixed once sent"] for name in changed})


@event.listens_for(SettlementOrderLink, "before_update")
def _refuse_link_changes(mapper, connection, target):  # noqa: ARG001
    raise ValidationError({"settlement_orders": ["Settlement order links are write-once"]})


@event.listens_for(SettlementOrderLink, "before_delete")
def _refuse_link_deletes(mapper, connection, target):  # noqa: ARG001
    raise ValidationError({"settlement_orders": ["Settlement order links are write-once"]})
