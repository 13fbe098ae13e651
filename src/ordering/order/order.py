"""Order aggregate — a customer purchase moving through printer fulfillment.

Orders arrive from checkout already PAID, together with frozen line-item
cost snapshots. From then on they are mutated only by the order status
machine (lifecycle) and by settlement batching/payment (payable status).

State Machine:
    PAID → LABEL_PURCHASED → RECEIVED_BY_PRINTER → SHIPPED → DELIVERED
    {PAID, LABEL_PURCHASED, RECEIVED_BY_PRINTER, SHIPPED} → CANCELLED

Payable status (advance-only):
    UNBATCHED → BATCHED → SETTLED
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from shared.db import Base
from shared.exceptions import ValidationError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PAID = "PAID"
    LABEL_PURCHASED = "LABEL_PURCHASED"
    RECEIVED_BY_PRINTER = "RECEIVED_BY_PRINTER"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PayableStatus(Enum):
    UNBATCHED = "UNBATCHED"
    BATCHED = "BATCHED"
    SETTLED = "SETTLED"


_VALID_TRANSITIONS = {
    OrderStatus.PAID: {OrderStatus.LABEL_PURCHASED, OrderStatus.CANCELLED},
    OrderStatus.LABEL_PURCHASED: {OrderStatus.RECEIVED_BY_PRINTER, OrderStatus.CANCELLED},
    OrderStatus.RECEIVED_BY_PRINTER: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # terminal
    OrderStatus.CANCELLED: set(),  # terminal
}

_PAYABLE_TRANSITIONS = {
    PayableStatus.UNBATCHED: {PayableStatus.BATCHED},
    PayableStatus.BATCHED: {PayableStatus.SETTLED},
    PayableStatus.SETTLED: set(),
}

DEFAULT_CARRIER = "USPS"


def parse_order_status(value: str) -> OrderStatus:
    """Turn an inbound status string into an ``OrderStatus``."""
    try:
        return OrderStatus((value or "").strip().upper())
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError({"status": [f"Unknown status {value!r}, expected one of: {allowed}"]}) from None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
class OrderItem(Base):
    """A line item snapshot. Costs are frozen when the order is placed."""

    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("qty > 0", name="ck_order_items_qty_positive"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    sku = Column(String(100), nullable=True)
    title = Column(String(255), nullable=True)
    qty = Column(Integer, nullable=False)
    blank_cost_cents_snapshot = Column(Integer, nullable=False, default=0)
    print_cost_cents_snapshot = Column(Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "sku": self.sku,
            "title": self.title,
            "qty": self.qty,
            "blank_cost_cents_snapshot": self.blank_cost_cents_snapshot,
            "print_cost_cents_snapshot": self.print_cost_cents_snapshot,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email = Column(String(255), nullable=False)
    status = Column(String(32), nullable=False, default=OrderStatus.PAID.value, index=True)
    tracking_number = Column(String(255), nullable=True)
    carrier = Column(String(100), nullable=True)
    base_printer_fee_cents = Column(Integer, nullable=True)
    printer_payable_status = Column(
        String(16),
        nullable=False,
        default=PayableStatus.UNBATCHED.value,
        index=True,
    )
    subtotal_cents = Column(Integer, nullable=False, default=0)
    shipping_cents = Column(Integer, nullable=False, default=0)
    tax_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    version = Column(Integer, nullable=False)

    items = relationship(
        OrderItem,
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        email: str,
        items_data: list[dict],
        base_printer_fee_cents: int | None = None,
        shipping_cents: int = 0,
        tax_cents: int = 0,
        subtotal_cents: int | None = None,
        order_id: str | None = None,
    ) -> "Order":
        """Record a PAID order handed over by checkout."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            id=order_id or str(uuid4()),
            email=email,
            status=OrderStatus.PAID.value,
            base_printer_fee_cents=base_printer_fee_cents,
            printer_payable_status=PayableStatus.UNBATCHED.value,
            shipping_cents=shipping_cents,
            tax_cents=tax_cents,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            if item_data.get("qty", 0) <= 0:
                raise ValidationError({"qty": ["Quantity must be a positive integer"]})
            order.items.append(OrderItem(**item_data))

        order.subtotal_cents = subtotal_cents if subtotal_cents is not None else 0
        order.total_cents = order.subtotal_cents + shipping_cents + tax_cents
        return order

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[self.current_status]

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = self.current_status
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def transition_to(
        self,
        target_status: OrderStatus,
        tracking_number: str | None = None,
        carrier: str | None = None,
    ) -> bool:
        """Move to ``target_status``. Returns False when already there.

        Tracking details supplied alongside are recorded either way. A
        carrier on its own corrects the carrier of the existing tracking.
        """
        if tracking_number:
            self.record_tracking(tracking_number, carrier)
        elif carrier:
            self.carrier = carrier
            self.updated_at = datetime.now(UTC)

        if self.current_status == target_status:
            return False

        self._assert_can_transition(target_status)
        self.status = target_status.value
        self.updated_at = datetime.now(UTC)
        return True

    def record_tracking(self, tracking_number: str, carrier: str | None = None) -> None:
        if not tracking_number:
            raise ValidationError({"tracking_number": ["Tracking number is required"]})
        self.tracking_number = tracking_number
        self.carrier = carrier or self.carrier or DEFAULT_CARRIER
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Payable status
    # -------------------------------------------------------------------
    def _advance_payable(self, target: PayableStatus) -> None:
        current = PayableStatus(self.printer_payable_status)
        if target not in _PAYABLE_TRANSITIONS[current]:
            raise ValidationError(
                {"printer_payable_status": [f"Cannot move payable status from {current.value} to {target.value}"]}
            )
        self.printer_payable_status = target.value
        self.updated_at = datetime.now(UTC)

    def mark_batched(self) -> None:
        self._advance_payable(PayableStatus.BATCHED)

    def mark_settled(self) -> None:
        self._advance_payable(PayableStatus.SETTLED)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "status": self.status,
            "tracking_number": self.tracking_number,
            "carrier": self.carrier,
            "base_printer_fee_cents": self.base_printer_fee_cents,
            "printer_payable_status": self.printer_payable_status,
            "subtotal_cents": self.subtotal_cents,
            "shipping_cents": self.shipping_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
