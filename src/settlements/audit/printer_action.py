"""PrinterAction — append-only audit trail of printer settlement actions.

Rows exist for dispute resolution. They are inserted in the same
transaction as the settlement status change they describe and are never
updated or deleted.
"""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, event

from shared.db import Base
from shared.exceptions import ValidationError


class PrinterActionType(Enum):
    AGREED = "AGREED"
    NEEDS_UPDATED = "NEEDS_UPDATED"
    PAID_IN_FULL = "PAID_IN_FULL"


class PrinterAction(Base):
    __tablename__ = "printer_actions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    settlement_id = Column(String(36), ForeignKey("settlements.id"), nullable=False, index=True)
    action = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "settlement_id": self.settlement_id,
            "action": self.action,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@event.listens_for(PrinterAction, "before_update")
def _refuse_update(mapper, connection, target):  # noqa: ARG001
    raise ValidationError({"printer_actions": ["Audit entries cannot be modified"]})


@event.listens_for(PrinterAction, "before_delete")
def _refuse_delete(mapper, connection, target):  # noqa: ARG001
    raise ValidationError({"printer_actions": ["Audit entries cannot be deleted"]})
