"""Notification aggregate — one outbound email tracked through delivery.

Notifications double as an outbox: a row is written before the email
provider is called, so a failed send stays visible and can be retried.
The ``dedupe_key`` is unique, which is what stops repeated webhook
deliveries from emailing a customer twice.

State Machine:
    PENDING → SENT
    PENDING → FAILED → (retry) → PENDING
"""

from datetime import UTC, datetime, timedelta
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String, Text

from shared.db import Base
from shared.exceptions import ValidationError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    SHIPPING_UPDATE = "ShippingUpdate"
    DELIVERY_CONFIRMATION = "DeliveryConfirmation"
    ORDER_CANCELLATION = "OrderCancellation"
    ADMIN_ORDER_UPDATE = "AdminOrderUpdate"
    PRINTER_SETTLEMENT = "PrinterSettlement"


class NotificationStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"


class RecipientType(Enum):
    CUSTOMER = "Customer"
    ADMIN = "Admin"
    PRINTER = "Printer"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {
        NotificationStatus.SENT,
        NotificationStatus.FAILED,
    },
    NotificationStatus.FAILED: {
        NotificationStatus.PENDING,  # Via retry
    },
    NotificationStatus.SENT: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    dedupe_key = Column(String(255), nullable=False, unique=True)

    # Recipient
    recipient = Column(String(255), nullable=False)
    recipient_type = Column(String(16), nullable=False, default=RecipientType.CUSTOMER.value)

    # Content
    notification_type = Column(String(32), nullable=False)
    subject = Column(String(500), nullable=True)
    body = Column(Text, nullable=False)

    # Status
    status = Column(String(16), nullable=False, default=NotificationStatus.PENDING.value, index=True)

    # Delivery tracking
    provider_message_id = Column(String(255), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    failure_reason = Column(String(500), nullable=True)

    # Retry
    retry_count = Column(Integer, nullable=False, default=0)
    max_retries = Column(Integer, nullable=False, default=3)
    next_attempt_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        dedupe_key,
        recipient,
        notification_type,
        body,
        subject=None,
        recipient_type=RecipientType.CUSTOMER.value,
        max_retries=3,
    ):
        """Create a new notification in PENDING status."""
        now = datetime.now(UTC)
        return cls(
            id=str(uuid4()),
            dedupe_key=dedupe_key,
            recipient=recipient,
            recipient_type=recipient_type,
            notification_type=notification_type,
            subject=subject,
            body=body,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            max_retries=max_retries,
            next_attempt_at=now,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate state machine transition."""
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, provider_message_id=None, sent_at=None):
        """Mark notification as accepted by the email provider."""
        self._assert_can_transition(NotificationStatus.SENT)

        now = sent_at or datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        self.provider_message_id = provider_message_id
        self.sent_at = now
        self.next_attempt_at = None
        self.failure_reason = None
        self.updated_at = now

    def mark_failed(self, reason, backoff_seconds=60, now=None):
        """Mark notification as failed and schedule the next attempt.

        The delay doubles with every failure: backoff, 2×backoff, 4×backoff...
        """
        self._assert_can_transition(NotificationStatus.FAILED)

        now = now or datetime.now(UTC)
        self.status = NotificationStatus.FAILED.value
        self.failure_reason = (reason or "Unknown dispatch error")[:500]
        self.retry_count = self.retry_count + 1
        if self.can_retry():
            self.next_attempt_at = now + timedelta(seconds=backoff_seconds * 2 ** (self.retry_count - 1))
        else:
            self.next_attempt_at = None
        self.updated_at = now

    def can_retry(self):
        return NotificationStatus(self.status) == NotificationStatus.FAILED and self.retry_count < self.max_retries

    def retry(self):
        """Put a failed notification back in the queue."""
        if NotificationStatus(self.status) != NotificationStatus.FAILED:
            raise ValidationError({"status": ["Only failed notifications can be retried"]})
        if self.retry_count >= self.max_retries:
            raise ValidationError({"retry_count": ["Maximum retry attempts exceeded"]})

        self.status = NotificationStatus.PENDING.value
        self.failure_reason = None
        self.updated_at = datetime.now(UTC)

    def to_dict(self):
        return {
            "id": self.id,
            "dedupe_key": self.dedupe_key,
            "recipient": self.recipient,
            "recipient_type": self.recipient_type,
            "notification_type": self.notification_type,
            "subject": self.subject,
            "status": self.status,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "failure_reason": self.failure_reason,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }
