"""Notification outbox — persist first, then hand the message to the channel.

A notification row is committed before the provider is called. A dispatch
leaves the row SENT or FAILED. FAILED rows are picked up again by
``process_due`` once their backoff has elapsed, and so are PENDING rows
whose dispatch never completed (the process died, or the call raised before
the provider was reached).
"""

from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notifications.channel.email_port import EmailPort
from notifications.notification.notification import (
    Notification,
    NotificationStatus,
    RecipientType,
)
from shared.db import Database
from shared.exceptions import NotFound, NotificationError, PersistenceError

logger = structlog.get_logger(__name__)


class NotificationOutbox:
    def __init__(
        self,
        database: Database,
        email: EmailPort,
        max_retries: int = 3,
        backoff_seconds: int = 60,
    ) -> None:
        self._database = database
        self._email = email
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    # -------------------------------------------------------------------
    # Enqueue
    # -------------------------------------------------------------------
    def enqueue(
        self,
        dedupe_key: str,
        recipient: str,
        notification_type: str,
        body: str,
        subject: str | None = None,
        recipient_type: str = RecipientType.CUSTOMER.value,
    ) -> str | None:
        """Store a PENDING notification and return its id.

        Returns None when a notification with the same ``dedupe_key``
        already exists.
        """
        if not recipient:
            raise NotificationError(f"No recipient for notification {dedupe_key}")

        with self._database.session() as session:
            if self._find_by_key(session, dedupe_key) is not None:
                logger.info("Duplicate notification suppressed", dedupe_key=dedupe_key)
                return None

            notification = Notification.create(
                dedupe_key=dedupe_key,
                recipient=recipient,
                recipient_type=recipient_type,
                notification_type=notification_type,
                subject=subject,
                body=body,
                max_retries=self.max_retries,
            )
            session.add(notification)
            try:
                session.flush()
            except IntegrityError:
                # Another request inserted the same key between our check and flush
                session.rollback()
                logger.info("Duplicate notification suppressed", dedupe_key=dedupe_key)
                return None

            logger.info(
                "Notification enqueued",
                notification_id=notification.id,
                notification_type=notification_type,
                recipient_type=recipient_type,
            )
            return notification.id

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------
    def dispatch(self, notification_id: str) -> str:
        """Send one PENDING notification. Returns its resulting status."""
        with self._database.session() as session:
            notification = session.get(Notification, notification_id)
            if notification is None:
                raise NotFound(f"Notification {notification_id} not found")

            if NotificationStatus(notification.status) != NotificationStatus.PENDING:
                logger.info(
                    "Notification not in PENDING status, skipping dispatch",
                    notification_id=notification_id,
                    status=notification.status,
                )
                return notification.status

            self._deliver(notification, datetime.now(UTC))
            return notification.status

    def process_due(self, now: datetime | None = None) -> dict:
        """Re-send every notification that is due.

        Due means FAILED with retries left and past its backoff, or PENDING
        and untouched for longer than one backoff period (a dispatch that
        never finished). Each row is delivered in its own unit of work, so
        a storage error on one row never undoes the SENT mark of another.
        """
        now = now or datetime.now(UTC)
        stale_before = now - timedelta(seconds=self.backoff_seconds)

        with self._database.session() as session:
            due_ids = session.scalars(
                select(Notification.id)
                .where(
                    or_(
                        and_(
                            Notification.status == NotificationStatus.FAILED.value,
                            Notification.retry_count < Notification.max_retries,
                            Notification.next_attempt_at <= now,
                        ),
                        and_(
                            Notification.status == NotificationStatus.PENDING.value,
                            Notification.updated_at <= stale_before,
                        ),
                    )
                )
                .order_by(Notification.created_at)
            ).all()

        sent = failed = 0
        for notification_id in due_ids:
            try:
                status = self._redeliver(notification_id, now)
            except PersistenceError as exc:
                logger.error("Could not record notification delivery", notification_id=notification_id, error=str(exc))
                failed += 1
                continue
            if status == NotificationStatus.SENT.value:
                sent += 1
            elif status == NotificationStatus.FAILED.value:
                failed += 1

        processed = sent + failed
        if processed:
            logger.info("Processed due notifications", processed=processed, sent=sent, failed=failed)
        return {"processed": processed, "sent": sent, "failed": failed}

    def _redeliver(self, notification_id: str, now: datetime) -> str | None:
        """Deliver one due notification. Returns None if it is no longer due."""
        with self._database.session() as session:
            notification = session.get(Notification, notification_id, with_for_update=True)
            if notification is None:
                return None

            status = NotificationStatus(notification.status)
            if status == NotificationStatus.FAILED and notification.can_retry():
                notification.retry()
            elif status != NotificationStatus.PENDING:
                return None

            self._deliver(notification, now)
            return notification.status

    def retry(self, notification_id: str) -> str:
        """Manually re-send a FAILED notification, ignoring its backoff."""
        with self._database.session() as session:
            notification = session.get(Notification, notification_id)
            if notification is None:
                raise NotFound(f"Notification {notification_id} not found")
            notification.retry()
            self._deliver(notification, datetime.now(UTC))
            return notification.status

    def _deliver(self, notification: Notification, now: datetime) -> None:
        try:
            result = self._email.send(
                to=notification.recipient,
                subject=notification.subject or "",
                body=notification.body,
            )
        except Exception as exc:
            result = {"status": "failed", "error": str(exc)}

        if result.get("status") == "sent":
            notification.mark_sent(provider_message_id=result.get("message_id"), sent_at=now)
            logger.info("Notification sent", notification_id=notification.id)
        else:
            notification.mark_failed(
                result.get("error", "Unknown dispatch error"),
                backoff_seconds=self.backoff_seconds,
                now=now,
            )
            logger.warning(
                "Notification dispatch failed",
                notification_id=notification.id,
                retry_count=notification.retry_count,
                error=notification.failure_reason,
            )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get(self, notification_id: str) -> dict:
        with self._database.session() as session:
            notification = session.get(Notification, notification_id)
            if notification is None:
                raise NotFound(f"Notification {notification_id} not found")
            return notification.to_dict()

    def find_by_key(self, dedupe_key: str) -> dict | None:
        with self._database.session() as session:
            notification = self._find_by_key(session, dedupe_key)
            return notification.to_dict() if notification else None

    def failed(self) -> list[dict]:
        with self._database.session() as session:
            rows = session.scalars(
                select(Notification)
                .where(Notification.status == NotificationStatus.FAILED.value)
                .order_by(Notification.created_at)
            ).all()
            return [row.to_dict() for row in rows]

    def counts(self) -> dict:
        with self._database.session() as session:
            rows = session.execute(
                select(Notification.status, func.count()).group_by(Notification.status)
            ).all()
        counts = {status.value: 0 for status in NotificationStatus}
        counts.update({status: count for status, count in rows})
        return counts

    @staticmethod
    def _find_by_key(session: Session, dedupe_key: str) -> Notification | None:
        return session.scalars(select(Notification).where(Notification.dedupe_key == dedupe_key)).first()
