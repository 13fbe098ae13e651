"""Tests for NotificationOutbox — enqueue dedupe, dispatch, due-retry processing."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from notifications.notification.notification import Notification, NotificationType
from ordering.order.order import OrderStatus
from shared.exceptions import NotFound, NotificationError


def _enqueue(outbox, key="order:o1:SHIPPED:Customer", recipient="buyer@example.com"):
    return outbox.enqueue(
        dedupe_key=key,
        recipient=recipient,
        notification_type=NotificationType.SHIPPING_UPDATE.value,
        subject="Shipped",
        body="On its way",
    )


@pytest.fixture
def outbox(container):
    return container.outbox


class TestEnqueue:
    def test_enqueue_creates_pending_row(self, outbox):
        notification_id = _enqueue(outbox)
        assert outbox.get(notification_id)["status"] == "Pending"

    def test_duplicate_key_is_suppressed(self, outbox):
        first = _enqueue(outbox)
        second = _enqueue(outbox)
        assert first is not None
        assert second is None
        assert outbox.counts()["Pending"] == 1

    def test_recipient_required(self, outbox):
        with pytest.raises(NotificationError):
            _enqueue(outbox, recipient=None)


class TestDispatch:
    def test_successful_send(self, outbox, email):
        notification_id = _enqueue(outbox)

        assert outbox.dispatch(notification_id) == "Sent"

        stored = outbox.get(notification_id)
        assert stored["sent_at"] is not None
        assert email.sent_to("buyer@example.com")[0]["subject"] == "Shipped"

    def test_failed_send_is_recorded(self, outbox, email):
        email.configure(should_succeed=False, failure_reason="provider down")
        notification_id = _enqueue(outbox)

        assert outbox.dispatch(notification_id) == "Failed"

        stored = outbox.get(notification_id)
        assert stored["retry_count"] == 1
        assert stored["failure_reason"] == "provider down"

    def test_adapter_exception_is_recorded_as_failure(self, outbox, email, monkeypatch):
        def _explode(**kwargs):
            raise ConnectionError("socket closed")

        monkeypatch.setattr(email, "send", _explode)
        notification_id = _enqueue(outbox)

        assert outbox.dispatch(notification_id) == "Failed"
        assert outbox.get(notification_id)["failure_reason"] == "socket closed"

    def test_dispatching_sent_notification_is_a_no_op(self, outbox, email):
        notification_id = _enqueue(outbox)
        outbox.dispatch(notification_id)
        outbox.dispatch(notification_id)
        assert email.attempts == 1

    def test_unknown_notification(self, outbox):
        with pytest.raises(NotFound):
            outbox.dispatch("missing")


class TestProcessDue:
    def test_retries_only_due_notifications(self, outbox, email):
        email.configure(should_succeed=False)
        notification_id = _enqueue(outbox)
        outbox.dispatch(notification_id)
        email.configure(should_succeed=True)

        not_yet = outbox.process_due(now=datetime.now(UTC) + timedelta(seconds=30))
        due = outbox.process_due(now=datetime.now(UTC) + timedelta(seconds=61))

        assert not_yet == {"processed": 0, "sent": 0, "failed": 0}
        assert due == {"processed": 1, "sent": 1, "failed": 0}
        assert outbox.get(notification_id)["status"] == "Sent"

    def test_gives_up_after_max_retries(self, outbox, email):
        email.configure(should_succeed=False)
        notification_id = _enqueue(outbox)
        outbox.dispatch(notification_id)

        later = datetime.now(UTC)
        for _ in range(5):
            later += timedelta(hours=1)
            outbox.process_due(now=later)

        stored = outbox.get(notification_id)
        assert stored["status"] == "Failed"
        assert stored["retry_count"] == stored["max_retries"] == 3
        assert email.attempts == 3
        assert outbox.process_due(now=later + timedelta(days=1))["processed"] == 0

    def test_manual_retry_ignores_backoff(self, outbox, email):
        email.configure(should_succeed=False)
        notification_id = _enqueue(outbox)
        outbox.dispatch(notification_id)
        email.configure(should_succeed=True)

        assert outbox.retry(notification_id) == "Sent"

    def test_failed_listing(self, outbox, email):
        email.configure(should_succeed=False)
        outbox.dispatch(_enqueue(outbox, key="a"))
        email.configure(should_succeed=True)
        outbox.dispatch(_enqueue(outbox, key="b"))

        assert [n["dedupe_key"] for n in outbox.failed()] == ["a"]
        assert outbox.counts() == {"Pending": 0, "Sent": 1, "Failed": 1}


class TestRecovery:
    def test_pending_row_from_crashed_dispatch_is_sent_later(self, container, email, make_order, monkeypatch):
        order_id = make_order(status=OrderStatus.SHIPPED)
        real_dispatch = container.outbox.dispatch

        def _crash(_notification_id):
            raise RuntimeError("worker killed")

        monkeypatch.setattr(container.outbox, "dispatch", _crash)
        container.orders.transition(order_id, "DELIVERED")
        monkeypatch.setattr(container.outbox, "dispatch", real_dispatch)

        assert container.outbox.counts()["Pending"] == 2
        # A dispatch may still be running inside the grace period
        assert container.outbox.process_due()["processed"] == 0

        result = container.outbox.process_due(now=datetime.now(UTC) + timedelta(minutes=2))

        assert result == {"processed": 2, "sent": 2, "failed": 0}
        assert len(email.sent_to("customer@example.com")) == 1
        assert container.outbox.counts()["Pending"] == 0

    def test_storage_error_on_one_row_keeps_other_rows_sent(self, outbox, email, monkeypatch):
        email.configure(should_succeed=False)
        first = _enqueue(outbox, key="a", recipient="a@example.com")
        second = _enqueue(outbox, key="b", recipient="b@example.com")
        outbox.dispatch(first)
        outbox.dispatch(second)
        email.configure(should_succeed=True)

        real_mark_sent = Notification.mark_sent

        def _mark_sent(self, *args, **kwargs):
            if self.dedupe_key == "b":
                raise OperationalError("UPDATE notifications", {}, Exception("disk I/O error"))
            return real_mark_sent(self, *args, **kwargs)

        monkeypatch.setattr(Notification, "mark_sent", _mark_sent)
        later = datetime.now(UTC) + timedelta(minutes=2)

        assert outbox.process_due(now=later) == {"processed": 2, "sent": 1, "failed": 1}

        monkeypatch.setattr(Notification, "mark_sent", real_mark_sent)
        outbox.process_due(now=later + timedelta(minutes=5))

        assert len(email.sent_to("a@example.com")) == 1
        assert outbox.get(first)["status"] == "Sent"
        assert outbox.get(second)["status"] == "Sent"
