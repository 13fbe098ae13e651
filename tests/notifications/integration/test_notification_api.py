"""Integration tests for the notification outbox endpoints."""

from datetime import UTC, datetime, timedelta

from ordering.order.order import OrderStatus


class TestNotificationAPI:
    def test_process_with_nothing_due(self, client):
        resp = client.post("/notifications/process")
        assert resp.status_code == 200
        assert resp.json() == {"processed": 0, "sent": 0, "failed": 0}

    def test_failed_listing_after_provider_outage(self, client, email, make_order):
        email.configure(should_succeed=False)
        order_id = make_order(status=OrderStatus.SHIPPED)

        client.post("/orders/update-status", json={"orderId": order_id, "status": "DELIVERED"})
        data = client.get("/notifications/failed").json()

        assert data["counts"]["Failed"] == 2
        assert {n["recipient_type"] for n in data["notifications"]} == {"Customer", "Admin"}

    def test_process_resends_due_notifications(self, client, container, email, make_order):
        email.configure(should_succeed=False)
        order_id = make_order(status=OrderStatus.SHIPPED)
        client.post("/orders/update-status", json={"orderId": order_id, "status": "DELIVERED"})
        email.configure(should_succeed=True)

        # Nothing is due straight away
        assert client.post("/notifications/process").json()["processed"] == 0

        result = container.outbox.process_due(now=datetime.now(UTC) + timedelta(minutes=2))
        assert result == {"processed": 2, "sent": 2, "failed": 0}
        assert len(email.sent_emails) == 2

    def test_manual_retry(self, client, email, make_order):
        email.configure(should_succeed=False)
        order_id = make_order(status=OrderStatus.SHIPPED)
        client.post("/orders/update-status", json={"orderId": order_id, "status": "DELIVERED"})
        email.configure(should_succeed=True)
        notification_id = client.get("/notifications/failed").json()["notifications"][0]["id"]

        resp = client.post(f"/notifications/{notification_id}/retry")

        assert resp.json() == {"status": "Sent"}

    def test_retry_unknown_notification(self, client):
        assert client.post("/notifications/missing/retry").status_code == 404
