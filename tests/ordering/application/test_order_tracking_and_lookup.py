"""Tests for tracking updates and order lookups."""

import pytest

from ordering.order.order import OrderStatus
from shared.exceptions import NotFound, ValidationError


class TestUpdateTracking:
    def test_records_tracking_without_status_change(self, container, make_order, load_order):
        order_id = make_order(status=OrderStatus.RECEIVED_BY_PRINTER)

        container.tracking.update_tracking(order_id, "1Z999", "UPS")

        order = load_order(order_id)
        assert order.tracking_number == "1Z999"
        assert order.carrier == "UPS"
        assert order.status == "RECEIVED_BY_PRINTER"

    def test_carrier_defaults_to_usps(self, container, make_order, load_order):
        order_id = make_order()
        container.tracking.update_tracking(order_id, "9400", None)
        assert load_order(order_id).carrier == "USPS"

    def test_tracking_number_required(self, container, make_order):
        order_id = make_order()
        with pytest.raises(ValidationError):
            container.tracking.update_tracking(order_id, "")

    def test_unknown_order(self, container):
        with pytest.raises(NotFound):
            container.tracking.update_tracking("missing", "9400")

    def test_sends_no_email(self, container, email, make_order):
        container.tracking.update_tracking(make_order(), "9400")
        assert email.sent_emails == []


class TestGetOrder:
    def test_returns_order_with_items(self, container, make_order):
        order_id = make_order(
            items=[
                {"qty": 1, "blank_cost_cents_snapshot": 300, "print_cost_cents_snapshot": 200, "sku": "TEE-M"},
                {"qty": 3, "blank_cost_cents_snapshot": 100, "print_cost_cents_snapshot": 50, "sku": "MUG"},
            ]
        )

        result = container.lookup.get_order(order_id)

        assert result["order"]["id"] == order_id
        assert sorted(item["sku"] for item in result["items"]) == ["MUG", "TEE-M"]

    def test_unknown_order(self, container):
        with pytest.raises(NotFound) as exc:
            container.lookup.get_order("missing")
        assert exc.value.message == "Order not found"
