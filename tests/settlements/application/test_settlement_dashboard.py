"""Tests for the settlements dashboard read models."""

import pytest

from ordering.order.order import OrderStatus, PayableStatus
from shared.exceptions import NotFound


class TestUnbatchedSummary:
    def test_only_label_purchased_unbatched_orders(self, container, make_order):
        included = make_order(status=OrderStatus.LABEL_PURCHASED)
        make_order(status=OrderStatus.PAID)
        make_order(status=OrderStatus.LABEL_PURCHASED, payable=PayableStatus.BATCHED)

        summary = container.dashboard.unbatched_summary()

        assert [row["id"] for row in summary["orders"]] == [included]
        assert summary["unbatched_count"] == 1
        assert summary["orders"][0]["payable_cents"] == 1500
        assert summary["total_owed_cents"] == 1500

    def test_total_owed_matches_settlement_total(self, container, make_order):
        order_ids = [
            make_order(status=OrderStatus.LABEL_PURCHASED),
            make_order(status=OrderStatus.LABEL_PURCHASED, base_printer_fee_cents=250),
        ]
        owed = container.dashboard.unbatched_summary()["total_owed_cents"]

        settlement = container.batcher.create_settlement(order_ids)

        assert settlement["total_cents"] == owed
        assert container.dashboard.unbatched_summary()["total_owed_cents"] == 0

    def test_pending_settlements_excludes_paid(self, container, make_order):
        first = container.batcher.create_settlement([make_order()])
        container.batcher.create_settlement([make_order()])
        container.settlements.mark_paid(first["id"])

        assert container.dashboard.unbatched_summary()["pending_settlements"] == 1


class TestSettlementReads:
    def test_list_settlements(self, container, make_order):
        container.batcher.create_settlement([make_order()])
        container.batcher.create_settlement([make_order(), make_order()])

        settlements = container.dashboard.list_settlements()

        assert sorted(s["order_count"] for s in settlements) == [1, 2]

    def test_get_settlement_includes_links_and_actions(self, container, make_order):
        o1 = make_order()
        created = container.batcher.create_settlement([o1])
        container.settlements.agree(created["id"])

        detail = container.dashboard.get_settlement(created["id"])

        assert detail["orders"][0]["order_id"] == o1
        assert detail["orders"][0]["calc_detail_json"]["amount_cents"] == 1500
        assert [a["action"] for a in detail["actions"]] == ["AGREED"]

    def test_get_unknown_settlement(self, container):
        with pytest.raises(NotFound):
            container.dashboard.get_settlement("missing")
