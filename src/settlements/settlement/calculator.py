"""Payable calculation for one order.

    payable = base printer fee + Σ (blank cost + print cost) × qty

The base fee falls back to 500 cents when the order has none recorded.
Everything is integer cents. Costs are taken as-is: zero or negative
snapshots are the caller's concern.

Both settlement creation and the unbatched-orders dashboard go through
``payable`` so displayed and committed totals cannot drift apart.
"""

from collections.abc import Iterable
from typing import Any

DEFAULT_BASE_PRINTER_FEE_CENTS = 500


def base_fee(order: Any) -> int:
    fee = getattr(order, "base_printer_fee_cents", None)
    return DEFAULT_BASE_PRINTER_FEE_CENTS if fee is None else fee


def line_cost(item: Any) -> int:
    return (item.blank_cost_cents_snapshot + item.print_cost_cents_snapshot) * item.qty


def payable(order: Any, items: Iterable[Any]) -> int:
    return base_fee(order) + sum(line_cost(item) for item in items)


def breakdown(order: Any, items: Iterable[Any]) -> dict:
    """The frozen calculation detail stored with each settlement link."""
    items = list(items)
    return {
        "base_fee_cents": base_fee(order),
        "items": [
            {
                "qty": item.qty,
                "blank": item.blank_cost_cents_snapshot,
                "print": item.print_cost_cents_snapshot,
                "line_cents": line_cost(item),
            }
            for item in items
        ],
        "amount_cents": payable(order, items),
    }
