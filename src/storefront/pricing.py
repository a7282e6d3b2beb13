"""Flat-rate pricing policy applied at checkout.

Shipping and import duties are fixed amounts regardless of cart size,
weight or destination.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from .models import _money_out, to_money

SHIPPING_COST = Decimal("25.00")
IMPORT_DUTIES = Decimal("12.50")
SHIPPING_CARRIER = "Ethiopian Airlines Cargo"


@dataclass(frozen=True)
class Quote:
    """Subtotal plus the fixed surcharges. ``total`` always equals their sum."""

    subtotal: Decimal
    shipping_cost: Decimal
    duties: Decimal
    total: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": _money_out(self.subtotal),
            "shippingCost": _money_out(self.shipping_cost),
            "duties": _money_out(self.duties),
            "total": _money_out(self.total),
        }


def shipping_cost() -> Decimal:
    return SHIPPING_COST


def import_duties() -> Decimal:
    return IMPORT_DUTIES


def total(subtotal: Decimal | int | float | str) -> Decimal:
    """Grand total for a cart subtotal."""
    return to_money(subtotal) + SHIPPING_COST + IMPORT_DUTIES


def quote(subtotal: Decimal | int | float | str) -> Quote:
    """Build the full price breakdown for a subtotal."""
    sub = to_money(subtotal)
    return Quote(
        subtotal=sub,
        shipping_cost=SHIPPING_COST,
        duties=IMPORT_DUTIES,
        total=total(sub),
    )
