"""Shared-PIN gate in front of the merchant order dashboard.

This is a demonstration gate, not a security boundary: one fixed secret,
no lockout, unlocked for the rest of the session once the PIN matches.
"""

import hmac
import logging
from decimal import Decimal
from typing import Any

from . import config
from .errors import AuthorizationError
from .models import Order, _money_out
from .order_store import OrderStore

logger = logging.getLogger(__name__)


class AccessGate:
    """Locked until ``authorize`` is called with the right secret."""

    def __init__(self, secret: str | None = None):
        self._secret = config.MERCHANT_PIN if secret is None else secret
        self._unlocked = False
        self.error = False

    @property
    def is_unlocked(self) -> bool:
        return self._unlocked

    @property
    def state(self) -> str:
        return "unlocked" if self._unlocked else "locked"

    def authorize(self, secret: str) -> bool:
        """
        Try to unlock with ``secret``.

        A wrong secret leaves the gate as it was and raises the ``error``
        flag so the caller can clear its input and show "incorrect PIN".
        Once unlocked, the gate stays unlocked for the session.
        """
        if hmac.compare_digest(str(secret or "").encode(), self._secret.encode()):
            self._unlocked = True
            self.error = False
            logger.info("Merchant dashboard unlocked")
        else:
            self.error = True
            logger.info("Rejected merchant PIN attempt")
        return self._unlocked

    def require(self) -> None:
        """
        Raises:
            AuthorizationError: If the gate is still locked.
        """
        if not self._unlocked:
            raise AuthorizationError()


class MerchantDashboard:
    """Read/clear surface over the order store, available only through the gate."""

    def __init__(self, gate: AccessGate, store: OrderStore):
        self.gate = gate
        self.store = store

    def list_orders(self) -> list[Order]:
        self.gate.require()
        return self.store.list()

    def get_order(self, order_id: str) -> Order:
        self.gate.require()
        return self.store.get(order_id)

    def clear_orders(self) -> int:
        """Erase all order history. Confirmation is up to the caller."""
        self.gate.require()
        return self.store.clear()

    def summary(self) -> dict[str, Any]:
        """Order count, revenue and split by payment method."""
        orders = self.list_orders()
        revenue = sum((o.total for o in orders), Decimal("0"))
        by_method: dict[str, int] = {}
        for order in orders:
            key = order.payment_method.value
            by_method[key] = by_method.get(key, 0) + 1
        return {
            "order_count": len(orders),
            "revenue": _money_out(revenue),
            "by_payment_method": by_method,
        }
