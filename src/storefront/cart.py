"""Session-scoped shopping cart."""

import logging
from decimal import Decimal
from typing import Iterator

from .errors import ProductUnavailableError
from .events import Signal
from .models import CartLine, Product, _money_out

logger = logging.getLogger(__name__)


class Cart:
    """
    Ordered collection of cart lines, at most one per product.

    Quantities never drop below 1; removing a line is a separate operation.
    Presentation side effects are reported through signals instead of being
    performed here:

    - ``opened`` fires after ``add_item`` so the UI can show the cart panel.
    - ``changed`` fires after every mutation with the cart as argument.
    """

    def __init__(self) -> None:
        self._lines: list[CartLine] = []
        self.opened = Signal("cart.opened")
        self.changed = Signal("cart.changed")

    def _find(self, product_id: str) -> CartLine | None:
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    @property
    def lines(self) -> list[CartLine]:
        """Copy of the current lines in insertion order."""
        return list(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(list(self._lines))

    def __len__(self) -> int:
        return len(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def get(self, product_id: str) -> CartLine | None:
        return self._find(product_id)

    def add_item(self, product: Product) -> CartLine:
        """
        Add one unit of a product, merging into an existing line.

        Raises:
            ProductUnavailableError: If the product is out of stock.
        """
        if not product.in_stock:
            raise ProductUnavailableError(product.id)

        line = self._find(product.id)
        if line is not None:
            line.quantity += 1
        else:
            line = CartLine(product=product, quantity=1)
            self._lines.append(line)

        logger.debug("Cart add %s -> qty %d", product.id, line.quantity)
        self.changed.emit(self)
        self.opened.emit()
        return line

    def update_quantity(self, product_id: str, delta: int) -> CartLine | None:
        """
        Adjust a line's quantity by ``delta``, clamped at 1.

        Unknown IDs are ignored and return None.
        """
        line = self._find(product_id)
        if line is None:
            logger.debug("Cart update ignored, no line for %s", product_id)
            return None

        line.quantity = max(1, line.quantity + delta)
        self.changed.emit(self)
        return line

    def remove_item(self, product_id: str) -> CartLine | None:
        """Remove a line. Unknown IDs are ignored and return None."""
        line = self._find(product_id)
        if line is None:
            return None

        self._lines.remove(line)
        self.changed.emit(self)
        return line

    def clear(self) -> None:
        self._lines.clear()
        self.changed.emit(self)

    def subtotal(self) -> Decimal:
        """Sum of unit price times quantity, computed fresh on every call."""
        return sum((line.line_total for line in self._lines), Decimal("0"))

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def to_dict(self) -> dict:
        return {
            "items": [line.to_dict() for line in self._lines],
            "count": self.item_count(),
            "subtotal": _money_out(self.subtotal()),
        }
