"""Data models for storefront."""

import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

ORDER_REF_PREFIX = "ETH"
ORDER_REF_MAX = 99999


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def generate_order_reference() -> str:
    """Generate a customer-facing order reference such as ``ETH-4821``."""
    return f"{ORDER_REF_PREFIX}-{random.randint(0, ORDER_REF_MAX)}"


def to_money(value: Any) -> Decimal:
    """Coerce a number (or numeric string) to Decimal without float drift."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary amount")
    return Decimal(str(value))


def _money_out(value: Decimal) -> float | int:
    # JSON has no decimal type; integral amounts stay ints
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class Category(str, Enum):
    CLOTHES = "Clothes"
    ART = "Art"
    MISC = "Miscellaneous Products"
    ACCESSORIES = "Accessories"


class PaymentMethod(str, Enum):
    """How the customer pays. Neither variant carries persisted payment data."""

    CARD = "card"
    BANK_TRANSFER = "bank_transfer"

    @property
    def label(self) -> str:
        return "Credit Card" if self is PaymentMethod.CARD else "Bank Transfer"


class OrderStatus(str, Enum):
    PENDING = "pending"


@dataclass(frozen=True)
class Product:
    """A catalog entry. Immutable once loaded."""

    id: str
    name: str
    price: Decimal
    currency: str
    category: Category
    description: str = ""
    detailed_history: str = ""
    image_url: str = ""
    in_stock: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": _money_out(self.price),
            "currency": self.currency,
            "category": self.category.value,
            "description": self.description,
            "detailedHistory": self.detailed_history,
            "imageUrl": self.image_url,
            "inStock": self.in_stock,
        }


@dataclass
class CartLine:
    """One product in the cart. Identity is the product id."""

    product: Product
    quantity: int = 1

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def unit_price(self) -> Decimal:
        return self.product.price

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product.id,
            "name": self.product.name,
            "unitPrice": _money_out(self.product.price),
            "currency": self.product.currency,
            "quantity": self.quantity,
            "lineTotal": _money_out(self.line_total),
        }


SHIPPING_FIELDS: tuple[tuple[str, str], ...] = (
    ("first_name", "firstName"),
    ("last_name", "lastName"),
    ("email", "email"),
    ("phone", "phone"),
    ("address", "address"),
    ("city", "city"),
    ("postal_code", "postalCode"),
    ("country", "country"),
)


@dataclass(frozen=True)
class ShippingDetails:
    """Where the order goes. All fields are required, none are format-checked."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""

    def missing_fields(self) -> list[str]:
        """Return the wire names of blank fields, in form order."""
        missing = []
        for attr, key in SHIPPING_FIELDS:
            value = getattr(self, attr)
            if value is None or not str(value).strip():
                missing.append(key)
        return missing

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in SHIPPING_FIELDS}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShippingDetails":
        return cls(**{attr: data.get(key) or "" for attr, key in SHIPPING_FIELDS})


@dataclass(frozen=True)
class OrderItem:
    """A cart line frozen at purchase time, not linked to the live catalog."""

    product_id: str
    name: str
    unit_price: Decimal
    currency: str
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_cart_line(cls, line: CartLine) -> "OrderItem":
        return cls(
            product_id=line.product.id,
            name=line.product.name,
            unit_price=line.product.price,
            currency=line.product.currency,
            quantity=line.quantity,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "unitPrice": _money_out(self.unit_price),
            "currency": self.currency,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderItem":
        quantity = int(data["quantity"])
        if quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {quantity}")
        return cls(
            product_id=str(data["productId"]),
            name=str(data.get("name", "")),
            unit_price=to_money(data["unitPrice"]),
            currency=str(data.get("currency", "")),
            quantity=quantity,
        )


@dataclass(frozen=True)
class Order:
    """A completed purchase.

    Totals are computed once at creation and never recomputed; the only
    field meant to change afterwards is ``status`` (see ``with_status``).
    """

    id: str
    date: str
    items: tuple[OrderItem, ...]
    subtotal: Decimal
    shipping_cost: Decimal
    duties: Decimal
    total: Decimal
    shipping_details: ShippingDetails
    payment_method: PaymentMethod
    status: str = OrderStatus.PENDING.value
    extra: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def with_status(self, status: str) -> "Order":
        return replace(self, status=status)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "items": [item.to_dict() for item in self.items],
            "subtotal": _money_out(self.subtotal),
            "shippingCost": _money_out(self.shipping_cost),
            "duties": _money_out(self.duties),
            "total": _money_out(self.total),
            "shippingDetails": self.shipping_details.to_dict(),
            "paymentMethod": self.payment_method.value,
            "status": self.status,
        }
        # Preserve unknown keys written by newer versions
        for key, value in self.extra.items():
            result.setdefault(key, value)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        known = {
            "id", "date", "items", "subtotal", "shippingCost", "duties",
            "total", "shippingDetails", "paymentMethod", "status",
        }
        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            items=tuple(OrderItem.from_dict(i) for i in data["items"]),
            subtotal=to_money(data["subtotal"]),
            shipping_cost=to_money(data["shippingCost"]),
            duties=to_money(data["duties"]),
            total=to_money(data["total"]),
            shipping_details=ShippingDetails.from_dict(data["shippingDetails"]),
            payment_method=PaymentMethod(data["paymentMethod"]),
            status=str(data.get("status", OrderStatus.PENDING.value)),
            extra={k: v for k, v in data.items() if k not in known},
        )
