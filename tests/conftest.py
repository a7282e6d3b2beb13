"""Pytest fixtures for storefront tests."""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

from storefront.cart import Cart
from storefront.checkout import CardDetails, CheckoutSession
from storefront.models import Category, Product, ShippingDetails
from storefront.order_store import OrderStore


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def order_store(temp_dir):
    """OrderStore writing into a temp directory."""
    return OrderStore(temp_dir, save_latency=0, list_latency=0)


@pytest.fixture
def cart():
    return Cart()


@pytest.fixture
def checkout(cart, order_store):
    return CheckoutSession(cart, order_store)


def make_product(id: str = "jebena", price: str = "40.00", name: str | None = None) -> Product:
    """Build a catalog-shaped product with a given price."""
    return Product(
        id=id,
        name=name or id.replace("-", " ").title(),
        price=Decimal(price),
        currency="€",
        category=Category.MISC,
        description=f"Test product {id}",
    )


def make_shipping(**overrides) -> ShippingDetails:
    """Fully filled shipping details, with optional field overrides."""
    data = dict(
        first_name="Selam",
        last_name="Bekele",
        email="selam@example.com",
        phone="+33 6 12 34 56 78",
        address="12 Rue de la Paix",
        city="Paris",
        postal_code="75002",
        country="France",
    )
    data.update(overrides)
    return ShippingDetails(**data)


def make_card() -> CardDetails:
    return CardDetails(
        cardholder="Selam Bekele",
        number="4242 4242 4242 4242",
        expiry="12/29",
        cvc="123",
    )


class FailingOrderStore(OrderStore):
    """OrderStore whose writes always fail."""

    def save(self, order):
        from storefront.errors import PersistenceError

        raise PersistenceError("quota exceeded")
