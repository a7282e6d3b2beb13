"""Tests for the shopping cart."""

import random
from dataclasses import replace
from decimal import Decimal

import pytest

from storefront import catalog
from storefront.errors import ProductUnavailableError

from .conftest import make_product


class TestAddItem:
    def test_add_creates_line_with_quantity_one(self, cart):
        line = cart.add_item(make_product("jebena"))

        assert len(cart) == 1
        assert line.quantity == 1
        assert line.product_id == "jebena"

    def test_add_same_product_twice_merges(self, cart):
        product = make_product("jebena")
        cart.add_item(product)
        cart.add_item(product)

        assert len(cart) == 1
        assert cart.lines[0].quantity == 2

    def test_lines_keep_insertion_order(self, cart):
        cart.add_item(make_product("b"))
        cart.add_item(make_product("a"))
        cart.add_item(make_product("b"))

        assert [line.product_id for line in cart] == ["b", "a"]

    def test_add_emits_open_signal(self, cart):
        calls = []
        cart.opened.connect(lambda: calls.append("open"))

        cart.add_item(make_product())

        assert calls == ["open"]

    def test_failing_listener_does_not_break_add(self, cart):
        def boom():
            raise RuntimeError("ui exploded")

        cart.opened.connect(boom)
        cart.add_item(make_product())

        assert len(cart) == 1

    def test_out_of_stock_product_rejected(self, cart):
        changes = []
        cart.changed.connect(changes.append)

        with pytest.raises(ProductUnavailableError):
            cart.add_item(catalog.get_product("amber-beads"))

        assert cart.is_empty()
        assert changes == []

    def test_out_of_stock_product_not_merged(self, cart):
        product = make_product("jebena")
        cart.add_item(product)

        with pytest.raises(ProductUnavailableError):
            cart.add_item(replace(product, in_stock=False))

        assert cart.get("jebena").quantity == 1


class TestUpdateQuantity:
    def test_increment_and_decrement(self, cart):
        cart.add_item(make_product("jebena"))

        cart.update_quantity("jebena", 3)
        assert cart.get("jebena").quantity == 4

        cart.update_quantity("jebena", -2)
        assert cart.get("jebena").quantity == 2

    def test_clamped_at_one(self, cart):
        cart.add_item(make_product("jebena"))

        cart.update_quantity("jebena", -5)

        assert len(cart) == 1
        assert cart.get("jebena").quantity == 1

    def test_unknown_id_is_silent_noop(self, cart):
        cart.add_item(make_product("jebena"))

        result = cart.update_quantity("missing", 1)

        assert result is None
        assert len(cart) == 1
        assert cart.get("missing") is None
        assert cart.get("jebena").quantity == 1


class TestRemoveAndClear:
    def test_remove_line(self, cart):
        cart.add_item(make_product("a"))
        cart.add_item(make_product("b"))

        removed = cart.remove_item("a")

        assert removed.product_id == "a"
        assert [line.product_id for line in cart] == ["b"]

    def test_remove_unknown_is_noop(self, cart):
        cart.add_item(make_product("a"))

        assert cart.remove_item("zzz") is None
        assert len(cart) == 1

    def test_clear(self, cart):
        cart.add_item(make_product("a"))
        cart.add_item(make_product("b"))

        cart.clear()

        assert cart.is_empty()
        assert cart.subtotal() == Decimal("0")


class TestSubtotal:
    def test_empty_cart_subtotal_is_zero(self, cart):
        assert cart.subtotal() == 0

    def test_subtotal_sums_lines(self, cart):
        jebena = make_product("jebena", "40.00")
        sini = make_product("sini", "32.50")
        cart.add_item(jebena)
        cart.add_item(jebena)
        cart.add_item(sini)

        assert cart.subtotal() == Decimal("112.50")

    def test_subtotal_reflects_later_changes(self, cart):
        cart.add_item(make_product("jebena", "40.00"))
        assert cart.subtotal() == Decimal("40.00")

        cart.update_quantity("jebena", 1)
        assert cart.subtotal() == Decimal("80.00")

        cart.remove_item("jebena")
        assert cart.subtotal() == Decimal("0")

    def test_decimal_prices_sum_exactly(self, cart):
        for i in range(10):
            cart.add_item(make_product(f"p{i}", "0.10"))

        assert cart.subtotal() == Decimal("1.00")


class TestInvariants:
    def test_random_operations_keep_invariants(self, cart):
        rng = random.Random(1234)
        products = [make_product(f"p{i}", f"{i + 1}.25") for i in range(5)]

        for _ in range(500):
            op = rng.choice(["add", "update", "remove"])
            product = rng.choice(products)
            if op == "add":
                cart.add_item(product)
            elif op == "update":
                cart.update_quantity(product.id, rng.randint(-4, 4))
            else:
                cart.remove_item(product.id)

            ids = [line.product_id for line in cart]
            assert len(ids) == len(set(ids))
            assert all(line.quantity >= 1 for line in cart)
            assert cart.subtotal() == sum(
                (line.unit_price * line.quantity for line in cart), Decimal("0")
            )
