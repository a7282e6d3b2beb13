"""Tests for the product catalog."""

import dataclasses

import pytest

from storefront import catalog
from storefront.errors import ProductNotFoundError
from storefront.models import Category


class TestCatalog:
    def test_ids_are_unique(self):
        ids = [p.id for p in catalog.PRODUCTS]
        assert len(ids) == len(set(ids))

    def test_list_all(self):
        assert catalog.list_products() == list(catalog.PRODUCTS)
        assert catalog.list_products("All") == list(catalog.PRODUCTS)

    def test_filter_by_category(self):
        art = catalog.list_products(Category.ART)

        assert art
        assert all(p.category is Category.ART for p in art)
        assert catalog.list_products("Art") == art

    def test_unknown_category_raises(self):
        with pytest.raises(ValueError):
            catalog.list_products("Furniture")

    def test_search_is_case_insensitive(self):
        results = catalog.list_products(query="JEBENA")

        assert [p.id for p in results] == ["jebena"]

    def test_search_matches_description(self):
        results = catalog.list_products(query="coffee pot")

        assert [p.id for p in results] == ["jebena"]

    def test_get_product(self):
        assert catalog.get_product("jebena").name == "Clay Jebena"

    def test_get_missing_product(self):
        with pytest.raises(ProductNotFoundError):
            catalog.get_product("nope")

    def test_products_are_immutable(self):
        product = catalog.get_product("jebena")

        with pytest.raises(dataclasses.FrozenInstanceError):
            product.price = 1
