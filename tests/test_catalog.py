"""Tests for the static catalog."""

import pytest

from storefront import catalog
from storefront.errors import CatalogNotFoundError


class TestLookup:
    def test_categories(self):
        slugs = [c.slug for c in catalog.list_categories()]
        assert slugs == ["natural-stones", "synthetic-stones"]

    def test_get_variant(self):
        category, sub, variant = catalog.get_variant("natural-stones", "marble", "calacatta-gold")
        assert category.name == "Natural Stones"
        assert sub.name == "Marble"
        assert variant.price == 42500
        assert variant.finish == "Polished"

    @pytest.mark.parametrize("path,fallback", [
        (("granite-tiles", "marble", "x"), "/products"),
        (("natural-stones", "slate", "x"), "/products/natural-stones"),
        (("natural-stones", "marble", "x"), "/products/natural-stones/marble"),
    ])
    def test_fallback_routes(self, path, fallback):
        with pytest.raises(CatalogNotFoundError) as exc_info:
            catalog.get_variant(*path)
        assert exc_info.value.fallback == fallback

    def test_unknown_category(self):
        with pytest.raises(CatalogNotFoundError) as exc_info:
            catalog.get_category("tiles")
        assert exc_info.value.fallback == "/products"


class TestBuilders:
    def test_make_cart_item(self):
        item = catalog.make_cart_item("synthetic-stones", "quartz", "london-grey", quantity=3, thickness="20mm")
        assert item.id == "synthetic-stones-quartz-london-grey"
        assert item.product_id == "quartz"
        assert item.product_name == "Quartz - London Grey"
        assert item.variant_id == "london-grey"
        assert item.price == 17200
        assert item.quantity == 3
        assert item.thickness == "20mm"
        assert item.finish == "Polished"

    def test_make_wishlist_item(self):
        item = catalog.make_wishlist_item("natural-stones", "granite", "602")
        assert item.key == ("granite", "602")
        assert item.price == 5200
        assert item.added_at == ""
