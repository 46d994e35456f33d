"""Catalog service tests: product payload validation, stock overrides and reports."""

import pytest

from homestore.models import Product
from homestore.services import catalog_service
from homestore.validation import ValidationError, ConflictError


def test_create_product_maps_camel_case(db_session):
    product = catalog_service.create_product({
        "name": "Throw Pillow",
        "category": "Living",
        "price": "250",
        "salePrice": 199,
        "isOnSale": "true",
        "colors": ["Sand", "Olive"],
        "variantStock": {"Standard-Sand": 4, "Standard-Olive": 0},
        "id": 99,
        "createdAt": "ignored",
    })

    assert product.price == 250.0
    assert product.is_on_sale is True
    assert product.variant_stock == {"Standard-Sand": 4, "Standard-Olive": 0}
    assert product.to_dict()["variantStock"] == product.variant_stock


@pytest.mark.parametrize("payload, message", [
    ({"category": "Living", "price": 10}, "Missing required fields: name"),
    ({"name": "X", "category": "Living", "price": -1}, "price must be >= 0"),
    ({"name": "X", "category": "Living", "price": 10, "variantStock": {"Queen": 1}}, "must look like"),
    ({"name": "X", "category": "Living", "price": 10, "variantStock": {"Queen-White": -2}}, "must be >= 0"),
    ({"name": "X", "category": "Living", "price": 10, "variants": [{"price": 5}]}, "each variant needs a size"),
])
def test_create_product_rejects_bad_payloads(db_session, payload, message):
    with pytest.raises(ValidationError, match=message):
        catalog_service.create_product(payload)


def test_update_product_partial(db_session, towel):
    product = catalog_service.update_product(towel.id, {"price": 550, "isNew": True})
    assert product.price == 550
    assert product.is_new is True
    assert product.name == "Bath Towel"
    assert catalog_service.update_product(424242, {"price": 1}) is None


def test_set_variant_stock_writes_exact_key(db_session, sheet_set):
    product = catalog_service.set_variant_stock(sheet_set.id, "Queen", "Grey", 7)
    assert product.variant_stock == {"Queen-White": 2, "King-Grey": 5, "Queen-Grey": 7}

    with pytest.raises(ValidationError):
        catalog_service.set_variant_stock(sheet_set.id, "Queen", "Grey", -1)
    assert catalog_service.set_variant_stock(424242, "Queen", "Grey", 1) is None


def test_set_aggregate_stock(db_session, towel):
    assert catalog_service.set_aggregate_stock(towel.id, 12).stock == 12
    with pytest.raises(ValidationError, match="Invalid stock value"):
        catalog_service.set_aggregate_stock(towel.id, "12")


def test_search_is_case_insensitive(db_session, sheet_set, towel):
    assert [p.name for p in catalog_service.search_products("BAMBOO")] == ["Bamboo Sheet Set"]
    assert [p.name for p in catalog_service.search_products("bath")] == ["Bath Towel"]
    assert catalog_service.search_products("   ") == []


def test_storefront_hides_flagged_products(db_session, sheet_set, towel):
    towel.show_on_storefront = False
    db_session.commit()
    assert [p.name for p in catalog_service.list_storefront_products()] == ["Bamboo Sheet Set"]


def test_low_stock_report(db_session, sheet_set):
    plain = Product(name="Candle", category="Living", price=80, stock=1, low_stock_threshold=3)
    db_session.add(plain)
    db_session.commit()

    report = {row["name"]: row for row in catalog_service.low_stock_report()}
    assert report["Bamboo Sheet Set"]["lowVariants"] == {"Queen-White": 2, "King-Grey": 5}
    assert report["Candle"]["stock"] == 1


def test_categories(db_session):
    bedding = catalog_service.create_category({"name": "Bedding"})
    with pytest.raises(ConflictError, match="Category already exists"):
        catalog_service.create_category({"name": "Bedding"})

    renamed = catalog_service.update_category(bedding.id, {"description": "Sheets and duvets"})
    assert renamed.description == "Sheets and duvets"
    assert catalog_service.delete_category(bedding.id) is True
    assert catalog_service.list_categories() == []
