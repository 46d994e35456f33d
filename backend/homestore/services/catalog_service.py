# Overview: Service-layer operations for the product catalog and categories.

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Product
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    ConflictError,
    validate_payload,
    validate_variant_stock,
    enforce_rules_product,
)
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .variant_stock import variant_key


PRODUCT_POLICY = ModelValidationPolicy(
    field_map={
        "name": "name",
        "description": "description",
        "category": "category",
        "price": "price",
        "salePrice": "sale_price",
        "isOnSale": "is_on_sale",
        "costPrice": "cost_price",
        "expressCharge": "express_charge",
        "image": "image",
        "images": "images",
        "colors": "colors",
        "colorImages": "color_images",
        "variants": "variants",
        "stock": "stock",
        "variantStock": "variant_stock",
        "lowStockThreshold": "low_stock_threshold",
        "showOnStorefront": "show_on_storefront",
        "isNew": "is_new",
        "isBestSeller": "is_best_seller",
        "rating": "rating",
        "reviews": "reviews",
        "sizeGuide": "size_guide",
        "certifications": "certifications",
        "productDetails": "product_details",
        "materialsAndCare": "materials_and_care",
        "isPreOrder": "is_pre_order",
        "preOrderPrice": "pre_order_price",
        "preOrderInitialPayment": "pre_order_initial_payment",
        "preOrderEta": "pre_order_eta",
        "sku": "sku",
        "barcode": "barcode",
    },
    required_on_create={"name", "price", "category"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    field_map={"name": "name", "description": "description"},
    required_on_create={"name"},
)


# =============================================================================
# PRODUCTS
# =============================================================================

def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.created_at.desc(), Product.id.desc()).all()


def list_storefront_products() -> list[Product]:
    return [p for p in list_products() if p.show_on_storefront is not False]


def search_products(query: str | None) -> list[Product]:
    """Case-insensitive substring match on name, description and category."""
    if not query or not query.strip():
        return []
    pattern = f"%{query.strip()}%"
    return (
        db.session.query(Product)
        .filter(
            or_(
                Product.name.ilike(pattern),
                Product.description.ilike(pattern),
                Product.category.ilike(pattern),
            )
        )
        .order_by(Product.name.asc())
        .all()
    )


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def create_product(payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    product = Product(**patch)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, payload: dict) -> Product | None:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not product:
            return None
        for key, value in patch.items():
            setattr(product, key, value)
        db.session.commit()
        return product

    return run_with_retry(_op)


def delete_product(product_id: int) -> bool:
    product = db.session.get(Product, product_id)
    if not product:
        return False
    db.session.delete(product)
    db.session.commit()
    return True


def set_aggregate_stock(product_id: int, stock) -> Product | None:
    if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
        raise ValidationError("Invalid stock value")

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not product:
            return None
        product.stock = stock
        db.session.commit()
        return product

    return run_with_retry(_op)


def set_variant_stock(product_id: int, size: str | None, color: str | None, stock) -> Product | None:
    """Admin override of one variant's count (exact "{size}-{color}" key)."""
    key = variant_key(size, color)
    validate_variant_stock({key: stock})

    def _op():
        begin_write_transaction()
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not product:
            db.session.commit()
            return None
        stock_map = dict(product.variant_stock or {})
        stock_map[key] = int(stock)
        product.variant_stock = stock_map
        db.session.commit()
        return product

    return run_with_retry(_op)


def low_stock_report() -> list[dict]:
    """
    Products at or below their low_stock_threshold.

    Variant-stocked products report each low variant; products without a
    variant map are judged on aggregate stock.
    """
    report = []
    for product in list_products():
        threshold = product.low_stock_threshold or 0
        stock_map = product.variant_stock or {}
        if stock_map:
            low = {key: count for key, count in stock_map.items() if count <= threshold}
            if low:
                report.append({
                    "productId": product.id,
                    "name": product.name,
                    "threshold": threshold,
                    "lowVariants": low,
                })
        elif (product.stock or 0) <= threshold:
            report.append({
                "productId": product.id,
                "name": product.name,
                "threshold": threshold,
                "stock": product.stock or 0,
            })
    return report


# =============================================================================
# CATEGORIES
# =============================================================================

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)

    existing = db.session.query(Category).filter_by(name=patch["name"]).first()
    if existing:
        raise ConflictError("Category already exists")

    category = Category(**patch)
    db.session.add(category)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category already exists")
    return category


def update_category(category_id: int, payload: dict) -> Category | None:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    category = db.session.get(Category, category_id)
    if not category:
        return None
    for key, value in patch.items():
        setattr(category, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category already exists")
    return category


def delete_category(category_id: int) -> bool:
    category = db.session.get(Category, category_id)
    if not category:
        return False
    db.session.delete(category)
    db.session.commit()
    return True
