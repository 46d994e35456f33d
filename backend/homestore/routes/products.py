# backend/homestore/routes/products.py
"""
Catalog routes: products, storefront listing, search, stock and categories.
"""
from flask import Blueprint, request, current_app

from ..services import catalog_service
from ..validation import ValidationError, ConflictError

products_bp = Blueprint("products", __name__, url_prefix="/api")


@products_bp.get("/products")
def list_products():
    return [p.to_dict() for p in catalog_service.list_products()]


@products_bp.get("/storefront/products")
def list_storefront_products():
    """Products visible on the storefront (showOnStorefront not false)."""
    return [p.to_dict() for p in catalog_service.list_storefront_products()]


@products_bp.get("/products/search")
def search_products():
    query = request.args.get("q", "")
    return [p.to_dict() for p in catalog_service.search_products(query)]


@products_bp.get("/products/low-stock")
def low_stock():
    return catalog_service.low_stock_report()


@products_bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    product = catalog_service.get_product(product_id)
    if not product:
        return {"message": "Product not found"}, 404
    return product.to_dict()


@products_bp.post("/products")
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        product = catalog_service.create_product(payload)
    except ValidationError as e:
        return {"message": str(e)}, 400
    return product.to_dict(), 201


@products_bp.patch("/products/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        product = catalog_service.update_product(product_id, payload)
    except ValidationError as e:
        return {"message": str(e)}, 400
    if not product:
        return {"message": "Product not found"}, 404
    return product.to_dict()


@products_bp.delete("/products/<int:product_id>")
def delete_product_route(product_id: int):
    if not catalog_service.delete_product(product_id):
        return {"message": "Product not found"}, 404
    return {"success": True}


@products_bp.patch("/products/<int:product_id>/stock")
def update_stock_route(product_id: int):
    """Set aggregate stock. Body: {"stock": int >= 0}"""
    payload = request.get_json(silent=True) or {}
    try:
        product = catalog_service.set_aggregate_stock(product_id, payload.get("stock"))
    except ValidationError as e:
        return {"message": str(e)}, 400
    if not product:
        return {"message": "Product not found"}, 404
    return product.to_dict()


@products_bp.patch("/products/<int:product_id>/variant-stock")
def update_variant_stock_route(product_id: int):
    """Set one variant's stock. Body: {"size", "color", "stock"}"""
    payload = request.get_json(silent=True) or {}
    try:
        product = catalog_service.set_variant_stock(
            product_id,
            payload.get("size"),
            payload.get("color"),
            payload.get("stock"),
        )
    except ValidationError as e:
        return {"message": str(e)}, 400
    if not product:
        return {"message": "Product not found"}, 404
    current_app.logger.info("Variant stock set product_id=%s", product_id)
    return product.to_dict()


# Categories

@products_bp.get("/categories")
def list_categories():
    return [c.to_dict() for c in catalog_service.list_categories()]


@products_bp.post("/categories")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        category = catalog_service.create_category(payload)
    except (ValidationError, ConflictError) as e:
        return {"message": str(e)}, 400
    return category.to_dict(), 201


@products_bp.patch("/categories/<int:category_id>")
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        category = catalog_service.update_category(category_id, payload)
    except (ValidationError, ConflictError) as e:
        return {"message": str(e)}, 400
    if not category:
        return {"message": "Category not found"}, 404
    return category.to_dict()


@products_bp.delete("/categories/<int:category_id>")
def delete_category_route(category_id: int):
    if not catalog_service.delete_category(category_id):
        return {"message": "Category not found"}, 404
    return {"success": True}
