# backend/homestore/routes/coupons.py
"""Coupon administration and cart validation routes."""

from flask import Blueprint, request

from ..services import coupon_service
from ..validation import ValidationError, ConflictError

coupons_bp = Blueprint("coupons", __name__, url_prefix="/api/coupons")


@coupons_bp.get("")
def list_coupons():
    return [c.to_dict() for c in coupon_service.list_coupons()]


@coupons_bp.get("/validate/<code>")
def validate_code(code: str):
    """Quick check used by the checkout form before the cart is known."""
    coupon = coupon_service.get_active_coupon(code)
    if not coupon:
        return {"valid": False}
    return {"valid": True, "coupon": coupon.to_dict()}


@coupons_bp.post("/validate")
def validate_for_cart():
    """
    Apply a coupon to cart items.

    Body: {"code": str, "items": [{price, qty, category, productId, isPreOrder}]}
    Always 200; "valid" tells the client whether the coupon applies.
    """
    payload = request.get_json(silent=True) or {}
    items = payload.get("items")
    if items is not None and not isinstance(items, list):
        return {"valid": False, "message": "items must be a list"}, 400
    evaluation = coupon_service.evaluate_coupon(payload.get("code"), items)
    return evaluation.to_dict()


@coupons_bp.post("")
def create_coupon_route():
    payload = request.get_json(silent=True) or {}
    try:
        coupon = coupon_service.create_coupon(payload)
    except ValidationError as e:
        return {"message": str(e)}, 400
    except ConflictError as e:
        return {"message": str(e)}, 409
    return coupon.to_dict(), 201


@coupons_bp.delete("/<int:coupon_id>")
def delete_coupon_route(coupon_id: int):
    if not coupon_service.delete_coupon(coupon_id):
        return {"message": "Coupon not found"}, 404
    return {"success": True}
