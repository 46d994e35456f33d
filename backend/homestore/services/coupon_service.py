# Overview: Coupon management and cart eligibility/discount evaluation.

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Coupon, COUPON_TYPES, COUPON_SCOPES
from ..validation import (
    ModelValidationPolicy,
    ConflictError,
    validate_payload,
    enforce_rules_coupon,
)


COUPON_POLICY = ModelValidationPolicy(
    field_map={
        "code": "code",
        "discount": "discount",
        "type": "type",
        "status": "status",
        "scope": "scope",
        "allowedCategories": "allowed_categories",
        "allowedProducts": "allowed_products",
        "allowPreOrder": "allow_pre_order",
    },
    required_on_create={"code", "discount", "type"},
)

INVALID_COUPON_MESSAGE = "Invalid or expired coupon"
NO_ELIGIBLE_ITEMS_MESSAGE = "Coupon does not apply to items in your cart"


@dataclass
class CouponEvaluation:
    """Result of applying a coupon to a cart."""
    valid: bool
    coupon: Coupon | None = None
    eligible_items: list[int] = field(default_factory=list)
    eligible_subtotal: float = 0.0
    discount_amount: float = 0.0
    message: str | None = None

    def to_dict(self) -> dict:
        if not self.valid:
            return {"valid": False, "message": self.message}
        return {
            "valid": True,
            "coupon": self.coupon.to_dict() if self.coupon else None,
            "eligibleItems": self.eligible_items,
            "eligibleSubtotal": self.eligible_subtotal,
            "discountAmount": self.discount_amount,
            "message": self.message,
        }


def list_coupons() -> list[Coupon]:
    return db.session.query(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()


def get_coupon_by_code(code: str | None) -> Coupon | None:
    if not code or not str(code).strip():
        return None
    return db.session.query(Coupon).filter_by(code=str(code).strip().upper()).first()


def get_active_coupon(code: str | None) -> Coupon | None:
    coupon = get_coupon_by_code(code)
    if coupon and coupon.is_active:
        return coupon
    return None


def create_coupon(payload: dict) -> Coupon:
    patch = validate_payload(model=Coupon, payload=payload, policy=COUPON_POLICY, partial=False)
    enforce_rules_coupon(patch, COUPON_TYPES, COUPON_SCOPES)

    if get_coupon_by_code(patch["code"]):
        raise ConflictError(f"Coupon {patch['code']} already exists")

    coupon = Coupon(**patch)
    db.session.add(coupon)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Coupon {patch['code']} already exists")
    return coupon


def delete_coupon(coupon_id: int) -> bool:
    coupon = db.session.get(Coupon, coupon_id)
    if not coupon:
        return False
    db.session.delete(coupon)
    db.session.commit()
    return True


def _number(value) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _is_eligible(coupon: Coupon, item: dict) -> bool:
    if item.get("isPreOrder") and not coupon.allow_pre_order:
        return False

    if coupon.scope == "store":
        return True
    if coupon.scope == "category":
        category = item.get("category")
        return bool(category) and category in (coupon.allowed_categories or [])
    if coupon.scope == "product":
        product_id = item.get("productId")
        allowed = {str(p) for p in (coupon.allowed_products or [])}
        return product_id is not None and str(product_id) in allowed
    return False


def apply_coupon(coupon: Coupon, items: list[dict]) -> CouponEvaluation:
    """
    Work out which cart lines a coupon covers and the discount on them.

    Lines are {price, qty, category, productId, isPreOrder}. A flat coupon
    never discounts more than the eligible subtotal.
    """
    eligible_items: list[int] = []
    eligible_subtotal = 0.0

    for index, item in enumerate(items):
        if not isinstance(item, dict) or not _is_eligible(coupon, item):
            continue
        eligible_items.append(index)
        eligible_subtotal += _number(item.get("price")) * _number(item.get("qty"))

    if not eligible_items:
        return CouponEvaluation(valid=False, coupon=coupon, message=NO_ELIGIBLE_ITEMS_MESSAGE)

    if coupon.type == "percentage":
        discount_amount = eligible_subtotal * coupon.discount / 100
    else:
        discount_amount = min(coupon.discount, eligible_subtotal)

    message = None
    if len(eligible_items) < len(items):
        message = f"Coupon applied to {len(eligible_items)} of {len(items)} items"

    return CouponEvaluation(
        valid=True,
        coupon=coupon,
        eligible_items=eligible_items,
        eligible_subtotal=round(eligible_subtotal, 2),
        discount_amount=round(max(discount_amount, 0.0), 2),
        message=message,
    )


def evaluate_coupon(code: str | None, items: list[dict] | None) -> CouponEvaluation:
    coupon = get_active_coupon(code)
    if not coupon:
        return CouponEvaluation(valid=False, message=INVALID_COUPON_MESSAGE)
    return apply_coupon(coupon, items or [])
