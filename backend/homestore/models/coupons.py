from __future__ import annotations

from ..extensions import db
from homestore.time_utils import to_utc_z


COUPON_TYPES = ("percentage", "flat")
COUPON_SCOPES = ("store", "category", "product")


class Coupon(db.Model):
    """
    Discount code.

    code is stored uppercase; lookups uppercase their input.
    discount is a percentage (0-100) for type=percentage, a currency
    amount for type=flat. allowed_categories / allowed_products only apply
    when scope matches.
    """
    __tablename__ = "coupons"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False, unique=True)
    discount = db.Column(db.Float, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="active")

    scope = db.Column(db.String(16), nullable=False, default="store")
    allowed_categories = db.Column(db.JSON, nullable=False, default=list)
    allowed_products = db.Column(db.JSON, nullable=False, default=list)
    allow_pre_order = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Coupon id={self.id} code={self.code!r} type={self.type!r} scope={self.scope!r}>"

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "discount": self.discount,
            "type": self.type,
            "status": self.status,
            "scope": self.scope,
            "allowedCategories": self.allowed_categories or [],
            "allowedProducts": self.allowed_products or [],
            "allowPreOrder": self.allow_pre_order,
            "createdAt": to_utc_z(self.created_at),
        }
