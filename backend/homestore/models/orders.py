from __future__ import annotations

from ..extensions import db
from homestore.time_utils import to_utc_z


ORDER_STATUSES = (
    "pending",
    "confirmed",
    "payment_verification",
    "processing",
    "shipped",
    "in_transit",
    "out_for_delivery",
    "delivered",
    "delivery_exception",
    "cancelled",
    "refunded",
)


class Order(db.Model):
    """
    Online storefront order.

    items is a JSON snapshot of what was sold:
    [{"productId", "name", "qty", "price", "color", "size", "isPreOrder"}]
    Stock was deducted for every line at creation; the first cancellation
    restores it and sets stock_restored.

    status_history is append-only: one {"status", "timestamp"} entry at
    creation and one per status change.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_customer_email", "customer_email"),
        db.Index("ix_orders_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(16), nullable=False, unique=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(64), nullable=False)
    shipping_address = db.Column(db.Text, nullable=False)

    items = db.Column(db.JSON, nullable=False, default=list)

    subtotal = db.Column(db.Float, nullable=False)
    discount = db.Column(db.Float, nullable=False, default=0)
    shipping = db.Column(db.Float, nullable=False, default=0)
    total = db.Column(db.Float, nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)  # cod, bank
    payment_slip = db.Column(db.String(1024), nullable=True)
    coupon_code = db.Column(db.String(64), nullable=True)

    status = db.Column(db.String(32), nullable=False, default="pending")
    status_history = db.Column(db.JSON, nullable=False, default=list)
    stock_restored = db.Column(db.Boolean, nullable=False, default=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number!r} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "customerId": self.customer_id,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerPhone": self.customer_phone,
            "shippingAddress": self.shipping_address,
            "items": self.items or [],
            "subtotal": self.subtotal,
            "discount": self.discount,
            "shipping": self.shipping,
            "total": self.total,
            "paymentMethod": self.payment_method,
            "paymentSlip": self.payment_slip,
            "couponCode": self.coupon_code,
            "status": self.status,
            "statusHistory": self.status_history or [],
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
