from __future__ import annotations

from ..extensions import db
from homestore.time_utils import to_utc_z


class PosTransaction(db.Model):
    """
    In-store point-of-sale checkout.

    transaction_number format: POS-YYYYMMDD-HHMMSS-NNN (UTC wall clock).
    Stock is deducted at creation. Moving a transaction to
    voided/refunded restores it once (stock_restored guards the repeat).
    """
    __tablename__ = "pos_transactions"
    __table_args__ = (
        db.Index("ix_pos_transactions_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_number = db.Column(db.String(32), nullable=False, unique=True)

    items = db.Column(db.JSON, nullable=False, default=list)

    subtotal = db.Column(db.Float, nullable=False, default=0)
    discount = db.Column(db.Float, nullable=False, default=0)
    gst_percentage = db.Column(db.Float, nullable=False, default=0)
    gst_amount = db.Column(db.Float, nullable=False, default=0)
    tax = db.Column(db.Float, nullable=False, default=0)
    total = db.Column(db.Float, nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False, default="cash")
    amount_received = db.Column(db.Float, nullable=False, default=0)
    change = db.Column(db.Float, nullable=False, default=0)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(64), nullable=True)

    cashier_id = db.Column(db.String(64), nullable=False, default="default")
    cashier_name = db.Column(db.String(255), nullable=False, default="Admin")
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(32), nullable=False, default="completed")
    stock_restored = db.Column(db.Boolean, nullable=False, default=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<PosTransaction id={self.id} number={self.transaction_number!r} status={self.status!r}>"

    def item_count(self) -> int:
        return sum(int(item.get("qty") or 0) for item in (self.items or []))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transactionNumber": self.transaction_number,
            "items": self.items or [],
            "subtotal": self.subtotal,
            "discount": self.discount,
            "gstPercentage": self.gst_percentage,
            "gstAmount": self.gst_amount,
            "tax": self.tax,
            "total": self.total,
            "paymentMethod": self.payment_method,
            "amountReceived": self.amount_received,
            "change": self.change,
            "customerId": self.customer_id,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "cashierId": self.cashier_id,
            "cashierName": self.cashier_name,
            "notes": self.notes,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
        }
