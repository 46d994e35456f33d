# Overview: Point-of-sale checkout, transaction updates and daily stats.

"""
POS Service - in-store checkout

Differences from online orders:
- Declared color/size lists are not checked; only stock is.
- A missing size/color falls back to the product's first declared
  variant/color before "Standard"/"Default".
- Monetary fields are taken from the register (cash drawer maths happen
  at the till) and coerced to numbers.

Like orders, validate + insert + deduct run in one locked transaction, and
moving a transaction to voided/refunded restores its stock once, to the
variant keys it was deducted from.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import PosTransaction, Product
from homestore.time_utils import utcnow, start_of_day
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .numbering_service import next_transaction_number
from .variant_stock import (
    DEFAULT_COLOR,
    DEFAULT_SIZE,
    InsufficientStockError,
    StockLine,
    available_stock,
    coerce_qty,
    deduct_stock,
    resolve_key,
    restore_stock,
)


POS_STATUSES = ("completed", "pending", "voided", "refunded")
RESTORING_STATUSES = ("voided", "refunded")

MONEY_FIELDS = {
    "subtotal": "subtotal",
    "discount": "discount",
    "gstPercentage": "gst_percentage",
    "gstAmount": "gst_amount",
    "tax": "tax",
    "total": "total",
    "amountReceived": "amount_received",
    "change": "change",
}
TEXT_FIELDS = {
    "customerName": "customer_name",
    "customerPhone": "customer_phone",
    "notes": "notes",
}


class PosError(Exception):
    """Raised for POS operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _number(value) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _coerce_id(value) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def default_options(product: Product, size: str | None, color: str | None) -> tuple[str, str]:
    """Fill in a missing size/color from the product's first declared option."""
    if not size:
        sizes = product.sizes
        size = sizes[0] if sizes else DEFAULT_SIZE
    if not color:
        colors = product.colors or []
        color = colors[0] if colors else DEFAULT_COLOR
    return size, color


def validate_items(items: list[dict], products: dict[int, Product]) -> tuple[list[StockLine], list[str]]:
    lines: list[StockLine] = []
    errors: list[str] = []
    requested: dict[tuple[int, str], int] = {}

    for item in items:
        if not isinstance(item, dict):
            errors.append("Invalid item in transaction")
            continue

        name = item.get("name") or "Item"
        product_id = _coerce_id(item.get("productId"))
        product = products.get(product_id) if product_id is not None else None
        if not product:
            errors.append(f'Product "{name}" not found')
            continue

        qty = coerce_qty(item.get("qty"))
        if qty is None:
            errors.append(f"Invalid quantity for {name}")
            continue

        size, color = default_options(product, item.get("size"), item.get("color"))
        available = available_stock(product, size, color)
        key = resolve_key(product.variant_stock, size, color)
        total = requested.get((product.id, key), 0) + qty

        if available < total:
            errors.append(f"{name} ({size}/{color}) only has {available} available")
            continue

        requested[(product.id, key)] = total
        lines.append(StockLine(product_id=product.id, name=name, size=size, color=color, qty=qty))

    return lines, errors


def _lock_products(product_ids) -> dict[int, Product]:
    ids = sorted({pid for pid in product_ids if pid is not None})
    if not ids:
        return {}
    rows = lock_for_update(db.session.query(Product).filter(Product.id.in_(ids))).all()
    return {p.id: p for p in rows}


def create_transaction(data: dict) -> PosTransaction:
    """Record a till sale and deduct its stock; all-or-nothing."""
    data = data or {}
    items = data.get("items") or []
    if not isinstance(items, list) or not items:
        raise PosError("No items in transaction")

    status = str(data.get("status") or "completed")
    if status not in POS_STATUSES:
        raise PosError(f"Invalid status: {status}", details={"allowed": list(POS_STATUSES)})

    def _op():
        begin_write_transaction()
        products = _lock_products(_coerce_id(i.get("productId")) for i in items if isinstance(i, dict))
        lines, errors = validate_items(items, products)
        if errors:
            raise PosError(
                "Stock validation failed: " + "; ".join(errors),
                details={"errors": errors},
            )

        try:
            stock_keys = [
                deduct_stock(products[line.product_id], line.size, line.color, line.qty)
                for line in lines
            ]
        except InsufficientStockError as e:
            raise PosError("Stock validation failed: " + str(e), details={"errors": [str(e)]})

        now = utcnow()
        stored_items = [
            {
                "productId": line.product_id,
                "name": line.name,
                "qty": line.qty,
                "price": _number(raw.get("price")),
                "size": line.size,
                "color": line.color,
                "stockKey": stock_key,
            }
            for line, raw, stock_key in zip(lines, items, stock_keys)
        ]

        tx = PosTransaction(
            transaction_number=next_transaction_number(now),
            items=stored_items,
            payment_method=str(data.get("paymentMethod") or "cash"),
            customer_id=_coerce_id(data.get("customerId")),
            customer_name=data.get("customerName") or None,
            customer_phone=data.get("customerPhone") or None,
            cashier_id=str(data.get("cashierId") or "default"),
            cashier_name=str(data.get("cashierName") or "Admin"),
            notes=data.get("notes") or None,
            status=status,
            created_at=now,
        )
        for wire_name, column in MONEY_FIELDS.items():
            setattr(tx, column, _number(data.get(wire_name)))
        db.session.add(tx)
        db.session.commit()
        return tx

    tx = run_with_retry(_op, retry_on=(OperationalError, StaleDataError, IntegrityError))
    current_app.logger.info("POS transaction %s recorded, total=%s", tx.transaction_number, tx.total)
    return tx


def update_transaction(transaction_id: int, data: dict) -> PosTransaction | None:
    """
    Generic update of register-editable fields.

    A change to voided/refunded puts the items back on the shelf once,
    whatever the previous status; stock_restored blocks a second restoration.
    """
    data = data or {}
    new_status = data.get("status")
    if new_status is not None and new_status not in POS_STATUSES:
        raise PosError(f"Invalid status: {new_status}", details={"allowed": list(POS_STATUSES)})

    def _op():
        begin_write_transaction()
        tx = lock_for_update(db.session.query(PosTransaction).filter_by(id=transaction_id)).first()
        if not tx:
            db.session.commit()
            return None

        for wire_name, column in MONEY_FIELDS.items():
            if wire_name in data:
                setattr(tx, column, _number(data[wire_name]))
        for wire_name, column in TEXT_FIELDS.items():
            if wire_name in data:
                setattr(tx, column, data[wire_name] or None)
        if "paymentMethod" in data and data["paymentMethod"]:
            tx.payment_method = str(data["paymentMethod"])

        if new_status is not None and new_status != tx.status:
            if new_status in RESTORING_STATUSES and not tx.stock_restored:
                items = tx.items or []
                products = _lock_products(_coerce_id(i.get("productId")) for i in items)
                for item in items:
                    product = products.get(_coerce_id(item.get("productId")))
                    if product is None:
                        continue
                    restore_stock(
                        product,
                        item.get("size"),
                        item.get("color"),
                        int(item.get("qty") or 0),
                        key=item.get("stockKey"),
                    )
                tx.stock_restored = True
            tx.status = new_status

        db.session.commit()
        return tx

    return run_with_retry(_op)


def list_transactions() -> list[PosTransaction]:
    return (
        db.session.query(PosTransaction)
        .order_by(PosTransaction.created_at.desc(), PosTransaction.id.desc())
        .all()
    )


def list_today_transactions() -> list[PosTransaction]:
    return (
        db.session.query(PosTransaction)
        .filter(PosTransaction.created_at >= start_of_day())
        .order_by(PosTransaction.created_at.desc(), PosTransaction.id.desc())
        .all()
    )


def get_transaction(transaction_id: int) -> PosTransaction | None:
    return db.session.get(PosTransaction, transaction_id)


def today_stats() -> dict:
    completed = [t for t in list_today_transactions() if t.status == "completed"]
    total_sales = round(sum(t.total or 0 for t in completed), 2)
    total_transactions = len(completed)
    return {
        "totalSales": total_sales,
        "totalTransactions": total_transactions,
        "totalItems": sum(t.item_count() for t in completed),
        "averageTransaction": round(total_sales / total_transactions, 2) if total_transactions else 0,
    }
