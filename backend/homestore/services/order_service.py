# Overview: Online order creation, tracking and the order status machine.

"""
Order Service - validate, price, deduct, record

WHY: Stock validation and deduction must see the same numbers. Everything
from reading product rows to the final commit runs in one locked
transaction (see concurrency.py), so two checkouts racing for the last
unit cannot both succeed.

Creation is all-or-nothing: every item is validated, every problem is
collected into one message, and nothing is written unless all items pass.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Order, Product, ORDER_STATUSES
from homestore.time_utils import utcnow, to_utc_z
from . import notification_service
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .coupon_service import apply_coupon, get_active_coupon
from .numbering_service import next_order_number
from .variant_stock import (
    DEFAULT_COLOR,
    DEFAULT_SIZE,
    InsufficientStockError,
    StockLine,
    available_stock,
    coerce_qty,
    deduct_stock,
    normalize_options,
    resolve_key,
    restore_stock,
)


PAYMENT_METHODS = ("cod", "bank")
REQUIRED_CUSTOMER_FIELDS = ("customerName", "customerEmail", "customerPhone", "shippingAddress")


class OrderError(Exception):
    """Raised for order operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _coerce_id(value) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _money(value) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def unit_price(product: Product, size: str) -> float:
    """Server-side price for one unit of a product in a given size."""
    if product.is_pre_order and product.pre_order_price is not None:
        return float(product.pre_order_price)
    for variant in product.variants or []:
        if isinstance(variant, dict) and variant.get("size") == size and variant.get("price") is not None:
            return float(variant["price"])
    if product.is_on_sale and product.sale_price is not None:
        return float(product.sale_price)
    return float(product.price)


def validate_items(items: list[dict], products: dict[int, Product]) -> tuple[list[StockLine], list[str]]:
    """
    Check every requested item against the catalog and current stock.

    Returns the validated lines and a list of human-readable errors. Errors
    for all items are collected; an item with an error is skipped, never
    partially accepted. Lines that resolve to the same variant key are
    checked against stock together.
    """
    lines: list[StockLine] = []
    errors: list[str] = []
    requested: dict[tuple[int, str], int] = {}

    for item in items:
        if not isinstance(item, dict):
            errors.append("Invalid item in order")
            continue

        name = item.get("name") or "Item"
        raw_id = item.get("productId")
        if raw_id in (None, ""):
            errors.append(f'Product ID missing for "{name}"')
            continue

        product_id = _coerce_id(raw_id)
        product = products.get(product_id) if product_id is not None else None
        if not product:
            errors.append(f'Product "{name}" not found (ID: {raw_id})')
            continue

        qty = coerce_qty(item.get("qty"))
        if qty is None:
            errors.append(f"Invalid quantity for {name}")
            continue

        size, color = normalize_options(item.get("size"), item.get("color"))

        colors = product.colors or []
        if colors and color != DEFAULT_COLOR and color not in colors:
            errors.append(f'Invalid color "{color}" for {name}')
            continue

        sizes = product.sizes
        if sizes and size != DEFAULT_SIZE and size not in sizes:
            errors.append(f'Invalid size "{size}" for {name}')
            continue

        available = available_stock(product, size, color)
        key = resolve_key(product.variant_stock, size, color)
        total = requested.get((product.id, key), 0) + qty

        if available <= 0:
            errors.append(f"{name} ({size}/{color}) is out of stock")
            continue
        if total > available:
            errors.append(f"{name} ({size}/{color}) only has {available} available")
            continue

        requested[(product.id, key)] = total
        lines.append(StockLine(product_id=product.id, name=name, size=size, color=color, qty=qty))

    return lines, errors


def _validate_customer(data: dict) -> list[str]:
    errors = []
    missing = [f for f in REQUIRED_CUSTOMER_FIELDS if not str(data.get(f) or "").strip()]
    if missing:
        errors.append(f"Missing required fields: {', '.join(missing)}")

    payment_method = data.get("paymentMethod")
    if payment_method not in PAYMENT_METHODS:
        errors.append(f"paymentMethod must be one of: {', '.join(PAYMENT_METHODS)}")

    shipping = _money(data.get("shipping", 0))
    if shipping is None or shipping < 0:
        errors.append("shipping must be a non-negative number")

    initial_status = data.get("status") or "pending"
    if initial_status not in ORDER_STATUSES or initial_status in ("cancelled", "refunded"):
        errors.append(f"Invalid initial status: {initial_status}")
    return errors


def _lock_products(product_ids) -> dict[int, Product]:
    ids = sorted({pid for pid in product_ids if pid is not None})
    if not ids:
        return {}
    rows = lock_for_update(db.session.query(Product).filter(Product.id.in_(ids))).all()
    return {p.id: p for p in rows}


def _snapshot_items(
    lines: list[StockLine],
    products: dict[int, Product],
    raw_items: list[dict],
    stock_keys: list[str],
) -> list[dict]:
    snapshot = []
    for line, raw, stock_key in zip(lines, raw_items, stock_keys):
        product = products[line.product_id]
        entry = {
            "productId": product.id,
            "name": product.name,
            "qty": line.qty,
            "price": unit_price(product, line.size),
            "category": product.category,
            "size": line.size,
            "color": line.color,
            "stockKey": stock_key,
            "isPreOrder": bool(product.is_pre_order or raw.get("isPreOrder")),
        }
        if product.is_pre_order:
            entry["preOrderEta"] = product.pre_order_eta
        snapshot.append(entry)
    return snapshot


def create_order(data: dict) -> Order:
    """
    Validate, price and persist an order, deducting stock for every item.

    Raises OrderError with an aggregated message when any item or field
    fails validation; in that case nothing is written.
    """
    data = data or {}
    items = data.get("items") or []
    if not isinstance(items, list) or not items:
        raise OrderError("No items in order")

    field_errors = _validate_customer(data)
    if field_errors:
        raise OrderError("; ".join(field_errors), details={"errors": field_errors})

    def _op():
        begin_write_transaction()
        products = _lock_products(_coerce_id(i.get("productId")) for i in items if isinstance(i, dict))
        lines, errors = validate_items(items, products)

        if errors:
            raise OrderError(
                "Stock validation failed: " + "; ".join(errors),
                details={"errors": errors},
            )

        try:
            stock_keys = [
                deduct_stock(products[line.product_id], line.size, line.color, line.qty)
                for line in lines
            ]
        except InsufficientStockError as e:
            raise OrderError("Stock validation failed: " + str(e), details={"errors": [str(e)]})

        snapshot = _snapshot_items(lines, products, items, stock_keys)
        subtotal = round(sum(i["price"] * i["qty"] for i in snapshot), 2)

        discount = 0.0
        coupon_code = (data.get("couponCode") or "").strip().upper() or None
        if coupon_code:
            coupon = get_active_coupon(coupon_code)
            evaluation = apply_coupon(coupon, snapshot) if coupon else None
            if not evaluation or not evaluation.valid:
                message = f"Coupon {coupon_code} cannot be applied to this order"
                raise OrderError(message, details={"errors": [message]})
            discount = evaluation.discount_amount

        shipping = round(_money(data.get("shipping", 0)) or 0.0, 2)
        total = round(max(subtotal - discount, 0.0) + shipping, 2)

        now = utcnow()
        initial_status = data.get("status") or "pending"
        order = Order(
            order_number=next_order_number(),
            customer_id=_coerce_id(data.get("customerId")),
            customer_name=str(data["customerName"]).strip(),
            customer_email=str(data["customerEmail"]).strip(),
            customer_phone=str(data["customerPhone"]).strip(),
            shipping_address=str(data["shippingAddress"]).strip(),
            items=snapshot,
            subtotal=subtotal,
            discount=discount,
            shipping=shipping,
            total=total,
            payment_method=data["paymentMethod"],
            payment_slip=data.get("paymentSlip"),
            coupon_code=coupon_code,
            status=initial_status,
            status_history=[{"status": initial_status, "timestamp": to_utc_z(now)}],
            created_at=now,
        )
        db.session.add(order)
        db.session.commit()
        return order

    order = run_with_retry(_op, retry_on=(OperationalError, StaleDataError, IntegrityError))
    current_app.logger.info("Order %s created with %d item(s)", order.order_number, len(order.items or []))

    try:
        notification_service.notify_order_created(order.to_dict())
    except Exception:
        current_app.logger.exception("Failed to dispatch confirmation email for %s", order.order_number)
    return order


def update_order_status(order_id: int, status: str, note: str | None = None) -> Order | None:
    """
    Move an order to any status (operators are trusted; no transition table).

    Every change appends to status_history. The first move into "cancelled"
    puts each item's quantity back on its variant; stock_restored keeps a
    later cancel (after the order was reopened) from restoring it again.
    Leaving "cancelled" does not deduct again.

    Returns None when the order does not exist.
    """
    if status not in ORDER_STATUSES:
        raise OrderError(f"Invalid status: {status}", details={"allowed": list(ORDER_STATUSES)})

    state = {"changed": False}

    def _op():
        state["changed"] = False
        begin_write_transaction()
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            db.session.commit()
            return None

        previous = order.status
        if previous == status:
            db.session.commit()
            return order

        if status == "cancelled" and not order.stock_restored:
            items = order.items or []
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
            order.stock_restored = True

        entry = {"status": status, "timestamp": to_utc_z(utcnow())}
        if note:
            entry["note"] = note
        order.status = status
        order.status_history = list(order.status_history or []) + [entry]

        db.session.commit()
        state["changed"] = True
        return order

    order = run_with_retry(_op)

    if order is not None and state["changed"]:
        current_app.logger.info("Order %s moved to %s", order.order_number, status)
        try:
            notification_service.notify_status_changed(order.to_dict(), status)
        except Exception:
            current_app.logger.exception("Failed to dispatch status email for %s", order.order_number)
    return order


def list_orders() -> list[Order]:
    return db.session.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(order_id: int) -> Order | None:
    return db.session.get(Order, order_id)


def get_order_by_number(order_number: str | None) -> Order | None:
    if not order_number or not order_number.strip():
        return None
    return db.session.query(Order).filter_by(order_number=order_number.strip().upper()).first()


def list_orders_for_email(email: str | None) -> list[Order]:
    clean = (email or "").strip().lower()
    if not clean:
        return []
    return (
        db.session.query(Order)
        .filter(func.lower(func.trim(Order.customer_email)) == clean)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
