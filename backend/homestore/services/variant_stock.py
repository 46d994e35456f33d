# Overview: Variant-aware stock resolution, deduction and restoration.

"""
Variant stock invariants (authoritative)

Keys:
- Product.variant_stock is keyed "{size}-{color}".
- A missing size defaults to "Standard", a missing color to "Default".

Resolution (first match wins):
1. exact key
2. case-insensitive key
3. first key starting with "{size}-", else first key ending with "-{color}"
   (both case-insensitive, map order)
4. nothing matched, or the map is empty -> 0

Mutation:
- Validation and deduction always resolve through resolve_key(), so the
  entry that was checked is the entry that is decremented.
- Counts never go below zero; a deduction that would do so raises
  InsufficientStockError and the caller's transaction rolls back.
- Sold lines record the key they were deducted from ("stockKey");
  restoration adds back to that key. Lines without one re-resolve, and
  the exact key is created when nothing resolves.
- Callers hold the product row lock (see concurrency.py); these helpers
  never commit.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..models import Product


DEFAULT_SIZE = "Standard"
DEFAULT_COLOR = "Default"


class InsufficientStockError(Exception):
    """Raised when a deduction would take a variant below zero."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class StockLine:
    """One validated line ready for deduction."""
    product_id: int
    name: str
    size: str
    color: str
    qty: int


def normalize_options(size: str | None, color: str | None) -> tuple[str, str]:
    size = (size or "").strip() if isinstance(size, str) else ""
    color = (color or "").strip() if isinstance(color, str) else ""
    return size or DEFAULT_SIZE, color or DEFAULT_COLOR


def variant_key(size: str | None, color: str | None) -> str:
    size, color = normalize_options(size, color)
    return f"{size}-{color}"


def coerce_qty(value) -> int | None:
    """Positive whole-unit quantity, or None. 2.0 counts as 2; booleans do not count."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value > 0:
        return value
    return None


def _count(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError):
        return 0
    return count if count > 0 else 0


def resolve_key(variant_stock: dict | None, size: str | None, color: str | None) -> str | None:
    """Return the variant_stock key a (size, color) request maps to, or None."""
    if not isinstance(variant_stock, dict) or not variant_stock:
        return None

    size, color = normalize_options(size, color)
    key = f"{size}-{color}"
    if key in variant_stock:
        return key

    lowered = key.lower()
    for candidate in variant_stock:
        if str(candidate).lower() == lowered:
            return candidate

    size_prefix = size.lower() + "-"
    for candidate in variant_stock:
        if str(candidate).lower().startswith(size_prefix):
            return candidate

    color_suffix = "-" + color.lower()
    for candidate in variant_stock:
        if str(candidate).lower().endswith(color_suffix):
            return candidate

    return None


def resolve_stock(variant_stock: dict | None, size: str | None, color: str | None) -> int:
    """Resolved stock count for (size, color); always an int >= 0."""
    key = resolve_key(variant_stock, size, color)
    if key is None:
        return 0
    return _count(variant_stock.get(key))


def available_stock(product: Product, size: str | None, color: str | None) -> int:
    return resolve_stock(product.variant_stock, size, color)


def deduct_stock(product: Product, size: str | None, color: str | None, qty: int) -> str:
    """
    Decrement the resolved variant by qty. Returns the key touched.

    Raises InsufficientStockError when nothing resolves or the count would
    go negative.
    """
    stock_map = dict(product.variant_stock or {})
    key = resolve_key(stock_map, size, color)
    current = _count(stock_map.get(key)) if key is not None else 0

    if key is None or current < qty:
        size, color = normalize_options(size, color)
        raise InsufficientStockError(
            f"{product.name} ({size}/{color}) only has {current} available",
            details={"product_id": product.id, "key": key, "available": current, "requested": qty},
        )

    stock_map[key] = current - qty
    product.variant_stock = stock_map
    current_app.logger.info(
        "Stock deducted product_id=%s key=%s qty=%s remaining=%s",
        product.id, key, qty, stock_map[key],
    )
    return key


def restore_stock(
    product: Product,
    size: str | None,
    color: str | None,
    qty: int,
    key: str | None = None,
) -> str:
    """
    Add qty back to a variant. Returns the key touched.

    key is the entry the units were deducted from; without it the
    (size, color) request is resolved again.
    """
    stock_map = dict(product.variant_stock or {})
    if not key:
        key = resolve_key(stock_map, size, color) or variant_key(size, color)

    stock_map[key] = _count(stock_map.get(key)) + qty
    product.variant_stock = stock_map
    current_app.logger.info(
        "Stock restored product_id=%s key=%s qty=%s now=%s",
        product.id, key, qty, stock_map[key],
    )
    return key
