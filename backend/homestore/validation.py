from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import JSON, Boolean, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 9,999,999.99 in store currency
# This prevents nonsensical prices from admin typos
MAX_PRICE = 9_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate coupon code)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - field_map: wire (camelCase) name -> model column key; also the
      allowlist of what clients may set (security boundary)
    - required_on_create: wire fields required for POST
    """
    field_map: dict[str, str]
    required_on_create: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(name: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or not stripped.lstrip("-").isdigit():
                raise ValidationError(f"{name} must be an integer")
            return int(stripped)
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ValidationError(f"{name} must be an integer")

    if isinstance(coltype, Float):
        if isinstance(value, bool):
            raise ValidationError(f"{name} must be a number")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                raise ValidationError(f"{name} must be a number")
        raise ValidationError(f"{name} must be a number")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    if isinstance(coltype, JSON):
        if not isinstance(value, (list, dict)):
            raise ValidationError(f"{name} must be a list or object")
        return value

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - the policy allowlist (field_map)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    Read-only wire fields the client echoes back (id, createdAt, ...) are
    ignored rather than rejected, since admin UIs PATCH whole records.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    patch: dict = {}

    for wire_name, raw in payload.items():
        column_key = policy.field_map.get(wire_name)
        if column_key is None:
            continue
        col = cols[column_key]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{wire_name} cannot be null")
            patch[column_key] = None
            continue

        val = _coerce_value(wire_name, col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable and col.default is None:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{wire_name} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{wire_name} exceeds max length {col.type.length}")

        patch[column_key] = val

    return patch


def _enforce_price(name: str, value) -> None:
    if value is None:
        return
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")
    if value > MAX_PRICE:
        raise ValidationError(f"{name} cannot exceed {MAX_PRICE:,.2f}")


def validate_variant_stock(variant_stock) -> dict[str, int]:
    """variant_stock must map "{size}-{color}" keys to integers >= 0."""
    if not isinstance(variant_stock, dict):
        raise ValidationError("variantStock must be an object")
    cleaned: dict[str, int] = {}
    for key, count in variant_stock.items():
        if not isinstance(key, str) or "-" not in key:
            raise ValidationError(f"variantStock key {key!r} must look like 'Size-Color'")
        if isinstance(count, bool) or not isinstance(count, int):
            if isinstance(count, float) and count.is_integer():
                count = int(count)
            else:
                raise ValidationError(f"variantStock[{key!r}] must be an integer")
        if count < 0:
            raise ValidationError(f"variantStock[{key!r}] must be >= 0")
        cleaned[key] = count
    return cleaned


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for name in ("price", "sale_price", "cost_price", "pre_order_price", "pre_order_initial_payment", "express_charge"):
        if name in patch:
            _enforce_price(name, patch[name])

    if "stock" in patch and patch["stock"] is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")

    if "low_stock_threshold" in patch and patch["low_stock_threshold"] is not None and patch["low_stock_threshold"] < 0:
        raise ValidationError("lowStockThreshold must be >= 0")

    if "variant_stock" in patch:
        patch["variant_stock"] = validate_variant_stock(patch["variant_stock"])

    if "variants" in patch:
        variants = patch["variants"]
        if not isinstance(variants, list):
            raise ValidationError("variants must be a list")
        for variant in variants:
            if not isinstance(variant, dict) or not str(variant.get("size") or "").strip():
                raise ValidationError("each variant needs a size")
            if variant.get("price") is not None:
                if isinstance(variant["price"], bool) or not isinstance(variant["price"], (int, float)):
                    raise ValidationError("variant price must be a number")
                _enforce_price("variant price", variant["price"])

    if "colors" in patch:
        colors = patch["colors"]
        if not isinstance(colors, list) or not all(isinstance(c, str) and c.strip() for c in colors):
            raise ValidationError("colors must be a list of names")

    if "color_images" in patch and not isinstance(patch["color_images"], dict):
        raise ValidationError("colorImages must be an object")


def enforce_rules_coupon(patch: dict, valid_types, valid_scopes) -> None:
    if "code" in patch and patch["code"] is not None:
        patch["code"] = patch["code"].upper()

    if "type" in patch and patch["type"] not in valid_types:
        raise ValidationError(f"type must be one of: {', '.join(valid_types)}")

    if "scope" in patch and patch["scope"] not in valid_scopes:
        raise ValidationError(f"scope must be one of: {', '.join(valid_scopes)}")

    if "discount" in patch and patch["discount"] is not None:
        if patch["discount"] < 0:
            raise ValidationError("discount must be >= 0")
        if patch.get("type") == "percentage" and patch["discount"] > 100:
            raise ValidationError("percentage discount cannot exceed 100")

    for name in ("allowed_categories", "allowed_products"):
        if name in patch and not isinstance(patch[name], list):
            raise ValidationError(f"{name} must be a list")
