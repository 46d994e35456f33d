# Overview: Human-readable order and POS transaction number allocation.

from __future__ import annotations

import secrets
from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import Order, PosTransaction
from homestore.time_utils import utcnow


# No 0/O or 1/I: order numbers are read out over the phone.
ORDER_NUMBER_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ORDER_NUMBER_LENGTH = 6


class NumberAllocationError(Exception):
    """Raised when no unused number could be generated."""


def generate_order_number() -> str:
    return "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(ORDER_NUMBER_LENGTH))


def generate_transaction_number(now: datetime | None = None) -> str:
    """POS-YYYYMMDD-HHMMSS-NNN"""
    now = now or utcnow()
    suffix = secrets.randbelow(1000)
    return f"POS-{now:%Y%m%d}-{now:%H%M%S}-{suffix:03d}"


def _attempts() -> int:
    return int(current_app.config.get("NUMBER_ALLOCATION_ATTEMPTS", 5))


def next_order_number() -> str:
    """
    Generate an order number not already in use.

    The unique constraint on orders.order_number is still the final
    arbiter; callers retry on IntegrityError.
    """
    for _ in range(_attempts()):
        candidate = generate_order_number()
        exists = db.session.query(Order.id).filter_by(order_number=candidate).first()
        if not exists:
            return candidate
    raise NumberAllocationError("Could not allocate a unique order number")


def next_transaction_number(now: datetime | None = None) -> str:
    for _ in range(_attempts()):
        candidate = generate_transaction_number(now)
        exists = db.session.query(PosTransaction.id).filter_by(transaction_number=candidate).first()
        if not exists:
            return candidate
    raise NumberAllocationError("Could not allocate a unique transaction number")
