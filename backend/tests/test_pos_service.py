"""
POS checkout tests.

Till sales skip option-list checks, fill missing options from the
product's first declared size/color and give stock back once when a
sale is voided or refunded.
"""

import re
from datetime import datetime

import pytest

from homestore.models import PosTransaction
from homestore.services import pos_service
from homestore.services.numbering_service import generate_transaction_number
from homestore.services.pos_service import PosError


def _sale(*items, **overrides):
    data = {
        "items": list(items),
        "paymentMethod": "cash",
        "subtotal": 1000,
        "discount": 0,
        "gstPercentage": 8,
        "gstAmount": 80,
        "total": 1080,
        "amountReceived": 1100,
        "change": 20,
    }
    data.update(overrides)
    return data


def test_missing_options_use_first_declared(db_session, sheet_set):
    tx = pos_service.create_transaction(_sale({"productId": sheet_set.id, "name": "Sheets", "qty": 1, "price": 1000}))

    assert tx.items[0]["size"] == "Queen"
    assert tx.items[0]["color"] == "White"
    assert sheet_set.variant_stock["Queen-White"] == 1


def test_undeclared_options_are_not_rejected(db_session, sheet_set):
    # Only stock is checked at the till; "Purple" resolves through the size prefix
    tx = pos_service.create_transaction(_sale(
        {"productId": sheet_set.id, "name": "Sheets", "qty": 1, "size": "King", "color": "Purple"}
    ))
    assert tx.status == "completed"
    assert sheet_set.variant_stock["King-Grey"] == 4


def test_transaction_number_format(db_session, towel):
    tx = pos_service.create_transaction(_sale({"productId": towel.id, "name": "Towel", "qty": 1}))
    assert re.fullmatch(r"POS-\d{8}-\d{6}-\d{3}", tx.transaction_number)


def test_generate_transaction_number_uses_clock():
    number = generate_transaction_number(datetime(2024, 3, 9, 14, 5, 7))
    assert number.startswith("POS-20240309-140507-")


def test_money_fields_coerced(db_session, towel):
    tx = pos_service.create_transaction(_sale(
        {"productId": towel.id, "name": "Towel", "qty": 1},
        total="1080.50",
        change="oops",
    ))
    assert tx.total == 1080.5
    assert tx.change == 0


def test_all_or_nothing(db_session, sheet_set, towel):
    with pytest.raises(PosError) as exc:
        pos_service.create_transaction(_sale(
            {"productId": towel.id, "name": "Towel", "qty": 2},
            {"productId": sheet_set.id, "name": "Sheets", "qty": 3, "size": "Queen", "color": "White"},
            {"productId": 9999, "name": "Ghost", "qty": 1},
        ))

    message = str(exc.value)
    assert "Sheets (Queen/White) only has 2 available" in message
    assert 'Product "Ghost" not found' in message
    assert db_session.query(PosTransaction).count() == 0
    assert towel.variant_stock == {"Standard-White": 10}


def test_empty_transaction_rejected(db_session):
    with pytest.raises(PosError, match="No items in transaction"):
        pos_service.create_transaction(_sale())


@pytest.mark.parametrize("status", ["voided", "refunded"])
def test_void_or_refund_restores_once(db_session, towel, status):
    tx = pos_service.create_transaction(_sale({"productId": towel.id, "name": "Towel", "qty": 4}))
    assert towel.variant_stock["Standard-White"] == 6

    pos_service.update_transaction(tx.id, {"status": status})
    assert towel.variant_stock["Standard-White"] == 10
    assert tx.stock_restored is True

    pos_service.update_transaction(tx.id, {"status": "completed"})
    pos_service.update_transaction(tx.id, {"status": status})
    assert towel.variant_stock["Standard-White"] == 10


def test_pending_sale_voided_returns_stock(db_session, towel):
    tx = pos_service.create_transaction(_sale({"productId": towel.id, "name": "Towel", "qty": 1}, status="pending"))
    pos_service.update_transaction(tx.id, {"status": "voided"})
    assert towel.variant_stock["Standard-White"] == 10
    assert tx.stock_restored is True

    pos_service.update_transaction(tx.id, {"status": "refunded"})
    assert towel.variant_stock["Standard-White"] == 10


def test_void_restores_to_recorded_key(db_session, sheet_set):
    tx = pos_service.create_transaction(_sale(
        {"productId": sheet_set.id, "name": "Sheets", "qty": 2, "size": "king", "color": "grey"},
    ))
    assert tx.items[0]["stockKey"] == "King-Grey"
    assert sheet_set.variant_stock["King-Grey"] == 3

    pos_service.update_transaction(tx.id, {"status": "voided"})
    assert sheet_set.variant_stock == {"Queen-White": 2, "King-Grey": 5}


def test_whole_float_quantity_accepted(db_session, towel):
    tx = pos_service.create_transaction(_sale({"productId": towel.id, "name": "Towel", "qty": 2.0}))
    assert tx.items[0]["qty"] == 2
    assert towel.variant_stock["Standard-White"] == 8


@pytest.mark.parametrize("qty", [2.5, 0, -1, True, "2"])
def test_bad_quantity_rejected(db_session, towel, qty):
    with pytest.raises(PosError, match="Invalid quantity for Towel"):
        pos_service.create_transaction(_sale({"productId": towel.id, "name": "Towel", "qty": qty}))
    assert towel.variant_stock["Standard-White"] == 10


def test_update_fields_and_invalid_status(db_session, towel):
    tx = pos_service.create_transaction(_sale({"productId": towel.id, "name": "Towel", "qty": 1}))
    pos_service.update_transaction(tx.id, {"notes": "Gift wrap", "customerName": "Hassan"})
    assert tx.notes == "Gift wrap"
    assert tx.customer_name == "Hassan"

    with pytest.raises(PosError, match="Invalid status"):
        pos_service.update_transaction(tx.id, {"status": "lost"})
    assert pos_service.update_transaction(424242, {"notes": "x"}) is None


def test_today_stats_count_completed_only(db_session, towel):
    pos_service.create_transaction(_sale({"productId": towel.id, "name": "Towel", "qty": 2}, total=1000))
    pos_service.create_transaction(_sale({"productId": towel.id, "name": "Towel", "qty": 1}, total=500))
    voided = pos_service.create_transaction(_sale({"productId": towel.id, "name": "Towel", "qty": 1}, total=700))
    pos_service.update_transaction(voided.id, {"status": "voided"})

    stats = pos_service.today_stats()
    assert stats == {
        "totalSales": 1500,
        "totalTransactions": 2,
        "totalItems": 3,
        "averageTransaction": 750,
    }
