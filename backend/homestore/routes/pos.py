# Overview: Flask API routes for point-of-sale transactions.

# backend/homestore/routes/pos.py
"""POS routes: till checkout, transaction lookup/update and daily stats."""

from flask import Blueprint, request, current_app

from ..services import pos_service
from ..services.pos_service import PosError


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


@pos_bp.get("/transactions")
def list_transactions():
    return [t.to_dict() for t in pos_service.list_transactions()]


@pos_bp.get("/transactions/today")
def list_today():
    return [t.to_dict() for t in pos_service.list_today_transactions()]


@pos_bp.get("/transactions/<int:transaction_id>")
def get_transaction(transaction_id: int):
    tx = pos_service.get_transaction(transaction_id)
    if not tx:
        return {"message": "Transaction not found"}, 404
    return tx.to_dict()


@pos_bp.post("/transactions")
def create_transaction_route():
    payload = request.get_json(silent=True) or {}
    try:
        tx = pos_service.create_transaction(payload)
    except PosError as e:
        return {"message": str(e), "details": e.details}, 400
    except Exception:
        current_app.logger.exception("Failed to record POS transaction")
        return {"message": "Internal server error"}, 500
    return tx.to_dict(), 201


@pos_bp.patch("/transactions/<int:transaction_id>")
def update_transaction_route(transaction_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        tx = pos_service.update_transaction(transaction_id, payload)
    except PosError as e:
        return {"message": str(e), "details": e.details}, 400
    except Exception:
        current_app.logger.exception("Failed to update POS transaction")
        return {"message": "Internal server error"}, 500
    if not tx:
        return {"message": "Transaction not found"}, 404
    return tx.to_dict()


@pos_bp.get("/stats/today")
def stats_today():
    return pos_service.today_stats()
