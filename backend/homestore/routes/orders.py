# Overview: Flask API routes for online orders; parses input and returns JSON responses.

# backend/homestore/routes/orders.py
"""Order routes: checkout, tracking and the admin status update."""

from flask import Blueprint, request, current_app

from ..services import order_service
from ..services.order_service import OrderError


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
def list_orders():
    return [o.to_dict() for o in order_service.list_orders()]


@orders_bp.get("/customer/<path:email>")
def list_customer_orders(email: str):
    return [o.to_dict() for o in order_service.list_orders_for_email(email)]


@orders_bp.get("/track/<order_number>")
def track_order(order_number: str):
    """Public lookup by the human-readable order number."""
    order = order_service.get_order_by_number(order_number)
    if not order:
        return {"message": "Order not found"}, 404
    return order.to_dict()


@orders_bp.get("/<int:order_id>")
def get_order(order_id: int):
    order = order_service.get_order(order_id)
    if not order:
        return {"message": "Order not found"}, 404
    return order.to_dict()


@orders_bp.post("")
def create_order_route():
    """
    Checkout.

    400 with every validation problem joined into one message when any
    item fails; nothing is stored and no stock moves in that case.
    """
    payload = request.get_json(silent=True) or {}
    try:
        order = order_service.create_order(payload)
    except OrderError as e:
        return {"message": str(e), "details": e.details}, 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return {"message": "Internal server error"}, 500
    return order.to_dict(), 201


@orders_bp.patch("/<int:order_id>/status")
def update_status_route(order_id: int):
    """Body: {"status": str, "note": str?}"""
    payload = request.get_json(silent=True) or {}
    status = payload.get("status")
    if not status:
        return {"message": "status required"}, 400

    try:
        order = order_service.update_order_status(order_id, status, note=payload.get("note"))
    except OrderError as e:
        return {"message": str(e), "details": e.details}, 400
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return {"message": "Internal server error"}, 500

    if not order:
        return {"message": "Order not found"}, 404
    return order.to_dict()
