# Overview: Order confirmation and status emails via the provider's JSON API.

"""
Email delivery is fire-and-forget.

The order has already been committed by the time anything here runs. A
missing API key, a provider error or a timeout is logged and dropped;
nothing is retried and nothing is raised back into the request.
"""

from __future__ import annotations

import threading
from html import escape

import httpx
from flask import Flask, current_app


STATUS_TEMPLATES = {
    "confirmed": (
        "Order Confirmed - {number}",
        "Order Confirmed!",
        "Your order has been confirmed and payment verified. We are now preparing your items for shipment.",
    ),
    "processing": (
        "Preparing Your Order - {number}",
        "Preparing Your Order",
        "Your order is being prepared for shipment.",
    ),
    "shipped": (
        "Your Order Has Shipped! - {number}",
        "Order Shipped!",
        "Your order has been handed over to our delivery partner and is on its way to you.",
    ),
    "in_transit": (
        "Order In Transit - {number}",
        "On The Way",
        "Your package is moving through our delivery network and will arrive soon.",
    ),
    "out_for_delivery": (
        "Out for Delivery Today! - {number}",
        "Arriving Today!",
        "Your order is out for delivery. Please ensure someone is available to receive the package.",
    ),
    "delivered": (
        "Order Delivered - {number}",
        "Order Delivered!",
        "Your order has been delivered. Thank you for shopping with us.",
    ),
    "cancelled": (
        "Order Cancelled - {number}",
        "Order Cancelled",
        "Your order has been cancelled. If you did not request this cancellation, please contact us immediately.",
    ),
    "refunded": (
        "Refund Processed - {number}",
        "Refund Processed",
        "Your refund has been processed. Please allow 5-7 business days for the amount to reflect in your account.",
    ),
}


class EmailDeliveryError(Exception):
    """Raised by send_email when the provider rejects a message."""


def _tracking_url(app: Flask, order: dict) -> str:
    base = app.config.get("STOREFRONT_BASE_URL", "").rstrip("/")
    return f"{base}/track?order={order['orderNumber']}"


def _money(app: Flask, amount) -> str:
    return f"{app.config.get('CURRENCY', 'MVR')} {float(amount or 0):,.2f}"


def _items_table(app: Flask, items: list[dict]) -> str:
    rows = []
    for item in items:
        options = []
        if item.get("color") and item["color"] != "Default":
            options.append(f"Color: {escape(str(item['color']))}")
        if item.get("size") and item["size"] != "Standard":
            options.append(f"Size: {escape(str(item['size']))}")
        rows.append(
            "<tr>"
            f"<td>{escape(str(item.get('name', '')))}<br><small>{' '.join(options)}</small></td>"
            f"<td style=\"text-align:center\">{item.get('qty', 0)}</td>"
            f"<td style=\"text-align:right\">{_money(app, item.get('price'))}</td>"
            "</tr>"
        )
    return (
        "<table style=\"width:100%;border-collapse:collapse\">"
        "<thead><tr><th>Item</th><th>Qty</th><th>Price</th></tr></thead>"
        f"<tbody>{''.join(rows)}</tbody></table>"
    )


def build_confirmation_email(app: Flask, order: dict) -> dict:
    html = (
        f"<h2>Thank you for your order, {escape(order['customerName'])}!</h2>"
        f"<p>Order number: <strong>{order['orderNumber']}</strong></p>"
        f"{_items_table(app, order.get('items') or [])}"
        f"<p>Subtotal: {_money(app, order.get('subtotal'))}<br>"
        f"Discount: {_money(app, order.get('discount'))}<br>"
        f"Shipping: {_money(app, order.get('shipping'))}<br>"
        f"<strong>Total: {_money(app, order.get('total'))}</strong></p>"
        f"<p><a href=\"{_tracking_url(app, order)}\">Track your order</a></p>"
    )
    return {
        "to": order["customerEmail"],
        "subject": f"Order Confirmed - {order['orderNumber']}",
        "html": html,
    }


def build_admin_notice(app: Flask, order: dict) -> dict:
    html = (
        "<h2>New Order Received</h2>"
        f"<p><strong>Order Number:</strong> {order['orderNumber']}</p>"
        f"<p><strong>Customer:</strong> {escape(order['customerName'])} ({escape(order['customerEmail'])})</p>"
        f"<p><strong>Total:</strong> {_money(app, order.get('total'))}</p>"
        f"{_items_table(app, order.get('items') or [])}"
    )
    return {
        "to": app.config.get("EMAIL_ADMIN_TO"),
        "subject": f"NEW ORDER - {order['orderNumber']}",
        "html": html,
    }


def build_status_email(app: Flask, order: dict, status: str) -> dict | None:
    template = STATUS_TEMPLATES.get(status)
    if not template:
        return None
    subject, title, message = template
    html = (
        f"<h2>{title}</h2>"
        f"<p>Dear {escape(order['customerName'])},</p>"
        f"<p>{message}</p>"
        f"<p>Order Number: <strong>{order['orderNumber']}</strong></p>"
        f"<p><a href=\"{_tracking_url(app, order)}\">Track Your Order</a></p>"
    )
    return {
        "to": order["customerEmail"],
        "subject": subject.format(number=order["orderNumber"]),
        "html": html,
    }


def send_email(app: Flask, message: dict) -> str | None:
    """
    POST one message to the provider. Returns the provider id.

    Returns None when no API key is configured.
    """
    api_key = app.config.get("EMAIL_API_KEY")
    if not api_key:
        app.logger.info("Email API key not configured; skipping %r", message.get("subject"))
        return None

    response = httpx.post(
        app.config["EMAIL_API_URL"],
        json={"from": app.config["EMAIL_FROM"], **message},
        headers={"Authorization": f"Bearer {api_key}"},
        timeout=app.config.get("EMAIL_TIMEOUT_SECONDS", 10.0),
    )
    if response.status_code >= 400:
        raise EmailDeliveryError(f"Email provider returned {response.status_code}: {response.text[:200]}")
    return response.json().get("id")


def _deliver(app: Flask, messages: list[dict]) -> None:
    with app.app_context():
        for message in messages:
            try:
                provider_id = send_email(app, message)
                if provider_id:
                    app.logger.info("Email sent subject=%r id=%s", message.get("subject"), provider_id)
            except Exception:
                app.logger.exception("Email delivery failed subject=%r", message.get("subject"))


def dispatch(messages: list[dict]) -> threading.Thread | None:
    """
    Send messages without blocking the caller.

    Runs inline when EMAIL_SEND_ASYNC is false (tests, CLI).
    """
    app = current_app._get_current_object()
    messages = [m for m in messages if m and m.get("to")]
    if not messages:
        return None

    if not app.config.get("EMAIL_SEND_ASYNC", True):
        _deliver(app, messages)
        return None

    thread = threading.Thread(target=_deliver, args=(app, messages), daemon=True)
    thread.start()
    return thread


def notify_order_created(order: dict) -> None:
    app = current_app._get_current_object()
    dispatch([build_confirmation_email(app, order), build_admin_notice(app, order)])


def notify_status_changed(order: dict, status: str) -> None:
    app = current_app._get_current_object()
    message = build_status_email(app, order, status)
    if message is None:
        app.logger.debug("No email template for status %s", status)
        return
    dispatch([message])
