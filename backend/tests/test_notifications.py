"""
Email notification tests.

Delivery is fire-and-forget: provider failures are logged and never reach
the caller.
"""

import httpx

from homestore.services import notification_service


ORDER = {
    "orderNumber": "K7PQ2M",
    "customerName": "Aisha <Ibrahim>",
    "customerEmail": "aisha@example.com",
    "items": [
        {"name": "Bamboo Sheet Set", "qty": 1, "price": 1000, "size": "Queen", "color": "White"},
        {"name": "Bath Towel", "qty": 2, "price": 500, "size": "Standard", "color": "Default"},
    ],
    "subtotal": 2000,
    "discount": 0,
    "shipping": 50,
    "total": 2050,
}


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


def test_confirmation_email_content(app):
    message = notification_service.build_confirmation_email(app, ORDER)
    assert message["to"] == "aisha@example.com"
    assert message["subject"] == "Order Confirmed - K7PQ2M"
    assert "Aisha &lt;Ibrahim&gt;" in message["html"]
    assert "Size: Queen" in message["html"]
    assert "Size: Standard" not in message["html"]
    assert "MVR 2,050.00" in message["html"]
    assert "/track?order=K7PQ2M" in message["html"]


def test_status_email_only_for_templated_statuses(app):
    assert notification_service.build_status_email(app, ORDER, "pending") is None
    message = notification_service.build_status_email(app, ORDER, "out_for_delivery")
    assert message["subject"] == "Out for Delivery Today! - K7PQ2M"


def test_send_email_skips_without_key(app, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("provider should not be called")

    monkeypatch.setattr(httpx, "post", fail)
    assert notification_service.send_email(app, {"to": "a@b.c", "subject": "x", "html": ""}) is None


def test_send_email_posts_to_provider(app, monkeypatch):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append((url, json, headers, timeout))
        return FakeResponse(200, {"id": "email_123"})

    monkeypatch.setattr(httpx, "post", fake_post)
    monkeypatch.setitem(app.config, "EMAIL_API_KEY", "re_test")

    provider_id = notification_service.send_email(app, {"to": "a@b.c", "subject": "Hi", "html": "<p>x</p>"})

    assert provider_id == "email_123"
    url, body, headers, timeout = calls[0]
    assert url == app.config["EMAIL_API_URL"]
    assert body["from"] == app.config["EMAIL_FROM"]
    assert body["to"] == "a@b.c"
    assert headers["Authorization"] == "Bearer re_test"
    assert timeout == app.config["EMAIL_TIMEOUT_SECONDS"]


def test_provider_failures_are_logged_not_raised(app, monkeypatch, caplog):
    responses = [httpx.ConnectError("down"), FakeResponse(500, text="boom")]

    def fake_post(*args, **kwargs):
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(httpx, "post", fake_post)
    monkeypatch.setitem(app.config, "EMAIL_API_KEY", "re_test")

    notification_service.dispatch([
        {"to": "a@b.c", "subject": "first", "html": ""},
        {"to": "a@b.c", "subject": "second", "html": ""},
    ])

    assert responses == []
    failures = [r for r in caplog.records if "Email delivery failed" in r.getMessage()]
    assert len(failures) == 2


def test_unexpected_errors_do_not_stop_delivery(app, monkeypatch, caplog):
    delivered = []

    def flaky_send(app, message):
        if message["subject"] == "first":
            raise KeyError("id")
        delivered.append(message["subject"])
        return "msg_2"

    monkeypatch.setattr(notification_service, "send_email", flaky_send)

    notification_service.dispatch([
        {"to": "a@b.c", "subject": "first", "html": ""},
        {"to": "a@b.c", "subject": "second", "html": ""},
    ])

    assert delivered == ["second"]
    failures = [r for r in caplog.records if "Email delivery failed" in r.getMessage()]
    assert len(failures) == 1
    assert failures[0].exc_info[0] is KeyError


def test_dispatch_drops_messages_without_recipient(app, sent_emails):
    assert notification_service.dispatch([{"to": None, "subject": "x"}, None]) is None
    assert sent_emails == []


def test_async_dispatch_runs_on_thread(app, sent_emails, monkeypatch):
    monkeypatch.setitem(app.config, "EMAIL_SEND_ASYNC", True)
    thread = notification_service.dispatch([{"to": "a@b.c", "subject": "x", "html": ""}])
    thread.join(timeout=5)
    assert [m["subject"] for m in sent_emails] == ["x"]
