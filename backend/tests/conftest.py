"""
Pytest fixtures for HomeStore backend tests.

Provides the application on an in-memory database, a test client, a clean
session per test and catalog/coupon fixtures.
"""

import pytest
from homestore import create_app
from homestore.extensions import db
from homestore.models import Product, Coupon
from homestore.services import notification_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'EMAIL_API_KEY': None,
        'EMAIL_ADMIN_TO': None,
        'EMAIL_SEND_ASYNC': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def sent_emails(monkeypatch):
    """Capture outgoing email messages instead of calling the provider."""
    sent = []

    def fake_send(app, message):
        sent.append(message)
        return "test-email-id"

    monkeypatch.setattr(notification_service, "send_email", fake_send)
    return sent


@pytest.fixture(scope='function')
def sheet_set(db_session):
    """Queen/King sheet set in White/Grey with sparse variant stock."""
    product = Product(
        name="Bamboo Sheet Set",
        category="Bedding",
        price=1000,
        image="",
        colors=["White", "Grey"],
        variants=[{"size": "Queen", "price": 1000}, {"size": "King", "price": 1300}],
        variant_stock={"Queen-White": 2, "King-Grey": 5},
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def towel(db_session):
    product = Product(
        name="Bath Towel",
        category="Bath",
        price=500,
        image="",
        colors=["White"],
        variant_stock={"Standard-White": 10},
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def bedding_coupon(db_session):
    coupon = Coupon(
        code="BED10",
        discount=10,
        type="percentage",
        scope="category",
        allowed_categories=["Bedding"],
    )
    db_session.add(coupon)
    db_session.commit()
    return coupon


def order_payload(*items, **overrides) -> dict:
    payload = {
        "customerName": "Aisha Ibrahim",
        "customerEmail": "aisha@example.com",
        "customerPhone": "7771234",
        "shippingAddress": "H. Blue Lagoon, Male",
        "paymentMethod": "cod",
        "shipping": 50,
        "items": list(items),
    }
    payload.update(overrides)
    return payload
