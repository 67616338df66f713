"""
Pytest fixtures for the OrderAhead service.

In-memory SQLite shared through one connection, in-memory change feed and
eager Celery, so the whole order -> event -> push path runs in-process.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CHANGE_FEED_BACKEND"] = "memory"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from orderahead.data.database import Base, SessionLocal, engine
from orderahead.data.models import BusinessModel, ProductModel
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import DeliveryError
from orderahead.realtime import get_change_feed, reset_change_feed
from orderahead.services import notification_service


class FakePushTransport:
    """Records pushes instead of talking to a push service."""

    def __init__(self):
        self.sent = []
        self.failures = {}

    def fail(self, endpoint, permanent=True, status_code=410):
        self.failures[endpoint] = (permanent, status_code)

    def send(self, endpoint, p256dh, auth, payload):
        if endpoint in self.failures:
            permanent, status_code = self.failures[endpoint]
            raise DeliveryError(
                f"push rejected ({status_code})",
                endpoint=endpoint,
                permanent=permanent,
                status_code=status_code,
            )
        self.sent.append({"endpoint": endpoint, "p256dh": p256dh, "auth": auth, "payload": payload})

    def endpoints(self):
        return [s["endpoint"] for s in self.sent]


@pytest.fixture(scope="session")
def app():
    from orderahead.main import app as fastapi_app
    return fastapi_app


@pytest.fixture(autouse=True)
def clean_tables(app):
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture(autouse=True)
def feed():
    reset_change_feed()
    yield get_change_feed()
    reset_change_feed()


@pytest.fixture(autouse=True)
def push_transport(monkeypatch):
    transport = FakePushTransport()
    monkeypatch.setattr(notification_service, "get_push_transport", lambda: transport)
    return transport


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def owner():
    return OwnerContext(owner_id="owner-a")


@pytest.fixture
def other_owner():
    return OwnerContext(owner_id="owner-b")


@pytest.fixture
def business(db, owner):
    biz = BusinessModel(owner_id=owner.owner_id, name="Corner Cafe", slug="corner-cafe")
    db.add(biz)
    db.commit()
    db.refresh(biz)
    return biz


@pytest.fixture
def other_business(db, other_owner):
    biz = BusinessModel(owner_id=other_owner.owner_id, name="Bagel Barn", slug="bagel-barn")
    db.add(biz)
    db.commit()
    db.refresh(biz)
    return biz


@pytest.fixture
def menu(db, business):
    """Latte 4.50, Muffin 3.00 and a hidden Scone."""
    products = {
        "latte": ProductModel(business_id=business.id, name="Latte", price=Decimal("4.50"), category="Coffee", sort_order=0),
        "muffin": ProductModel(business_id=business.id, name="Muffin", price=Decimal("3.00"), category="Bakery", sort_order=1),
        "scone": ProductModel(business_id=business.id, name="Scone", price=Decimal("2.75"), category="Bakery", available=False, sort_order=2),
    }
    db.add_all(products.values())
    db.commit()
    for p in products.values():
        db.refresh(p)
    return products


@pytest.fixture
def other_menu(db, other_business):
    bagel = ProductModel(business_id=other_business.id, name="Bagel", price=Decimal("2.00"))
    db.add(bagel)
    db.commit()
    db.refresh(bagel)
    return {"bagel": bagel}
