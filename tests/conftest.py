"""
Shared fixtures

The database URL is pointed at a throwaway SQLite file before anything from
the app is imported, so the module-level engine is built against it.
"""
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="surplus-store-tests-")
os.environ["DB_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["RESERVATION_DAILY_LIMIT"] = "5"

from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.core import Base, SessionLocal, engine
from app.models import Product
from app.realtime import broadcaster
from main import app


@pytest.fixture(autouse=True)
def reset_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def product_factory():
    """Create a committed product in its own short-lived session; returns its id"""
    def make(stock=5, price="10.00", threshold=5, status="active", name="Denim Jacket"):
        with SessionLocal() as session:
            product = Product(
                sku=f"TEST-{uuid4().hex[:8].upper()}",
                name=name,
                retail_price=Decimal(price),
                stock_quantity=stock,
                initial_stock=stock,
                low_stock_threshold=threshold,
                status=status
            )
            session.add(product)
            session.commit()
            return product.id
    return make


@pytest.fixture
def events():
    """Every (event, data, room) published while the test runs"""
    recorded = []

    def listener(event, data, room):
        recorded.append((event, data, room))

    broadcaster.add_listener(listener)
    yield recorded
    broadcaster.remove_listener(listener)
