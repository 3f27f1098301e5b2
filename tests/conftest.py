import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORE_BACKEND", "sql")

from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from shopdash import models  # noqa: F401
from shopdash.api.deps import get_now
from shopdash.core.security import create_access_token
from shopdash.db.database import Base, create_db_engine, get_db
from shopdash.main import app
from shopdash.store.gateway import INVENTORY, StoreContext, StoreError
from shopdash.store.memory import MemoryStore

FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0)


class FlakyStore(MemoryStore):
    """Memory store that records every call and fails the ones it is told to."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, str]] = []
        self.failing: set[tuple[str, str]] = set()

    def _track(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if (operation, collection) in self.failing:
            raise StoreError(f"{operation} on {collection} failed")

    def writes(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] != "query"]

    def query_rows(self, ctx, collection, filters=None, order_by=None):
        self._track("query", collection)
        return super().query_rows(ctx, collection, filters, order_by)

    def insert_row(self, ctx, collection, fields):
        self._track("insert", collection)
        return super().insert_row(ctx, collection, fields)

    def update_row(self, ctx, collection, row_id, fields):
        self._track("update", collection)
        return super().update_row(ctx, collection, row_id, fields)

    def delete_row(self, ctx, collection, row_id):
        self._track("delete", collection)
        return super().delete_row(ctx, collection, row_id)


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def ctx():
    return StoreContext(user_id="user-1")


@pytest.fixture
def make_product(store, ctx):
    def _make(**overrides):
        fields = {
            "name": "Widget",
            "category": "Hardware",
            "price": Decimal("100.00"),
            "cost": Decimal("60.00"),
            "stock_quantity": 10,
            "reorder_level": 5,
        }
        fields.update(overrides)
        return store.insert_row(ctx, INVENTORY, fields)

    return _make


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user_id: str = "user-1") -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


@pytest.fixture
def sale_day():
    return date(2024, 6, 1)
