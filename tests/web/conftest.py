"""Web test fixtures — TestClient with shared in-memory SQLite."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from billbook.cache import wire_cache
from billbook.schema import metadata
from billbook.settings import settings
from web.ratelimit import api_limiter, login_limiter

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret"
BASE_URL = "https://testserver"


def _make_test_engine():
    """Create a fresh in-memory SQLite engine with shared connection pool."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(engine)
    return engine


def count_rows(engine, table: str) -> int:
    with engine.connect() as conn:
        return conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one()


def bill_json(**overrides) -> dict:
    body = {
        "estimateNo": "101",
        "customerName": "Acme Traders",
        "customerPhone": "9800000000",
        "billDate": "2025-03-14",
        "items": [{"name": "Cement", "qty": 10, "rate": 750}],
        "subTotal": 7500,
        "discount": 0,
        "grandTotal": 7500,
        "received": 5000,
        "balance": 2500,
        "amountWords": "Seven thousand five hundred only",
    }
    body.update(overrides)
    return body


@pytest.fixture(autouse=True)
def web_test_db(monkeypatch):
    """Set up in-memory DB and patch the web app to use it."""
    engine = _make_test_engine()

    import web.deps as deps_module

    monkeypatch.setattr(deps_module, "get_engine", lambda: engine)

    import web.app as app_module

    monkeypatch.setattr(app_module, "initialize_db", lambda: None)
    monkeypatch.setattr(settings, "admin_email", ADMIN_EMAIL)
    monkeypatch.setattr(settings, "admin_password", ADMIN_PASSWORD)
    monkeypatch.setattr(settings, "admin_user_id", "admin")

    api_limiter.reset()
    login_limiter.reset()
    wire_cache.clear()

    yield engine

    api_limiter.reset()
    login_limiter.reset()
    wire_cache.clear()
    engine.dispose()


@pytest.fixture()
def test_engine(web_test_db):
    """Expose the test engine for helpers that need direct DB access."""
    return web_test_db


@pytest.fixture()
def client():
    from starlette.testclient import TestClient

    from web.app import app

    # Session cookies are Secure, so the client must speak https.
    return TestClient(app, base_url=BASE_URL)


@pytest.fixture()
def auth_client(client):
    """Client that is already logged in."""
    response = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client
