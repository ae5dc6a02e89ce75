"""Root conftest — in-memory SQLite engine and fixtures for the bill tables."""

from __future__ import annotations

import pytest
from sqlalchemy import Connection, create_engine
from sqlalchemy.engine import Engine

from billbook.models.bill import BillPayload
from billbook.schema import metadata


@pytest.fixture()
def db_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:")
    yield engine
    engine.dispose()


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    metadata.create_all(conn)
    conn.commit()
    yield conn
    conn.close()


def _sample_payload(**overrides) -> BillPayload:
    defaults = dict(
        estimateNo="EST-1",
        customerName="Acme Traders",
        customerPhone="9800000000",
        billDate="2025-03-14",
        items=[{"name": "Cement", "qty": 10, "rate": 750}, {"name": "Rod", "qty": 2, "rate": 1200}],
        subTotal="9900",
        discount=100,
        grandTotal=9800,
        received="5000.50",
        balance=4799.5,
        amountWords="Nine thousand eight hundred only",
    )
    defaults.update(overrides)
    return BillPayload(**defaults)


@pytest.fixture()
def sample_payload():
    return _sample_payload
