import pytest
from sqlalchemy import Connection

from billbook.codec import bill_fields
from billbook.repositories.sqlalchemy import SQLAlchemyBillRepository, SQLAlchemyDeletedBillRepository


@pytest.fixture()
def bill_repo(db_connection: Connection) -> SQLAlchemyBillRepository:
    return SQLAlchemyBillRepository(db_connection)


@pytest.fixture()
def deleted_bill_repo(db_connection: Connection) -> SQLAlchemyDeletedBillRepository:
    return SQLAlchemyDeletedBillRepository(db_connection)


@pytest.fixture()
def sample_fields():
    def _make(**overrides):
        defaults = dict(
            estimate_no="EST-1",
            customer_name="Acme Traders",
            customer_phone="9800000000",
            bill_date="2025-03-14",
            items=[{"name": "Cement", "qty": 10}],
            sub_total=1000,
            discount=50,
            grand_total=950,
            received=500,
            balance=450,
            amount_words="Nine hundred fifty only",
        )
        defaults.update(overrides)
        return bill_fields(**defaults)

    return _make
