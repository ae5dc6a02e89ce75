from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy import Connection, text
from sqlalchemy.engine import RowMapping

from billbook.codec import record_values
from billbook.models.bill import Bill, BillFields, DeletedBill
from billbook.repositories.base import BillRepository, DeletedBillRepository
from billbook.settings import settings

# OFFSET needs a LIMIT on both MySQL and SQLite.
_NO_LIMIT = 2**63 - 1

_FIELD_COLUMNS = (
    "estimate_no, customer_name, customer_phone, bill_date, items, "
    "sub_total, discount, grand_total, received, balance, amount_words"
)
_FIELD_PARAMS = (
    ":estimate_no, :customer_name, :customer_phone, :bill_date, :items, "
    ":sub_total, :discount, :grand_total, :received, :balance, :amount_words"
)


def _now() -> datetime:
    # Stored naive, in the configured zone: MySQL DATETIME has no offset.
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def _page(limit: int | None, offset: int) -> tuple[str, dict]:
    if limit is None and not offset:
        return "", {}
    return " LIMIT :limit OFFSET :offset", {"limit": _NO_LIMIT if limit is None else limit, "offset": offset}


class SQLAlchemyBillRepository(BillRepository):
    """Active bills. Never commits: the caller owns the transaction."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, owner_id: str, fields: BillFields) -> int:
        now = _now()
        result = self.conn.execute(
            text(
                f"INSERT INTO bills ({_FIELD_COLUMNS}, user_id, created_at, updated_at) "
                f"VALUES ({_FIELD_PARAMS}, :user_id, :created_at, :updated_at)"
            ),
            {**fields.model_dump(), "user_id": owner_id, "created_at": now, "updated_at": now},
        )
        bill_id = result.lastrowid
        if bill_id is None:  # pragma: no cover
            raise RuntimeError("Failed to retrieve id after bill insert")
        return bill_id

    @staticmethod
    def _build_bill(row: RowMapping) -> Bill:
        return Bill(**record_values(row), updated_at=row["updated_at"])

    def get_by_estimate_no(self, owner_id: str, estimate_no: str) -> Bill | None:
        row = (
            self.conn.execute(
                text("SELECT * FROM bills WHERE estimate_no = :estimate_no AND user_id = :user_id LIMIT 1"),
                {"estimate_no": estimate_no, "user_id": owner_id},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._build_bill(row)

    def list_for_owner(self, owner_id: str, limit: int | None = None, offset: int = 0) -> list[Bill]:
        page_sql, page_params = _page(limit, offset)
        rows = (
            self.conn.execute(
                text(
                    "SELECT * FROM bills WHERE user_id = :user_id "
                    "ORDER BY updated_at DESC, created_at DESC, id DESC" + page_sql
                ),
                {"user_id": owner_id, **page_params},
            )
            .mappings()
            .fetchall()
        )
        return [self._build_bill(row) for row in rows]

    def update(self, bill_id: int, fields: BillFields) -> None:
        self.conn.execute(
            text(
                "UPDATE bills SET customer_name = :customer_name, customer_phone = :customer_phone, "
                "bill_date = :bill_date, items = :items, sub_total = :sub_total, discount = :discount, "
                "grand_total = :grand_total, received = :received, balance = :balance, "
                "amount_words = :amount_words, updated_at = :updated_at WHERE id = :id"
            ),
            {**fields.model_dump(exclude={"estimate_no"}), "updated_at": _now(), "id": bill_id},
        )

    def delete(self, bill_id: int) -> None:
        self.conn.execute(text("DELETE FROM bills WHERE id = :id"), {"id": bill_id})


class SQLAlchemyDeletedBillRepository(DeletedBillRepository):
    """History of soft-deleted bills. Never commits: the caller owns the transaction."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, bill: Bill, fields: BillFields) -> int:
        result = self.conn.execute(
            text(
                f"INSERT INTO deleted_bills (original_bill_id, {_FIELD_COLUMNS}, user_id, created_at, deleted_at) "
                f"VALUES (:original_bill_id, {_FIELD_PARAMS}, :user_id, :created_at, :deleted_at)"
            ),
            {
                **fields.model_dump(),
                "original_bill_id": bill.id,
                "user_id": bill.owner_id,
                "created_at": bill.created_at,
                "deleted_at": _now(),
            },
        )
        deleted_id = result.lastrowid
        if deleted_id is None:  # pragma: no cover
            raise RuntimeError("Failed to retrieve id after deleted_bills insert")
        return deleted_id

    @staticmethod
    def _build_deleted_bill(row: RowMapping) -> DeletedBill:
        return DeletedBill(
            **record_values(row),
            original_bill_id=row["original_bill_id"],
            deleted_at=row["deleted_at"],
        )

    def get_by_id(self, owner_id: str, deleted_bill_id: int) -> DeletedBill | None:
        row = (
            self.conn.execute(
                text("SELECT * FROM deleted_bills WHERE id = :id AND user_id = :user_id LIMIT 1"),
                {"id": deleted_bill_id, "user_id": owner_id},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._build_deleted_bill(row)

    def list_for_owner(self, owner_id: str, limit: int | None = None, offset: int = 0) -> list[DeletedBill]:
        page_sql, page_params = _page(limit, offset)
        rows = (
            self.conn.execute(
                text("SELECT * FROM deleted_bills WHERE user_id = :user_id ORDER BY deleted_at DESC, id DESC" + page_sql),
                {"user_id": owner_id, **page_params},
            )
            .mappings()
            .fetchall()
        )
        return [self._build_deleted_bill(row) for row in rows]

    def delete(self, deleted_bill_id: int) -> None:
        self.conn.execute(text("DELETE FROM deleted_bills WHERE id = :id"), {"id": deleted_bill_id})

    def delete_for_owner(self, owner_id: str, deleted_bill_id: int) -> bool:
        result = self.conn.execute(
            text("DELETE FROM deleted_bills WHERE id = :id AND user_id = :user_id"),
            {"id": deleted_bill_id, "user_id": owner_id},
        )
        return result.rowcount > 0
