from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Connection
from sqlalchemy.exc import SQLAlchemyError

from billbook.cache import WireCache
from billbook.codec import FIELD_NAMES, bill_fields, coerce_text, fields_from_record
from billbook.exceptions import AuthenticationError, ConflictError, NotFoundError, StoreError, ValidationError
from billbook.models.bill import Bill, BillPayload, BillUpdate, DeletedBill, SaveResult
from billbook.repositories.base import BillRepository, DeletedBillRepository

logger = logging.getLogger(__name__)


class BillService:
    """Lifecycle of a bill: save, update, soft-delete, restore and purge.

    Every operation is scoped to an owner id and runs in its own transaction
    on ``conn``: it commits when the operation returns and rolls back when it
    raises, so a soft-delete or restore is never half applied.
    """

    def __init__(
        self,
        conn: Connection,
        bill_repo: BillRepository,
        deleted_bill_repo: DeletedBillRepository,
        cache: WireCache | None = None,
    ) -> None:
        self.conn = conn
        self.bill_repo = bill_repo
        self.deleted_bill_repo = deleted_bill_repo
        self.cache = cache

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        try:
            with self.conn.begin():
                yield
        except SQLAlchemyError as exc:
            logger.exception("%s failed, transaction rolled back", operation)
            raise StoreError() from exc

    @staticmethod
    def _require_owner(owner_id: str | None) -> str:
        if not owner_id:
            raise AuthenticationError()
        return owner_id

    @staticmethod
    def _require_estimate_no(estimate_no: Any) -> str:
        key = coerce_text(estimate_no).strip()
        if not key:
            raise ValidationError("Missing estimateNo")
        return key

    def _invalidate(self, kind: str, record_id: int | None) -> None:
        if self.cache is not None and record_id is not None:
            self.cache.invalidate(kind, record_id)

    def save(self, owner_id: str | None, payload: BillPayload) -> SaveResult:
        owner_id = self._require_owner(owner_id)
        fields = bill_fields(**payload.model_dump())
        if not fields.estimate_no or not fields.customer_name:
            raise ValidationError("estimateNo and customerName are required")

        with self._transaction("save"):
            existing = self.bill_repo.get_by_estimate_no(owner_id, fields.estimate_no)
            if existing is not None and existing.id is not None:
                self.bill_repo.update(existing.id, fields)
                result = SaveResult(action="updated", id=existing.id)
            else:
                result = SaveResult(action="inserted", id=self.bill_repo.create(owner_id, fields))

        if result.action == "updated":
            self._invalidate("bill", result.id)
        logger.info("Bill %s %s: owner=%s id=%d", fields.estimate_no, result.action, owner_id, result.id)
        return result

    def list_bills(self, owner_id: str | None, limit: int | None = None, offset: int = 0) -> list[Bill]:
        owner_id = self._require_owner(owner_id)
        with self._transaction("list_bills"):
            bills = self.bill_repo.list_for_owner(owner_id, limit=limit, offset=offset)
        logger.debug("Listed %d bills for owner=%s", len(bills), owner_id)
        return bills

    def get_bill(self, owner_id: str | None, estimate_no: Any) -> Bill:
        owner_id = self._require_owner(owner_id)
        key = self._require_estimate_no(estimate_no)
        with self._transaction("get_bill"):
            bill = self.bill_repo.get_by_estimate_no(owner_id, key)
        if bill is None:
            raise NotFoundError("Bill not found")
        return bill

    def update_bill(self, owner_id: str | None, estimate_no: Any, updates: BillUpdate | dict | None) -> int:
        owner_id = self._require_owner(owner_id)
        key = coerce_text(estimate_no).strip()
        if not key or updates is None:
            raise ValidationError("Missing estimateNo or updates")
        if isinstance(updates, dict):
            updates = BillUpdate.model_validate(updates)

        changes = updates.model_dump(exclude_none=True)
        if "customer_name" in changes and not coerce_text(changes["customer_name"]).strip():
            raise ValidationError("customerName cannot be empty")

        with self._transaction("update_bill"):
            current = self.bill_repo.get_by_estimate_no(owner_id, key)
            if current is None or current.id is None:
                raise NotFoundError("Bill not found")
            merged = current.model_dump(include=set(FIELD_NAMES))
            merged.update(changes)
            self.bill_repo.update(current.id, bill_fields(**merged))

        self._invalidate("bill", current.id)
        logger.info("Bill %s updated: owner=%s fields=%s", key, owner_id, sorted(changes))
        return current.id

    def soft_delete(self, owner_id: str | None, estimate_no: Any) -> int:
        """Move the bill to ``deleted_bills``. Returns the id the bill had."""
        owner_id = self._require_owner(owner_id)
        key = self._require_estimate_no(estimate_no)

        with self._transaction("soft_delete"):
            bill = self.bill_repo.get_by_estimate_no(owner_id, key)
            if bill is None or bill.id is None:
                raise NotFoundError("Bill not found")
            deleted_id = self.deleted_bill_repo.create(bill, fields_from_record(bill))
            self.bill_repo.delete(bill.id)

        self._invalidate("bill", bill.id)
        logger.info("Bill %s moved to history: owner=%s id=%d history_id=%d", key, owner_id, bill.id, deleted_id)
        return bill.id

    def list_deleted(self, owner_id: str | None, limit: int | None = None, offset: int = 0) -> list[DeletedBill]:
        owner_id = self._require_owner(owner_id)
        with self._transaction("list_deleted"):
            return self.deleted_bill_repo.list_for_owner(owner_id, limit=limit, offset=offset)

    def restore(self, owner_id: str | None, deleted_bill_id: int) -> int:
        """Move a history entry back to ``bills``. Returns the new bill id.

        Refuses with ConflictError when an active bill already uses the same
        estimate number, so at most one active bill exists per estimate.
        """
        owner_id = self._require_owner(owner_id)

        with self._transaction("restore"):
            deleted = self.deleted_bill_repo.get_by_id(owner_id, deleted_bill_id)
            if deleted is None:
                raise NotFoundError("Deleted bill not found")
            if self.bill_repo.get_by_estimate_no(owner_id, deleted.estimate_no) is not None:
                raise ConflictError(f"An active bill with estimateNo {deleted.estimate_no} already exists")
            bill_id = self.bill_repo.create(owner_id, fields_from_record(deleted))
            self.deleted_bill_repo.delete(deleted_bill_id)

        self._invalidate("deleted", deleted_bill_id)
        logger.info(
            "Bill %s restored: owner=%s history_id=%d new_id=%d", deleted.estimate_no, owner_id, deleted_bill_id, bill_id
        )
        return bill_id

    def purge(self, owner_id: str | None, deleted_bill_id: int) -> None:
        owner_id = self._require_owner(owner_id)
        with self._transaction("purge"):
            removed = self.deleted_bill_repo.delete_for_owner(owner_id, deleted_bill_id)
        if not removed:
            raise NotFoundError("Record not found")
        self._invalidate("deleted", deleted_bill_id)
        logger.info("History entry %d permanently deleted: owner=%s", deleted_bill_id, owner_id)
