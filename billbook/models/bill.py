from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

MONEY_FIELDS = ("sub_total", "discount", "grand_total", "received", "balance")


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class BillPayload(_WireModel):
    """A bill as posted by the front-end. Every field is accepted as-is and
    normalized by the codec, so malformed legacy values never fail parsing."""

    estimate_no: Any = None
    customer_name: Any = None
    customer_phone: Any = None
    bill_date: Any = None
    items: Any = None
    sub_total: Any = None
    discount: Any = None
    grand_total: Any = None
    received: Any = None
    balance: Any = None
    amount_words: Any = None


class BillUpdate(_WireModel):
    """Partial update. ``None`` means "keep the current value"; the estimate
    number is the lookup key and cannot be changed here."""

    customer_name: Any = None
    customer_phone: Any = None
    bill_date: Any = None
    items: Any = None
    sub_total: Any = None
    discount: Any = None
    grand_total: Any = None
    received: Any = None
    balance: Any = None
    amount_words: Any = None


class BillFields(BaseModel):
    """Normalized column values, ready to be written to either table."""

    estimate_no: str
    customer_name: str
    customer_phone: str = ""
    bill_date: date | None = None
    items: str = "[]"  # canonical JSON text
    sub_total: float = 0.0
    discount: float = 0.0
    grand_total: float = 0.0
    received: float = 0.0
    balance: float = 0.0
    amount_words: str = ""


class _BillRecord(_WireModel):
    id: int | None = None
    owner_id: str = ""
    estimate_no: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    bill_date: date | None = None
    items: Any = []
    sub_total: float = 0.0
    discount: float = 0.0
    grand_total: float = 0.0
    received: float = 0.0
    balance: float = 0.0
    amount_words: str = ""
    created_at: datetime | None = None


class Bill(_BillRecord):
    updated_at: datetime | None = None


class DeletedBill(_BillRecord):
    original_bill_id: int | None = None
    deleted_at: datetime | None = None


class SaveResult(BaseModel):
    action: Literal["inserted", "updated"]
    id: int
