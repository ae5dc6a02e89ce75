"""Conversion between the wire shape of a bill and its storage columns.

Everything here is permissive by contract: legacy clients post numbers as
strings, items as pre-serialized text, or leave fields out entirely, and old
rows may hold malformed JSON. Such input degrades to a safe default ("[]", 0,
"") instead of failing the request. ``coerce_date`` is the one exception, a bad
date is reported as a ``ValidationError`` because the store would reject it
anyway.
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from billbook.exceptions import ValidationError
from billbook.models.bill import MONEY_FIELDS, Bill, BillFields, DeletedBill

if TYPE_CHECKING:
    from billbook.cache import WireCache

EMPTY_ITEMS = "[]"

# DECIMAL(10,2) holds at most 99999999.99.
MONEY_LIMIT = 10**8


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not valid JSON for the store.
    raise ValueError(name)


def normalize_items(value: Any) -> str:
    """Return canonical JSON text for ``value``. Valid JSON text passes through verbatim."""
    if value is None:
        return EMPTY_ITEMS
    if isinstance(value, str):
        try:
            json.loads(value, parse_constant=_reject_constant)
        except (ValueError, RecursionError):
            return EMPTY_ITEMS
        return value
    try:
        return json.dumps(value, allow_nan=False)
    except (TypeError, ValueError):
        return EMPTY_ITEMS


def parse_items(value: Any) -> Any:
    """Return the native items structure stored in ``value``, or ``[]``."""
    if not value:
        return []
    if isinstance(value, (list, dict)):
        return value
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return []


def coerce_number(value: Any) -> float:
    """Return ``value`` as a finite float within the money column range, else 0.0."""
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        # float() would also accept digit separators such as "1_000".
        if not value or "_" in value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number) or abs(number) >= MONEY_LIMIT:
        return 0.0
    return number


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def coerce_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            # Also accepts full ISO timestamps as produced by JS Date#toJSON.
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError("billDate must be a date in YYYY-MM-DD format")


def bill_fields(
    *,
    estimate_no: Any,
    customer_name: Any,
    customer_phone: Any = None,
    bill_date: Any = None,
    items: Any = None,
    sub_total: Any = None,
    discount: Any = None,
    grand_total: Any = None,
    received: Any = None,
    balance: Any = None,
    amount_words: Any = None,
) -> BillFields:
    """Normalize raw values into the columns written to ``bills``/``deleted_bills``."""
    return BillFields(
        estimate_no=coerce_text(estimate_no).strip(),
        customer_name=coerce_text(customer_name).strip(),
        customer_phone=coerce_text(customer_phone),
        bill_date=coerce_date(bill_date),
        items=normalize_items(items),
        sub_total=coerce_number(sub_total),
        discount=coerce_number(discount),
        grand_total=coerce_number(grand_total),
        received=coerce_number(received),
        balance=coerce_number(balance),
        amount_words=coerce_text(amount_words),
    )


FIELD_NAMES = tuple(BillFields.model_fields)


def fields_from_record(record: Bill | DeletedBill) -> BillFields:
    return bill_fields(**record.model_dump(include=set(FIELD_NAMES)))


def record_values(row: Any) -> dict[str, Any]:
    """Column values shared by both tables, decoded from a result row mapping."""
    values: dict[str, Any] = {
        "id": row["id"],
        "owner_id": coerce_text(row["user_id"]),
        "estimate_no": coerce_text(row["estimate_no"]),
        "customer_name": coerce_text(row["customer_name"]),
        "customer_phone": coerce_text(row["customer_phone"]),
        "bill_date": row["bill_date"] or None,
        "items": parse_items(row["items"]),
        "amount_words": coerce_text(row["amount_words"]),
        "created_at": row["created_at"],
    }
    for name in MONEY_FIELDS:
        values[name] = coerce_number(row[name])
    return values


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def build_bill_data(bill: Bill | DeletedBill) -> str:
    """Serialize the eleven bill fields the legacy front-end reads as one string."""
    payload = {
        "estimateNo": bill.estimate_no,
        "customerName": bill.customer_name,
        "customerPhone": bill.customer_phone,
        "billDate": bill.bill_date.isoformat() if bill.bill_date else None,
        "items": bill.items,
        "subTotal": bill.sub_total,
        "discount": bill.discount,
        "grandTotal": bill.grand_total,
        "received": bill.received,
        "balance": bill.balance,
        "amountWords": bill.amount_words,
    }
    return json.dumps(payload, default=_json_default)


def _build_wire(bill: Bill | DeletedBill) -> dict[str, Any]:
    data = bill.model_dump(by_alias=True, mode="json")
    data["billData"] = build_bill_data(bill)
    return data


def wire_cache_key(bill: Bill | DeletedBill) -> tuple | None:
    if isinstance(bill, DeletedBill):
        kind, stamp = "deleted", bill.deleted_at
    else:
        kind, stamp = "bill", bill.updated_at
    if bill.id is None or stamp is None:
        return None
    return (kind, bill.id, stamp)


def to_wire_bill(bill: Bill | DeletedBill, cache: WireCache | None = None) -> dict[str, Any]:
    """camelCase dict for the HTTP layer, including the ``billData`` string."""
    key = wire_cache_key(bill) if cache is not None else None
    if cache is None or key is None:
        return _build_wire(bill)
    return cache.get_or_build(key, lambda: _build_wire(bill))
