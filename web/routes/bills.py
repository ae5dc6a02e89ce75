from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Query, Request
from starlette.concurrency import run_in_threadpool

from billbook.cache import wire_cache
from billbook.codec import to_wire_bill
from billbook.exceptions import ValidationError
from billbook.models.bill import BillPayload
from billbook.settings import settings
from web.deps import current_owner, get_bill_service, read_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def _run(request: Request, operation: str, *args: Any, **kwargs: Any) -> Any:
    """Run a BillService operation in the worker pool; the connection is checked out there too."""

    def call() -> Any:
        return getattr(get_bill_service(request), operation)(*args, **kwargs)

    return await run_in_threadpool(call)


def _record_id(value: Any) -> int:
    """History ids arrive as JSON numbers or numeric strings."""
    if isinstance(value, bool):
        raise ValidationError("Missing id")
    if isinstance(value, int) and value > 0:
        return value
    if isinstance(value, str) and value.strip().isdigit() and int(value) > 0:
        return int(value)
    raise ValidationError("Missing id")


@router.post("/save-bill")
async def save_bill(request: Request):
    owner_id = current_owner(request)
    payload = BillPayload.model_validate(await read_json(request))
    result = await _run(request, "save", owner_id, payload)
    return {"success": True, "action": result.action, "id": result.id}


@router.get("/get-bills")
async def get_bills(
    request: Request,
    limit: int | None = Query(None, ge=1, le=settings.max_page_size),
    offset: int = Query(0, ge=0),
):
    owner_id = current_owner(request)
    bills = await _run(request, "list_bills", owner_id, limit=limit, offset=offset)
    return [to_wire_bill(bill, wire_cache) for bill in bills]


@router.get("/bills/{estimate_no}")
async def get_bill(request: Request, estimate_no: str):
    owner_id = current_owner(request)
    bill = await _run(request, "get_bill", owner_id, estimate_no)
    return to_wire_bill(bill, wire_cache)


@router.patch("/update-bill")
async def update_bill(request: Request):
    owner_id = current_owner(request)
    data = await read_json(request)
    updates = data.get("updates")
    if updates is not None and not isinstance(updates, dict):
        raise ValidationError("updates must be an object")
    bill_id = await _run(request, "update_bill", owner_id, data.get("estimateNo"), updates)
    return {"success": True, "id": bill_id, "message": "Bill updated."}


@router.delete("/delete-bill")
async def delete_bill(request: Request):
    owner_id = current_owner(request)
    data = await read_json(request)
    bill_id = await _run(request, "soft_delete", owner_id, data.get("estimateNo"))
    return {"success": True, "id": bill_id, "message": "Bill moved to deleted history."}


@router.get("/get-deleted-bills")
async def get_deleted_bills(
    request: Request,
    limit: int | None = Query(None, ge=1, le=settings.max_page_size),
    offset: int = Query(0, ge=0),
):
    owner_id = current_owner(request)
    deleted = await _run(request, "list_deleted", owner_id, limit=limit, offset=offset)
    return [to_wire_bill(entry, wire_cache) for entry in deleted]


@router.post("/restore-bill")
async def restore_bill(request: Request):
    owner_id = current_owner(request)
    data = await read_json(request)
    bill_id = await _run(request, "restore", owner_id, _record_id(data.get("id")))
    return {"success": True, "id": bill_id, "message": "Bill restored."}


@router.delete("/permanent-delete-bill")
async def permanent_delete_bill(request: Request):
    owner_id = current_owner(request)
    data = await read_json(request)
    await _run(request, "purge", owner_id, _record_id(data.get("id")))
    return {"success": True, "message": "Permanently deleted."}
