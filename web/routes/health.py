from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from billbook.settings import settings
from web.deps import probe_database

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _failure(exc: Exception) -> JSONResponse:
    detail = str(exc) if settings.debug else "Database unavailable"
    return JSONResponse({"ok": False, "error": detail}, status_code=500)


@router.get("/health")
async def health():
    try:
        await run_in_threadpool(probe_database, query=False)
    except SQLAlchemyError as exc:
        logger.error("Health check failed: %s", exc)
        return _failure(exc)
    return {"ok": True}


@router.get("/test-db")
async def test_db():
    try:
        await run_in_threadpool(probe_database, query=True)
    except SQLAlchemyError as exc:
        logger.error("DB test failed: %s", exc)
        return _failure(exc)
    return {"ok": True, "message": "Database connected!"}
