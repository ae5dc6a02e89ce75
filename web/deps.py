from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy import Connection
from starlette.types import ASGIApp, Receive, Scope, Send

from billbook.cache import wire_cache
from billbook.db import get_engine, ping
from billbook.exceptions import AuthenticationError, PayloadTooLargeError, ValidationError
from billbook.repositories.sqlalchemy import SQLAlchemyBillRepository, SQLAlchemyDeletedBillRepository
from billbook.services.auth_service import AuthService
from billbook.services.bill_service import BillService
from billbook.settings import settings

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"
PUBLIC_API_PATHS = {"/api/login", "/api/me", "/api/health", "/api/test-db"}


class AuthMiddleware:
    """Pure ASGI middleware — rejects API calls that carry no session."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        path = request.url.path
        if not path.startswith(API_PREFIX) or path in PUBLIC_API_PATHS:
            await self.app(scope, receive, send)
            return
        if not request.session.get("user_id"):
            logger.info("Auth rejected: %s %s — no session", request.method, path)
            response = JSONResponse({"success": False, "message": "Unauthorized"}, status_code=401)
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)


class DBConnectionMiddleware:
    """Pure ASGI middleware — hands the request's pooled connection back on exit."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        request.state.db_conn = None
        try:
            await self.app(scope, receive, send)
        finally:
            conn = getattr(request.state, "db_conn", None)
            if conn is not None:
                conn.close()
                logger.debug("DB connection released for %s %s", request.method, request.url.path)


def _get_conn(request: Request) -> Connection:
    """Lazy per-request connection — checked out on first use, released by middleware."""
    if getattr(request.state, "db_conn", None) is None:
        logger.debug("Checking out DB connection for %s %s", request.method, request.url.path)
        request.state.db_conn = get_engine().connect()
    return request.state.db_conn


def get_bill_service(request: Request) -> BillService:
    conn = _get_conn(request)
    return BillService(
        conn,
        SQLAlchemyBillRepository(conn),
        SQLAlchemyDeletedBillRepository(conn),
        wire_cache,
    )


def get_auth_service() -> AuthService:
    return AuthService(settings)


def probe_database(query: bool = True) -> None:
    """Check out a pooled connection (and round-trip ``SELECT 1`` if ``query``)."""
    engine = get_engine()
    if query:
        ping(engine)
        return
    engine.connect().close()


def current_owner(request: Request) -> str:
    owner_id = request.session.get("user_id")
    if not owner_id:
        raise AuthenticationError()
    return owner_id


async def read_json(request: Request) -> dict[str, Any]:
    """Parse the request body as a JSON object; an empty body is ``{}``."""
    length = request.headers.get("content-length", "")
    if length.isdigit() and int(length) > settings.max_body_bytes:
        raise PayloadTooLargeError()
    body = await request.body()
    if len(body) > settings.max_body_bytes:
        raise PayloadTooLargeError()
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        raise ValidationError("Invalid JSON body") from None
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
