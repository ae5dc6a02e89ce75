from __future__ import annotations

import logging
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from billbook.db import dispose_engine, initialize_db
from billbook.exceptions import AppException
from billbook.logging import configure_logging
from billbook.settings import settings
from web.auth import router as auth_router
from web.deps import AuthMiddleware, DBConnectionMiddleware
from web.ratelimit import RateLimitMiddleware, api_limiter
from web.routes.bills import router as bills_router
from web.routes.health import router as health_router

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        initialize_db()
    except SQLAlchemyError:
        # Keep serving: /api/health and /api/test-db report the outage.
        logger.exception("Database bootstrap failed")
    logger.info("Application started")
    yield
    dispose_engine()
    logger.info("Application stopped")


app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None, lifespan=lifespan)

app.add_middleware(DBConnectionMiddleware)
app.add_middleware(AuthMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.get_secret_key(),
    max_age=settings.session_max_age,
    same_site=settings.session_same_site,
    https_only=settings.session_https_only,
)
app.add_middleware(RateLimitMiddleware, limiter=api_limiter)
app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(bills_router)
app.include_router(health_router)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse({"success": False, "message": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ())[1:]) or 'request'}: {err.get('msg', 'invalid')}"
        for err in errors
    )
    return JSONResponse({"success": False, "message": message or "Invalid request"}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s %s:\n%s",
        request.method,
        request.url.path,
        traceback.format_exc(),
    )
    return JSONResponse({"success": False, "message": "Internal Server Error"}, status_code=500)


@app.get("/")
async def home():
    return PlainTextResponse("Billing System API is running")


_static_dir = Path(settings.static_dir)
if _static_dir.is_dir():
    app.mount("/", StaticFiles(directory=_static_dir, html=True), name="static")
