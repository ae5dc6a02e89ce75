from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from billbook.codec import coerce_text
from web.deps import get_auth_service, read_json
from web.ratelimit import client_ip, login_limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.post("/login")
async def login(request: Request):
    ip = client_ip(request)
    if login_limiter.is_limited(ip):
        logger.warning("Rate-limited login attempt from %s", ip)
        return JSONResponse(
            {"success": False, "message": "Too many login attempts. Please wait a moment and try again."},
            status_code=429,
        )

    data = await read_json(request)
    email = coerce_text(data.get("email")).strip()
    password = coerce_text(data.get("password"))
    if not email or not password.strip():
        return JSONResponse({"success": False, "message": "Email and password are required"}, status_code=400)

    user_id = get_auth_service().authenticate(email, password)
    if user_id is None:
        login_limiter.hit(ip)
        return JSONResponse({"success": False, "message": "Invalid email or password"}, status_code=401)

    login_limiter.clear(ip)
    request.session.clear()
    request.session["user_id"] = user_id
    logger.info("Session started for user=%s from %s", user_id, ip)
    return {"success": True, "userId": user_id}


@router.post("/logout")
async def logout(request: Request):
    user_id = request.session.get("user_id")
    request.session.clear()
    logger.info("Session ended for user=%s", user_id)
    return {"success": True}


@router.get("/me")
async def me(request: Request):
    user_id = request.session.get("user_id")
    if not user_id:
        return JSONResponse({"authenticated": False}, status_code=401)
    return {"authenticated": True, "userId": user_id}
