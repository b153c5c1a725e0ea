import logging
from typing import Optional

from fastapi import APIRouter, Body, Request

from app.errors import error_response, require_database
from core.database import (
    create_account_bundle,
    create_app_user,
    create_device_session,
    get_active_memberships,
    get_app_user_by_instant_id,
    normalize_email,
    touch_app_user,
)

log = logging.getLogger("api")

router = APIRouter()


@router.post("/api/auth/register", status_code=201)
def register(request: Request, payload: Optional[dict] = Body(default=None)):
    """
    Called by the client after a magic-link sign-in. Creates the app user on
    first sign-in (with an owner workspace) and records a device session.
    """
    unavailable = require_database()
    if unavailable:
        return unavailable

    body = payload or {}
    instant_user_id = body.get("instant_user_id")
    email = body.get("email")
    full_name = body.get("full_name")
    if not instant_user_id or not email:
        return error_response("`instant_user_id` and `email` are required.", 400)

    try:
        email_normalized = normalize_email(str(email))
        user = get_app_user_by_instant_id(instant_user_id)
        if not user:
            user = create_app_user(instant_user_id, email_normalized, full_name)
            log.info("Registered app user %s", user["user_id"])
        else:
            user = touch_app_user(user, email_normalized, full_name)

        memberships = get_active_memberships(user["user_id"])
        membership = memberships[0] if memberships else None
        if not membership:
            membership = create_account_bundle(user, full_name)
            log.info("Created workspace %s for %s", membership["account_id"], user["user_id"])

        create_device_session(
            membership["account_id"],
            user["user_id"],
            user_agent=request.headers.get("user-agent"),
            ip_address=request.client.host if request.client else None,
        )

        return {
            "user_id": user["user_id"],
            "instant_user_id": user["instant_user_id"],
            "email": user["email"],
            "full_name": user.get("full_name") or None,
            "account_id": membership["account_id"],
            "role": membership["role"],
        }
    except Exception as exc:
        log.exception("Failed to register user")
        return error_response(str(exc) or "Failed to register user", 500)
