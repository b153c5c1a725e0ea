import logging
from typing import Optional

from fastapi import APIRouter, Body, Request

from app.auth_utils import resolve_request_context
from app.errors import error_response, require_database
from core.database import (
    get_account,
    get_account_profile,
    get_account_settings,
    get_billing_profile,
    get_device_sessions,
    update_account_profile,
    update_account_settings,
)
from core.purchases.views import public_record

log = logging.getLogger("api")

router = APIRouter()


@router.get("/api/account")
def account_overview(request: Request):
    unavailable = require_database()
    if unavailable:
        return unavailable

    try:
        context = resolve_request_context(request)
        account_id = context["account_id"]
        account = get_account(account_id)
        if not account:
            return error_response("Account not found", 404)

        profile = get_account_profile(account_id)
        settings = get_account_settings(account_id)
        billing = get_billing_profile(account_id)
        sessions = get_device_sessions(account_id)

        return {
            "account": {k: v for k, v in account.items() if k != "id"},
            "profile": public_record(profile) if profile else None,
            "settings": public_record(settings) if settings else None,
            "billing": public_record(billing) if billing else None,
            "sessions": [public_record(s) for s in sessions],
            "actor": {"app_user_id": context["app_user_id"], "role": context["role"]},
        }
    except Exception as exc:
        log.exception("Failed to fetch account")
        return error_response(str(exc) or "Failed to fetch account", 500)


@router.patch("/api/account/profile")
def patch_profile(request: Request, payload: Optional[dict] = Body(default=None)):
    unavailable = require_database()
    if unavailable:
        return unavailable

    try:
        context = resolve_request_context(request)
        profile = get_account_profile(context["account_id"])
        if not profile:
            return error_response("Account profile not found", 404)

        update_account_profile(profile, payload or {})
        return {"ok": True}
    except Exception as exc:
        log.exception("Failed to update profile")
        return error_response(str(exc) or "Failed to update profile", 500)


@router.patch("/api/account/settings")
def patch_settings(request: Request, payload: Optional[dict] = Body(default=None)):
    unavailable = require_database()
    if unavailable:
        return unavailable

    try:
        context = resolve_request_context(request)
        settings = get_account_settings(context["account_id"])
        if not settings:
            return error_response("Account settings not found", 404)

        update_account_settings(settings, payload or {})
        return {"ok": True}
    except Exception as exc:
        log.exception("Failed to update settings")
        return error_response(str(exc) or "Failed to update settings", 500)
