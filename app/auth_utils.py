"""
Resolve which user and account a request acts for.

Authentication itself happens in the client (magic-link provider); the client
forwards the identity in headers:

- `x-instant-user-id`: the provider's user id
- `x-user-email`: the user's email (matched lower-cased)
- `x-account-id`: optional account to act on
"""
from __future__ import annotations

from typing import Dict, Optional

from fastapi import Request

from core.database import (
    get_account,
    get_active_memberships,
    get_app_user_by_email,
    get_app_user_by_instant_id,
    get_first_account,
)
from core.seed import DEFAULT_DEMO_ACCOUNT_ID

INSTANT_USER_HEADER = "x-instant-user-id"
EMAIL_HEADER = "x-user-email"
ACCOUNT_HEADER = "x-account-id"


class NoAccountError(Exception):
    pass


def _header(request: Request, name: str) -> Optional[str]:
    value = request.headers.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def get_current_user(request: Request) -> Optional[Dict]:
    """Look up the app user by provider id first, then by email."""
    instant_user_id = _header(request, INSTANT_USER_HEADER)
    email = _header(request, EMAIL_HEADER)

    user = None
    if instant_user_id:
        user = get_app_user_by_instant_id(instant_user_id)
    if not user and email:
        user = get_app_user_by_email(email.lower())
    return user


def _default_account_id() -> Optional[str]:
    demo = get_account(DEFAULT_DEMO_ACCOUNT_ID)
    if demo:
        return demo["account_id"]
    first = get_first_account()
    return first["account_id"] if first else None


def resolve_request_context(request: Request) -> Dict:
    """
    Return `{account_id, app_user_id, role}` for the request.

    The requested account wins when given; otherwise the user's first active
    membership, then the demo account, then any account. Raises NoAccountError
    when the database holds no account at all.
    """
    requested_account_id = _header(request, ACCOUNT_HEADER)
    user = get_current_user(request)

    membership = None
    if user:
        memberships = get_active_memberships(user["user_id"])
        if requested_account_id:
            membership = next(
                (m for m in memberships if m.get("account_id") == requested_account_id),
                None,
            )
        if not membership and memberships:
            membership = memberships[0]

    account_id = (
        requested_account_id
        or (membership or {}).get("account_id")
        or _default_account_id()
    )
    if not account_id:
        raise NoAccountError("No account found. Seed data or register a user first.")

    return {
        "account_id": account_id,
        "app_user_id": user["user_id"] if user else None,
        "role": membership.get("role") if membership else None,
    }


__all__ = [
    "INSTANT_USER_HEADER",
    "EMAIL_HEADER",
    "ACCOUNT_HEADER",
    "NoAccountError",
    "get_current_user",
    "resolve_request_context",
]
