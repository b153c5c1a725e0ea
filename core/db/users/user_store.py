"""
App user lookup and upsert helpers.

Users are identified by the auth provider's id (`instant_user_id`); email is a
secondary lookup key and is always stored lower-cased.
"""
from __future__ import annotations

from typing import Dict, Optional

from core.db.base import find_by_field, get_conn, insert_row, new_id, now_iso, update_row


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def get_app_user_by_instant_id(instant_user_id: str) -> Optional[Dict]:
    if not instant_user_id:
        return None
    return find_by_field("app_users", "instant_user_id", instant_user_id)


def get_app_user_by_email(email: str) -> Optional[Dict]:
    email_normalized = normalize_email(email)
    if not email_normalized:
        return None
    return find_by_field("app_users", "email", email_normalized)


def create_app_user(instant_user_id: str, email: str, full_name: str | None = None) -> Dict:
    """Insert a new active app user and return the stored record."""
    now = now_iso()
    user = {
        "user_id": new_id("user"),
        "instant_user_id": instant_user_id,
        "email": normalize_email(email),
        "full_name": full_name or None,
        "status": "active",
        "created_at": now,
        "updated_at": now,
        "last_login_at": now,
    }

    conn = get_conn()
    cur = conn.cursor()
    insert_row(cur, "app_users", user)
    conn.commit()
    conn.close()
    return user


def touch_app_user(user: Dict, email: str, full_name: str | None = None) -> Dict:
    """
    Refresh email, name and last login for an existing user.
    A blank `full_name` keeps the stored one.
    """
    now = now_iso()
    changes = {
        "email": normalize_email(email),
        "full_name": full_name or user.get("full_name") or None,
        "last_login_at": now,
        "updated_at": now,
    }

    conn = get_conn()
    cur = conn.cursor()
    update_row(cur, "app_users", "user_id", user["user_id"], changes)
    conn.commit()
    conn.close()
    return {**user, **changes}


__all__ = [
    "normalize_email",
    "get_app_user_by_instant_id",
    "get_app_user_by_email",
    "create_app_user",
    "touch_app_user",
]
