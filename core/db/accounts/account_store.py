"""
Account workspace storage: memberships, profile, settings, billing and device sessions.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from core.db.base import (
    find_by_field,
    get_conn,
    insert_row,
    list_by_field,
    new_id,
    now_iso,
    transact,
    update_row,
)

DEFAULT_NOTIFICATIONS = {
    "email_deal_alerts": True,
    "email_window_closing": True,
    "weekly_digest": True,
}
DEFAULT_AUTOMATION = {
    "allow_similar": False,
    "allow_cross_border": False,
    "default_execution_mode": "Manual",
}
DEFAULT_PRIVACY = {
    "receipt_retention_days": 365,
    "allow_analytics": True,
}

# Only string values for these fields are applied by a profile patch.
PROFILE_PATCH_FIELDS = ("display_name", "support_email", "contact_phone", "logo_url")
SETTINGS_PATCH_FIELDS = ("notifications", "automation_defaults", "privacy")


def get_account(account_id: str) -> Optional[Dict]:
    return find_by_field("accounts", "account_id", account_id)


def get_first_account() -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT * FROM accounts ORDER BY id LIMIT 1")
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def get_active_memberships(app_user_id: str) -> List[Dict]:
    memberships = list_by_field("account_memberships", "app_user_id", app_user_id)
    return [m for m in memberships if m.get("membership_status") == "active"]


def get_account_profile(account_id: str) -> Optional[Dict]:
    return find_by_field("account_profiles", "account_id", account_id)


def get_account_settings(account_id: str) -> Optional[Dict]:
    return find_by_field("account_settings", "account_id", account_id)


def get_billing_profile(account_id: str) -> Optional[Dict]:
    return find_by_field("billing_profiles", "account_id", account_id)


def get_device_sessions(account_id: str) -> List[Dict]:
    """Device sessions for an account, most recently seen first."""
    sessions = list_by_field("device_sessions", "account_id", account_id)
    return sorted(sessions, key=lambda s: s.get("last_seen_at") or "", reverse=True)


def build_account_bundle(
    user: Dict,
    *,
    full_name: str | None = None,
    account_id: str | None = None,
    timestamp: str | None = None,
) -> Dict[str, Dict]:
    """
    Build (without storing) the records of a fresh owner workspace for `user`.
    """
    timestamp = timestamp or now_iso()
    account_id = account_id or new_id("acct")
    name = (
        f"{full_name.strip()}'s Workspace"
        if isinstance(full_name, str) and full_name.strip()
        else "My AfterSave Workspace"
    )
    email = user.get("email")

    return {
        "accounts": {
            "account_id": account_id,
            "name": name,
            "plan": "free",
            "status": "active",
            "timezone": "UTC",
            "default_currency": "USD",
            "country": "US",
            "created_at": timestamp,
            "updated_at": timestamp,
        },
        "account_memberships": {
            "membership_id": new_id("membership"),
            "account_id": account_id,
            "app_user_id": user["user_id"],
            "role": "owner",
            "membership_status": "active",
            "invited_by_user_id": None,
            "joined_at": timestamp,
            "created_at": timestamp,
            "updated_at": timestamp,
        },
        "account_profiles": {
            "profile_id": new_id("profile"),
            "account_id": account_id,
            "display_name": name,
            "support_email": email,
            "contact_phone": None,
            "billing_address": None,
            "logo_url": None,
            "created_at": timestamp,
            "updated_at": timestamp,
        },
        "account_settings": {
            "settings_id": new_id("settings"),
            "account_id": account_id,
            "notifications": dict(DEFAULT_NOTIFICATIONS),
            "automation_defaults": dict(DEFAULT_AUTOMATION),
            "privacy": dict(DEFAULT_PRIVACY),
            "created_at": timestamp,
            "updated_at": timestamp,
        },
        "billing_profiles": {
            "billing_profile_id": new_id("billing"),
            "account_id": account_id,
            "provider": "manual",
            "provider_customer_id": None,
            "provider_subscription_id": None,
            "billing_email": email,
            "billing_status": "trialing",
            "current_period_end": None,
            "created_at": timestamp,
            "updated_at": timestamp,
        },
    }


def create_account_bundle(user: Dict, full_name: str | None = None) -> Dict:
    """Create a workspace owned by `user` in one transaction; returns the membership."""
    bundle = build_account_bundle(user, full_name=full_name)
    transact([(table, record) for table, record in bundle.items()])
    return bundle["account_memberships"]


def create_device_session(
    account_id: str,
    app_user_id: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> Dict:
    now = now_iso()
    session = {
        "session_id": new_id("session"),
        "account_id": account_id,
        "app_user_id": app_user_id,
        "user_agent": user_agent,
        "ip_address": ip_address,
        "last_seen_at": now,
        "revoked_at": None,
        "created_at": now,
    }
    conn = get_conn()
    cur = conn.cursor()
    insert_row(cur, "device_sessions", session)
    conn.commit()
    conn.close()
    return session


def profile_changes(profile: Dict, patch: Dict) -> Dict:
    """Merge a profile patch: non-string values keep the stored field."""
    changes = {
        field: patch[field] if isinstance(patch.get(field), str) else profile.get(field)
        for field in PROFILE_PATCH_FIELDS
    }
    changes["updated_at"] = now_iso()
    return changes


def settings_changes(settings: Dict, patch: Dict) -> Dict:
    """Merge a settings patch: each section is replaced whole when provided."""
    changes = {field: patch.get(field) or settings.get(field) for field in SETTINGS_PATCH_FIELDS}
    changes["updated_at"] = now_iso()
    return changes


def update_account_profile(profile: Dict, patch: Dict) -> Dict:
    changes = profile_changes(profile, patch)
    conn = get_conn()
    cur = conn.cursor()
    update_row(cur, "account_profiles", "profile_id", profile["profile_id"], changes)
    conn.commit()
    conn.close()
    return {**profile, **changes}


def update_account_settings(settings: Dict, patch: Dict) -> Dict:
    changes = settings_changes(settings, patch)
    conn = get_conn()
    cur = conn.cursor()
    update_row(cur, "account_settings", "settings_id", settings["settings_id"], changes)
    conn.commit()
    conn.close()
    return {**settings, **changes}


__all__ = [
    "DEFAULT_NOTIFICATIONS",
    "DEFAULT_AUTOMATION",
    "DEFAULT_PRIVACY",
    "get_account",
    "get_first_account",
    "get_active_memberships",
    "get_account_profile",
    "get_account_settings",
    "get_billing_profile",
    "get_device_sessions",
    "build_account_bundle",
    "create_account_bundle",
    "create_device_session",
    "profile_changes",
    "settings_changes",
    "update_account_profile",
    "update_account_settings",
]
