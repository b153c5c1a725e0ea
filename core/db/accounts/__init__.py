"""
Account workspace storage re-exports.
"""
from core.db.accounts.account_store import (
    get_account,
    get_first_account,
    get_active_memberships,
    get_account_profile,
    get_account_settings,
    get_billing_profile,
    get_device_sessions,
    build_account_bundle,
    create_account_bundle,
    create_device_session,
    update_account_profile,
    update_account_settings,
)

__all__ = [
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
    "update_account_profile",
    "update_account_settings",
]
