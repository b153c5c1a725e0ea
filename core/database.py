"""
Single import point for storage helpers used by the API.
"""
from core.db.base import is_configured, now_iso, new_id
from core.db.schema import init_db
from core.db.users import (
    normalize_email,
    get_app_user_by_instant_id,
    get_app_user_by_email,
    create_app_user,
    touch_app_user,
)
from core.db.accounts import (
    get_account,
    get_first_account,
    get_active_memberships,
    get_account_profile,
    get_account_settings,
    get_billing_profile,
    get_device_sessions,
    create_account_bundle,
    create_device_session,
    update_account_profile,
    update_account_settings,
)
from core.db.purchases import (
    list_purchases,
    get_purchase_ids,
    get_purchase,
    get_purchase_items,
    get_audit_events,
    build_audit_event,
    update_purchase,
    set_purchase_monitoring,
    list_deals_for_account,
    list_deals_for_purchase,
)
from core.db.swaps import (
    get_swap_execution,
    create_swap_execution,
    save_swap_transition,
)

__all__ = [
    "is_configured",
    "now_iso",
    "new_id",
    "init_db",
    "normalize_email",
    "get_app_user_by_instant_id",
    "get_app_user_by_email",
    "create_app_user",
    "touch_app_user",
    "get_account",
    "get_first_account",
    "get_active_memberships",
    "get_account_profile",
    "get_account_settings",
    "get_billing_profile",
    "get_device_sessions",
    "create_account_bundle",
    "create_device_session",
    "update_account_profile",
    "update_account_settings",
    "list_purchases",
    "get_purchase_ids",
    "get_purchase",
    "get_purchase_items",
    "get_audit_events",
    "build_audit_event",
    "update_purchase",
    "set_purchase_monitoring",
    "list_deals_for_account",
    "list_deals_for_purchase",
    "get_swap_execution",
    "create_swap_execution",
    "save_swap_transition",
]
