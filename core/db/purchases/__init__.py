"""
Purchases, deals and audit events storage re-exports.
"""
from core.db.purchases.purchase_store import (
    list_purchases,
    get_purchase_ids,
    get_purchase,
    get_purchase_items,
    get_audit_events,
    build_audit_event,
    update_purchase,
    set_purchase_monitoring,
)
from core.db.purchases.deal_store import (
    list_deals_for_account,
    list_deals_for_purchase,
)

__all__ = [
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
]
