"""
Demo workspace data.

Used to seed an empty database on startup (and via POST /api/seed), and served
directly when no database is configured.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from core.db.base import is_configured, transact
from core.db.purchases import get_purchase_ids

log = logging.getLogger("seed")

DEFAULT_DEMO_ACCOUNT_ID = "acct_demo_1"
DEFAULT_DEMO_USER_ID = "user_demo_1"
DEFAULT_DEMO_INSTANT_USER_ID = "instant_demo_1"

# Statuses that come with a candidate replacement deal.
STATUSES_WITH_DEALS = ("deal_found", "window_closing", "swap_in_progress", "swap_completed")

# Two scenarios per purchase status.
# (purchase_id, status, merchant, title, hours_ago, total_paid, delivery_days,
#  window_hours, window_estimated, window_confidence, extraction_confidence,
#  item_count, issues)
STATUS_SCENARIOS = [
    ("purchase-1", "deal_found", "Walmart", "Noise Cancelling Headphones", 2, 299.99, 3, 10, False, 0.98, 0.92, 1, None),
    ("purchase-2", "window_closing", "TechMart", "Mechanical Keyboard Bundle", 5, 549.99, 2, 6, False, 0.95, 0.9, 3, None),
    ("purchase-3", "monitoring", "FashionHub", "Designer Jacket", 24, 199.99, 5, 48, True, 0.7, 0.87, 1, None),
    ("purchase-4", "swap_in_progress", "HomeGoods", "Espresso Machine", 30, 329.0, 4, 20, False, 0.91, 0.89, 2, None),
    ("purchase-5", "swap_completed", "BookBarn", "Textbook Order", 72, 124.99, -1, 0, False, 1, 0.93, 4, None),
    ("purchase-6", "expired", "Electronics Plus", "Gaming Monitor", 96, 399.99, 1, 0, False, 1, 0.95, 1, None),
    ("purchase-7", "needs_review", "SportsWorld", "Running Shoes", 12, 129.99, 6, 36, False, 0.82, 0.61, 1,
     ["low_confidence", "missing_order_id"]),
    ("purchase-8", "paused", "GadgetZone", "Wireless Earbuds", 48, 79.99, 3, 72, False, 0.93, 0.9, 1, None),
    ("purchase-9", "deal_found", "Wayfair", "Office Chair", 6, 249.99, 7, 12, False, 0.96, 0.94, 1, None),
    ("purchase-10", "window_closing", "BeautyShop", "Skincare Set", 1, 59.99, 2, 2, True, 0.68, 0.84, 1, None),
    ("purchase-11", "monitoring", "PetCentral", "Automatic Pet Feeder", 18, 139.5, 4, 30, True, 0.74, 0.88, 1, None),
    ("purchase-12", "swap_in_progress", "KitchenPro", "Blender Bundle", 20, 189.0, 5, 14, False, 0.9, 0.9, 2, None),
    ("purchase-13", "swap_completed", "OutdoorLife", "Camping Stove", 120, 94.99, -2, 0, False, 1, 0.92, 1, None),
    ("purchase-14", "expired", "PhotoWorld", "Camera Tripod", 140, 69.0, 1, 0, False, 1, 0.9, 1, None),
    ("purchase-15", "needs_review", "GameHub", "Gaming Mouse", 14, 89.99, 3, 24, True, 0.6, 0.58, 1,
     ["merchant_not_supported", "captcha_blocked"]),
    ("purchase-16", "paused", "CraftDepot", "3D Printing Filament Pack", 36, 44.99, 2, 40, False, 0.89, 0.86, 3, None),
]

_SCENARIO_FIELDS = (
    "purchase_id",
    "status",
    "merchant",
    "title",
    "hours_ago",
    "total_paid",
    "delivery_days",
    "window_hours",
    "window_estimated",
    "window_confidence",
    "extraction_confidence",
    "item_count",
    "issues",
)


def _iso(dt: datetime) -> str:
    return dt.isoformat(timespec="seconds")


def build_items(scenario: Dict) -> List[Dict]:
    """One item per scenario, or a bundle whose prices add up to the total paid."""
    total = scenario["total_paid"]
    count = scenario["item_count"]
    if count == 1:
        return [
            {
                "title": scenario["title"],
                "attributes": {"category": "General", "condition": "New"},
                "quantity": 1,
                "price": round(total, 2),
            }
        ]

    base_price = round(total / count, 2)
    items = []
    for index in range(count):
        last = index == count - 1
        items.append(
            {
                "title": f"{scenario['title']} Item {index + 1}",
                "attributes": {"bundle": "true", "index": str(index + 1)},
                "quantity": 1,
                "price": round(total - base_price * (count - 1), 2) if last else base_price,
            }
        )
    return items


def make_demo_bundle(now: datetime) -> Dict[str, Dict]:
    ts = _iso(now)
    return {
        "app_users": {
            "user_id": DEFAULT_DEMO_USER_ID,
            "instant_user_id": DEFAULT_DEMO_INSTANT_USER_ID,
            "email": "demo@aftersave.app",
            "full_name": "AfterSave Demo User",
            "status": "active",
            "created_at": ts,
            "updated_at": ts,
            "last_login_at": ts,
        },
        "accounts": {
            "account_id": DEFAULT_DEMO_ACCOUNT_ID,
            "name": "AfterSave Demo Workspace",
            "plan": "free",
            "status": "active",
            "timezone": "UTC",
            "default_currency": "USD",
            "country": "US",
            "created_at": ts,
            "updated_at": ts,
        },
        "account_memberships": {
            "membership_id": "membership_demo_1",
            "account_id": DEFAULT_DEMO_ACCOUNT_ID,
            "app_user_id": DEFAULT_DEMO_USER_ID,
            "role": "owner",
            "membership_status": "active",
            "joined_at": ts,
            "created_at": ts,
            "updated_at": ts,
        },
        "account_profiles": {
            "profile_id": "profile_demo_1",
            "account_id": DEFAULT_DEMO_ACCOUNT_ID,
            "display_name": "AfterSave Demo",
            "support_email": "support@aftersave.app",
            "created_at": ts,
            "updated_at": ts,
        },
        "account_settings": {
            "settings_id": "settings_demo_1",
            "account_id": DEFAULT_DEMO_ACCOUNT_ID,
            "notifications": {
                "email_deal_alerts": True,
                "email_window_closing": True,
                "weekly_digest": True,
            },
            "automation_defaults": {
                "allow_similar": False,
                "allow_cross_border": False,
                "default_execution_mode": "Manual",
            },
            "privacy": {"receipt_retention_days": 365, "allow_analytics": True},
            "created_at": ts,
            "updated_at": ts,
        },
        "billing_profiles": {
            "billing_profile_id": "billing_demo_1",
            "account_id": DEFAULT_DEMO_ACCOUNT_ID,
            "provider": "manual",
            "billing_status": "trialing",
            "billing_email": "billing@aftersave.app",
            "created_at": ts,
            "updated_at": ts,
        },
        "device_sessions": {
            "session_id": "session_demo_1",
            "account_id": DEFAULT_DEMO_ACCOUNT_ID,
            "app_user_id": DEFAULT_DEMO_USER_ID,
            "user_agent": "seed-script",
            "last_seen_at": ts,
            "created_at": ts,
        },
    }


def _make_row(scenario: Dict, now: datetime, deal_seq: List[int], event_seq: List[int]) -> Dict:
    ts = _iso(now)
    pid = scenario["purchase_id"]
    status = scenario["status"]
    total = scenario["total_paid"]
    remaining = scenario["window_hours"] * 3600

    purchase = {
        "purchase_id": pid,
        "account_id": DEFAULT_DEMO_ACCOUNT_ID,
        "merchant": scenario["merchant"],
        "primary_item_title": scenario["title"],
        "purchase_time": _iso(now - timedelta(hours=scenario["hours_ago"])),
        "currency": "USD",
        "country": "US",
        "total_paid": total,
        "delivery_estimate": _iso(now + timedelta(days=scenario["delivery_days"])),
        "cancellation_window_remaining": remaining,
        "cancellation_window_estimated": scenario["window_estimated"],
        "cancellation_window_confidence": scenario["window_confidence"],
        "cancellation_window_end": _iso(now + timedelta(seconds=remaining)),
        "cancellation_window_inferred": scenario["window_estimated"],
        "status": status,
        "monitoring_enabled": status != "paused",
        "extraction_confidence_score": scenario["extraction_confidence"],
        "issues": scenario["issues"],
        "order_id": None if status == "needs_review" else f"ORDER-{pid.replace('purchase-', '').zfill(5)}",
        "item_count": scenario["item_count"],
        "last_scan_at": _iso(now - timedelta(minutes=15)),
        "created_at": ts,
        "updated_at": ts,
    }

    deals = []
    if status in STATUSES_WITH_DEALS:
        deals.append(
            {
                "deal_id": f"deal-{deal_seq[0]}",
                "account_id": DEFAULT_DEMO_ACCOUNT_ID,
                "purchase_id": pid,
                "merchant_or_seller": f"{scenario['merchant']} Marketplace",
                "listing_url": f"https://example.com/{pid}/deal",
                "match_tier": "Exact" if status == "deal_found" else "Attribute",
                "base_price": round(total * 0.82, 2),
                "shipping": 4.99,
                "tax_estimate": round(total * 0.06, 2),
                "total_price": round(total * 0.9, 2),
                "delivery_estimate": _iso(now + timedelta(days=2)),
                "return_policy_summary": "Standard returns within 30 days.",
                "coupon": {"code": "AFTERSAVE10", "auto_apply_flag": True},
                "reliability_score": 0.91,
                "net_savings": round(total * 0.1, 2),
                "savings_percentage": 10,
                "last_checked_at": _iso(now - timedelta(minutes=7)),
                "in_stock_flag": True,
                "stock_confidence": 0.9,
                "cross_border": False,
                "created_at": ts,
                "updated_at": ts,
            }
        )
        deal_seq[0] += 1

    def event(event_type: str, when: datetime, label: str, detail: str) -> Dict:
        record = {
            "audit_event_id": f"ev-{event_seq[0]}",
            "account_id": DEFAULT_DEMO_ACCOUNT_ID,
            "purchase_id": pid,
            "type": event_type,
            "timestamp": _iso(when),
            "label": label,
            "detail": detail,
            "created_at": ts,
        }
        event_seq[0] += 1
        return record

    events = [
        event(
            "purchase_detected",
            now - timedelta(hours=scenario["hours_ago"] + 0.2),
            f"Purchase detected from {scenario['merchant']}",
            f"Status set to {status}.",
        )
    ]
    if deals:
        events.append(
            event(
                "deals_evaluated",
                now - timedelta(minutes=12),
                "Replacement deals evaluated",
                f"Found {len(deals)} candidate deal(s).",
            )
        )
    if status == "swap_in_progress":
        events.append(
            event(
                "swap_step",
                now - timedelta(minutes=9),
                "Swap initiated with merchant",
                "Cancellation requested and replacement checkout started.",
            )
        )
    if status == "swap_completed":
        events.append(
            event(
                "swap_completed",
                now - timedelta(minutes=20),
                "Swap completed successfully",
                "Original order canceled and replacement order placed.",
            )
        )
    if status == "needs_review":
        events.append(
            event(
                "failure",
                now - timedelta(minutes=8),
                "Manual review required",
                "Automation paused due to extraction/merchant issues.",
            )
        )

    return {"purchase": purchase, "items": build_items(scenario), "deals": deals, "audit_events": events}


def make_sample_seed_data(now: Optional[datetime] = None) -> Dict:
    """
    Return `{"bundle": {...}, "rows": [...]}`: the demo account records plus one
    row (purchase, items, deals, audit events) per status scenario.
    """
    now = now or datetime.now(timezone.utc)
    deal_seq = [1]
    event_seq = [1]
    rows = [
        _make_row(dict(zip(_SCENARIO_FIELDS, s)), now, deal_seq, event_seq)
        for s in STATUS_SCENARIOS
    ]
    return {"bundle": make_demo_bundle(now), "rows": rows}


def purchase_item_id(purchase_id: str, title: str) -> str:
    return re.sub(r"\s+", "_", f"{purchase_id}_{title}".lower())


def seed_operations(data: Dict, existing_ids: set) -> List[tuple]:
    """Insert operations for every row whose purchase isn't stored yet."""
    missing = [r for r in data["rows"] if r["purchase"]["purchase_id"] not in existing_ids]
    ops: List[tuple] = []
    if not missing:
        return ops

    # The demo account rows are only inserted when the account is new.
    if not existing_ids:
        ops.extend(data["bundle"].items())

    for row in missing:
        purchase = row["purchase"]
        ops.append(("purchases", purchase))
        for item in row["items"]:
            ops.append(
                (
                    "purchase_items",
                    {
                        "purchase_item_id": purchase_item_id(purchase["purchase_id"], item["title"]),
                        "account_id": purchase["account_id"],
                        "purchase_id": purchase["purchase_id"],
                        "created_at": purchase["created_at"],
                        "updated_at": purchase["updated_at"],
                        **item,
                    },
                )
            )
        ops.extend(("deals", deal) for deal in row["deals"])
        ops.extend(("audit_events", ev) for ev in row["audit_events"])
    return ops


def seed_sample_data() -> Dict:
    """Store any demo purchases the demo account is missing, in one transaction."""
    existing_ids = get_purchase_ids(DEFAULT_DEMO_ACCOUNT_ID)
    data = make_sample_seed_data()
    added = sum(1 for r in data["rows"] if r["purchase"]["purchase_id"] not in existing_ids)

    ops = seed_operations(data, existing_ids)
    if ops:
        transact(ops)
        log.info("Seeded %d demo purchases (total: %d)", added, len(existing_ids) + added)

    return {"seeded": added > 0, "added": added, "count": len(existing_ids) + added}


def seed_on_startup() -> None:
    if not is_configured():
        return
    try:
        seed_sample_data()
    except Exception:
        log.exception("Failed seeding demo data")


FALLBACK_SAMPLE_DATA = make_sample_seed_data()


__all__ = [
    "DEFAULT_DEMO_ACCOUNT_ID",
    "DEFAULT_DEMO_USER_ID",
    "DEFAULT_DEMO_INSTANT_USER_ID",
    "STATUS_SCENARIOS",
    "FALLBACK_SAMPLE_DATA",
    "build_items",
    "make_sample_seed_data",
    "purchase_item_id",
    "seed_operations",
    "seed_sample_data",
    "seed_on_startup",
]
