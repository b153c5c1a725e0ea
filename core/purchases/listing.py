"""
Purchase list helpers: urgency scoring, sorting, filtering, search and the
savings summary shown above the list.

Purchases here are list items as produced by `core.purchases.views.to_list_item`.
"""
from __future__ import annotations

from typing import Dict, List

from core.purchases.formatting import parse_iso

STATUSES = (
    "monitoring",
    "deal_found",
    "window_closing",
    "swap_in_progress",
    "swap_completed",
    "expired",
    "needs_review",
    "paused",
)

STATUS_LABELS = {
    "monitoring": "Monitoring",
    "deal_found": "Deal Found",
    "window_closing": "Window Closing",
    "swap_in_progress": "Swap in Progress",
    "swap_completed": "Completed",
    "expired": "Expired",
    "needs_review": "Needs Review",
    "paused": "Paused",
}

FILTER_STATUS_GROUPS = {
    "all": (),
    "savings_available": ("deal_found", "window_closing"),
    "searching": ("monitoring", "swap_in_progress"),
    "return_soon": ("needs_review", "paused", "expired", "swap_completed"),
}

SORT_OPTIONS = ("urgency", "biggest_savings", "most_recent", "merchant_name")

URGENCY_STATUS_POINTS = {
    "window_closing": 1000,
    "needs_review": 800,
    "deal_found": 600,
}
URGENCY_WINDOW_HOURS = 24
URGENCY_WINDOW_POINTS = 500
URGENCY_POINTS_PER_HOUR = 10
URGENCY_POINTS_PER_ISSUE = 50

ACTIONABLE_STATUSES = ("deal_found", "window_closing")
TRACKING_STATUSES = ("monitoring", "swap_in_progress")


def _hours_remaining(purchase: Dict):
    remaining = purchase.get("cancellation_window_remaining")
    if remaining is None:
        return None
    return remaining / 3600


def calculate_urgency_score(purchase: Dict) -> float:
    """
    Status points, plus a bonus that grows as the last 24h of the window runs
    out, plus a flat amount per open issue.
    """
    score = URGENCY_STATUS_POINTS.get(purchase.get("status"), 0)
    hours = _hours_remaining(purchase)
    if hours is not None and 0 < hours < URGENCY_WINDOW_HOURS:
        score += URGENCY_WINDOW_POINTS - hours * URGENCY_POINTS_PER_HOUR
    issues = purchase.get("issues") or []
    score += len(issues) * URGENCY_POINTS_PER_ISSUE
    return score


def _best_savings(purchase: Dict) -> float:
    summary = purchase.get("best_deal_summary") or {}
    return float(summary.get("best_net_savings") or 0)


def _purchase_timestamp(purchase: Dict) -> float:
    raw = purchase.get("purchase_time")
    if not raw:
        return float("-inf")
    try:
        return parse_iso(raw).timestamp()
    except ValueError:
        return float("-inf")


def sort_purchases(purchases: List[Dict], sort: str) -> List[Dict]:
    """Return a sorted copy. Ties keep their input order."""
    if sort == "urgency":
        return sorted(purchases, key=calculate_urgency_score, reverse=True)
    if sort == "biggest_savings":
        return sorted(purchases, key=_best_savings, reverse=True)
    if sort == "most_recent":
        return sorted(purchases, key=_purchase_timestamp, reverse=True)
    if sort == "merchant_name":
        return sorted(purchases, key=lambda p: (p.get("merchant") or "").casefold())
    return list(purchases)


def filter_purchases(purchases: List[Dict], filter_name: str) -> List[Dict]:
    if filter_name == "all" or filter_name not in FILTER_STATUS_GROUPS:
        return list(purchases)
    statuses = FILTER_STATUS_GROUPS[filter_name]
    return [p for p in purchases if p.get("status") in statuses]


def count_by_filter(purchases: List[Dict], filter_name: str) -> int:
    return len(filter_purchases(purchases, filter_name))


def search_purchases(purchases: List[Dict], query: str | None) -> List[Dict]:
    """Case-insensitive substring match on merchant, item title or order id."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(purchases)

    def matches(purchase: Dict) -> bool:
        for field in ("merchant", "primary_item_title", "order_id"):
            value = purchase.get(field)
            if value and needle in value.lower():
                return True
        return False

    return [p for p in purchases if matches(p)]


def get_total_savings(purchases: List[Dict]) -> Dict:
    actionable = [
        p
        for p in purchases
        if p.get("status") in ACTIONABLE_STATUSES and p.get("best_deal_summary")
    ]
    total = sum(_best_savings(p) for p in actionable)
    return {"total_amount": round(total, 2), "count": len(actionable)}


def get_summary_message(purchases: List[Dict]) -> str:
    count = get_total_savings(purchases)["count"]
    if count > 0:
        return f"{count} purchase{' has' if count == 1 else 's have'} savings ready"

    tracking = sum(1 for p in purchases if p.get("status") in TRACKING_STATUSES)
    if tracking > 0:
        return f"{tracking} purchase{' is' if tracking == 1 else 's are'} being tracked"

    return "All caught up"


def should_mark_as_window_closing(purchase: Dict) -> bool:
    if purchase.get("status") in ("expired", "swap_completed"):
        return False
    hours = _hours_remaining(purchase)
    if hours is None:
        return False
    return 0 < hours < URGENCY_WINDOW_HOURS


__all__ = [
    "STATUSES",
    "STATUS_LABELS",
    "FILTER_STATUS_GROUPS",
    "SORT_OPTIONS",
    "calculate_urgency_score",
    "sort_purchases",
    "filter_purchases",
    "count_by_filter",
    "search_purchases",
    "get_total_savings",
    "get_summary_message",
    "should_mark_as_window_closing",
]
