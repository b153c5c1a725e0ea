"""
Shape stored rows into the list and detail payloads returned by the API.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, List

from core.db.base import now_iso
from core.deals.ranking import best_deal_summary
from core.purchases.formatting import parse_iso

# Internal columns never returned to clients.
_PRIVATE_FIELDS = ("id", "account_id", "created_at", "updated_at")


def group_deals_by_purchase(deals: List[Dict]) -> Dict[str, List[Dict]]:
    grouped: Dict[str, List[Dict]] = defaultdict(list)
    for deal in deals:
        grouped[deal.get("purchase_id")].append(deal)
    return dict(grouped)


def to_list_item(purchase: Dict, deals: List[Dict]) -> Dict:
    return {
        "purchase_id": purchase.get("purchase_id"),
        "merchant": purchase.get("merchant"),
        "primary_item_title": purchase.get("primary_item_title"),
        "purchase_time": purchase.get("purchase_time"),
        "currency": purchase.get("currency") or "USD",
        "total_paid": purchase.get("total_paid"),
        "delivery_estimate": purchase.get("delivery_estimate"),
        "cancellation_window_remaining": purchase.get("cancellation_window_remaining"),
        "cancellation_window_estimated": purchase.get("cancellation_window_estimated"),
        "cancellation_window_confidence": purchase.get("cancellation_window_confidence"),
        "status": purchase.get("status"),
        "best_deal_summary": best_deal_summary(deals),
        "issues": purchase.get("issues"),
        "order_id": purchase.get("order_id"),
        "item_count": purchase.get("item_count"),
    }


def to_list_items(purchases: List[Dict], deals: List[Dict]) -> List[Dict]:
    """List items for every purchase, most recent purchase first."""
    by_purchase = group_deals_by_purchase(deals)
    items = [to_list_item(p, by_purchase.get(p.get("purchase_id"), [])) for p in purchases]
    return sorted(items, key=_purchase_time_key, reverse=True)


def _purchase_time_key(item: Dict) -> float:
    raw = item.get("purchase_time")
    return parse_iso(raw).timestamp() if raw else float("-inf")


def to_detail_purchase(purchase: Dict, items: List[Dict]) -> Dict:
    confidence = purchase.get("extraction_confidence_score")
    return {
        "purchase_id": purchase.get("purchase_id"),
        "merchant": purchase.get("merchant"),
        "order_id": purchase.get("order_id"),
        "purchase_time": purchase.get("purchase_time"),
        "country": purchase.get("country") or "US",
        "currency": purchase.get("currency") or "USD",
        "items": [
            {
                "title": item.get("title"),
                "attributes": item.get("attributes") or {},
                "quantity": item.get("quantity"),
                "price": item.get("price"),
            }
            for item in items
        ],
        "delivery_estimate": purchase.get("delivery_estimate"),
        "cancellation_window": {
            "end": purchase.get("cancellation_window_end") or now_iso(),
            "inferred": bool(purchase.get("cancellation_window_inferred")),
        },
        "extraction_confidence_score": 1 if confidence is None else confidence,
        "monitoring_enabled": purchase.get("monitoring_enabled") is not False,
        "last_scan_at": purchase.get("last_scan_at"),
    }


def public_record(record: Dict) -> Dict:
    """Drop storage-only columns (serial id, tenancy and bookkeeping timestamps)."""
    return {k: v for k, v in record.items() if k not in _PRIVATE_FIELDS}


def sort_deals_by_savings(deals: List[Dict]) -> List[Dict]:
    return sorted(deals, key=lambda d: float(d.get("net_savings") or 0), reverse=True)


def sort_events_newest_first(events: List[Dict]) -> List[Dict]:
    return sorted(events, key=lambda e: parse_iso(e["timestamp"]).timestamp(), reverse=True)


__all__ = [
    "group_deals_by_purchase",
    "to_list_item",
    "to_list_items",
    "to_detail_purchase",
    "public_record",
    "sort_deals_by_savings",
    "sort_events_newest_first",
]
