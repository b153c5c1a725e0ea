import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Body, Request

from app.auth_utils import resolve_request_context
from app.errors import error_response, require_database
from core.database import (
    get_account_settings,
    get_audit_events,
    get_purchase,
    get_purchase_items,
    is_configured,
    list_deals_for_account,
    list_deals_for_purchase,
    list_purchases,
    set_purchase_monitoring,
)
from core.deals.ranking import rank_deals, semi_automated_eligible
from core.purchases.formatting import calculate_time_remaining
from core.purchases.listing import (
    FILTER_STATUS_GROUPS,
    SORT_OPTIONS,
    count_by_filter,
    filter_purchases,
    get_summary_message,
    get_total_savings,
    search_purchases,
    sort_purchases,
)
from core.purchases.views import (
    public_record,
    sort_deals_by_savings,
    sort_events_newest_first,
    to_detail_purchase,
    to_list_items,
)
from core.seed import DEFAULT_DEMO_ACCOUNT_ID, FALLBACK_SAMPLE_DATA

log = logging.getLogger("api")

router = APIRouter()

FALLBACK_MODE = "fallback_sample_data"


def _list_payload(items: List[Dict], filter_name: str, sort: Optional[str], query: Optional[str]) -> Dict:
    """Apply search/filter/sort and build the savings summary for the full list."""
    total = get_total_savings(items)
    summary = {
        "message": get_summary_message(items),
        "total_savings": total["total_amount"],
        "savings_count": total["count"],
        "counts": {name: count_by_filter(items, name) for name in FILTER_STATUS_GROUPS},
    }

    visible = filter_purchases(search_purchases(items, query), filter_name)
    if sort:
        visible = sort_purchases(visible, sort)
    return {"purchases": visible, "summary": summary}


def _detail_payload(
    account_id: str,
    purchase: Dict,
    items: List[Dict],
    deals: List[Dict],
    events: List[Dict],
    allow_similar: bool,
    allow_cross_border: bool,
) -> Dict:
    detail = to_detail_purchase(purchase, items)
    return {
        "account_id": account_id,
        "status": purchase.get("status"),
        "purchase": detail,
        "time_remaining": calculate_time_remaining(detail["cancellation_window"]["end"]),
        "deals": [public_record(d) for d in sort_deals_by_savings(deals)],
        "ranked_deals": [
            public_record(d) for d in rank_deals(deals, allow_similar, allow_cross_border)
        ],
        "semi_automated_eligible": semi_automated_eligible(deals),
        "auditEvents": [public_record(e) for e in sort_events_newest_first(events)],
    }


def _fallback_row(purchase_id: str) -> Optional[Dict]:
    return next(
        (r for r in FALLBACK_SAMPLE_DATA["rows"] if r["purchase"]["purchase_id"] == purchase_id),
        None,
    )


def _ranking_preferences(account_id: str, allow_similar, allow_cross_border):
    """Explicit query flags win; otherwise use the account's automation defaults."""
    if allow_similar is not None and allow_cross_border is not None:
        return allow_similar, allow_cross_border
    settings = get_account_settings(account_id) or {}
    defaults = settings.get("automation_defaults") or {}
    if allow_similar is None:
        allow_similar = bool(defaults.get("allow_similar"))
    if allow_cross_border is None:
        allow_cross_border = bool(defaults.get("allow_cross_border"))
    return allow_similar, allow_cross_border


@router.get("/api/purchases")
def list_account_purchases(
    request: Request,
    filter: str = "all",
    sort: Optional[str] = None,
    q: Optional[str] = None,
):
    if filter not in FILTER_STATUS_GROUPS:
        return error_response(f"Unknown filter: {filter}", 400)
    if sort is not None and sort not in SORT_OPTIONS:
        return error_response(f"Unknown sort: {sort}", 400)

    try:
        if not is_configured():
            rows = FALLBACK_SAMPLE_DATA["rows"]
            items = to_list_items(
                [r["purchase"] for r in rows],
                [d for r in rows for d in r["deals"]],
            )
            payload = _list_payload(items, filter, sort, q)
            return {"account_id": DEFAULT_DEMO_ACCOUNT_ID, **payload, "mode": FALLBACK_MODE}

        context = resolve_request_context(request)
        account_id = context["account_id"]
        items = to_list_items(list_purchases(account_id), list_deals_for_account(account_id))
        return {"account_id": account_id, **_list_payload(items, filter, sort, q)}
    except Exception as exc:
        log.exception("Failed to fetch purchases")
        return error_response(str(exc) or "Failed to fetch purchases", 500)


@router.get("/api/purchases/{purchase_id}")
def purchase_details(
    purchase_id: str,
    request: Request,
    allow_similar: Optional[bool] = None,
    allow_cross_border: Optional[bool] = None,
):
    try:
        if not is_configured():
            row = _fallback_row(purchase_id)
            if not row:
                return error_response("Purchase not found", 404)
            payload = _detail_payload(
                DEFAULT_DEMO_ACCOUNT_ID,
                row["purchase"],
                row["items"],
                row["deals"],
                row["audit_events"],
                bool(allow_similar),
                bool(allow_cross_border),
            )
            return {**payload, "mode": FALLBACK_MODE}

        context = resolve_request_context(request)
        account_id = context["account_id"]
        purchase = get_purchase(account_id, purchase_id)
        if not purchase:
            return error_response("Purchase not found", 404)

        similar, cross_border = _ranking_preferences(account_id, allow_similar, allow_cross_border)
        return _detail_payload(
            account_id,
            purchase,
            get_purchase_items(account_id, purchase_id),
            list_deals_for_purchase(account_id, purchase_id),
            get_audit_events(account_id, purchase_id),
            similar,
            cross_border,
        )
    except Exception as exc:
        log.exception("Failed to fetch purchase %s", purchase_id)
        return error_response(str(exc) or "Failed to fetch purchase details", 500)


@router.patch("/api/purchases/{purchase_id}/monitoring")
def update_monitoring(purchase_id: str, request: Request, payload: Optional[dict] = Body(default=None)):
    unavailable = require_database()
    if unavailable:
        return unavailable

    try:
        context = resolve_request_context(request)
        enabled = (payload or {}).get("monitoring_enabled")
        if not isinstance(enabled, bool):
            return error_response("`monitoring_enabled` must be a boolean value.", 400)

        purchase = get_purchase(context["account_id"], purchase_id)
        if not purchase:
            return error_response("Purchase not found", 404)

        updated = set_purchase_monitoring(purchase, enabled, actor_user_id=context["app_user_id"])
        log.info(
            "Monitoring %s for purchase %s (account=%s)",
            "resumed" if enabled else "paused",
            purchase_id,
            context["account_id"],
        )
        return {"ok": True, "status": updated["status"], "monitoring_enabled": enabled}
    except Exception as exc:
        log.exception("Failed to update monitoring for %s", purchase_id)
        return error_response(str(exc) or "Failed to update monitoring state", 500)
