"""
Replacement deal ranking.

Deals are plain dicts as stored in the `deals` table.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

MATCH_TIER_ORDER = {"Exact": 0, "Attribute": 1, "Similar": 2}

# Best-by-savings deal must clear this (and be in stock) for semi-automated swaps.
SEMI_AUTOMATED_MIN_RELIABILITY = 0.85


def tier_rank(deal: Dict) -> int:
    """Exact < Attribute < Similar; unknown tiers sort last."""
    return MATCH_TIER_ORDER.get(deal.get("match_tier"), len(MATCH_TIER_ORDER))


def _delivery_timestamp(deal: Dict) -> float:
    raw = deal.get("delivery_estimate")
    if not raw:
        return float("inf")
    try:
        dt = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return float("inf")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _ranking_key(deal: Dict):
    return (
        tier_rank(deal),
        -float(deal.get("net_savings") or 0),
        _delivery_timestamp(deal),
        -float(deal.get("reliability_score") or 0),
    )


def is_rankable(deal: Dict, allow_similar: bool = False, allow_cross_border: bool = False) -> bool:
    if not deal.get("in_stock_flag"):
        return False
    if not allow_similar and deal.get("match_tier") == "Similar":
        return False
    if not allow_cross_border and deal.get("cross_border"):
        return False
    return True


def rank_deals(
    deals: List[Dict],
    allow_similar: bool = False,
    allow_cross_border: bool = False,
) -> List[Dict]:
    """
    Drop out-of-stock deals (and Similar / cross-border ones unless allowed),
    then order by match tier, net savings (desc), delivery date and
    reliability (desc).
    """
    eligible = [d for d in deals if is_rankable(d, allow_similar, allow_cross_border)]
    return sorted(eligible, key=_ranking_key)


def best_deal_by_savings(deals: List[Dict]) -> Optional[Dict]:
    if not deals:
        return None
    return max(deals, key=lambda d: float(d.get("net_savings") or 0))


def best_deal_summary(deals: List[Dict]) -> Optional[Dict]:
    best = best_deal_by_savings(deals)
    if best is None:
        return None
    return {
        "best_net_savings": best.get("net_savings"),
        "best_savings_pct": best.get("savings_percentage"),
        "best_deal_total_price": best.get("total_price"),
        "best_deal_merchant": best.get("merchant_or_seller"),
        "last_scan_at": best.get("last_checked_at"),
    }


def semi_automated_eligible(deals: List[Dict]) -> bool:
    best = best_deal_by_savings(deals)
    return bool(
        best
        and float(best.get("reliability_score") or 0) >= SEMI_AUTOMATED_MIN_RELIABILITY
        and best.get("in_stock_flag")
    )


__all__ = [
    "MATCH_TIER_ORDER",
    "SEMI_AUTOMATED_MIN_RELIABILITY",
    "tier_rank",
    "is_rankable",
    "rank_deals",
    "best_deal_by_savings",
    "best_deal_summary",
    "semi_automated_eligible",
]
