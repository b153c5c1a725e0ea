import pytest

from core.deals.ranking import (
    best_deal_by_savings,
    best_deal_summary,
    rank_deals,
    semi_automated_eligible,
    tier_rank,
)


def _deal(deal_id, tier="Exact", savings=10.0, delivery="2025-01-05T00:00:00+00:00",
          reliability=0.9, in_stock=True, cross_border=False, **extra):
    deal = {
        "deal_id": deal_id,
        "match_tier": tier,
        "net_savings": savings,
        "delivery_estimate": delivery,
        "reliability_score": reliability,
        "in_stock_flag": in_stock,
        "cross_border": cross_border,
        "savings_percentage": 10,
        "total_price": 90.0,
        "merchant_or_seller": f"Seller {deal_id}",
        "last_checked_at": "2025-01-01T00:00:00+00:00",
    }
    deal.update(extra)
    return deal


def test_empty_input_returns_empty_list():
    assert rank_deals([]) == []


def test_out_of_stock_deals_are_dropped():
    deals = [_deal("a", in_stock=False), _deal("b")]
    assert [d["deal_id"] for d in rank_deals(deals, True, True)] == ["b"]


def test_similar_tier_dropped_unless_allowed():
    deals = [_deal("exact"), _deal("similar", tier="Similar", savings=99)]
    assert [d["deal_id"] for d in rank_deals(deals)] == ["exact"]
    assert [d["deal_id"] for d in rank_deals(deals, allow_similar=True)] == ["exact", "similar"]


def test_cross_border_dropped_unless_allowed():
    deals = [_deal("local"), _deal("abroad", cross_border=True, savings=50)]
    assert [d["deal_id"] for d in rank_deals(deals)] == ["local"]
    assert [d["deal_id"] for d in rank_deals(deals, allow_cross_border=True)] == ["abroad", "local"]


def test_tier_beats_savings():
    deals = [
        _deal("attr", tier="Attribute", savings=100),
        _deal("exact", tier="Exact", savings=1),
        _deal("similar", tier="Similar", savings=500),
    ]
    ranked = rank_deals(deals, allow_similar=True)
    assert [d["deal_id"] for d in ranked] == ["exact", "attr", "similar"]


def test_tie_breaks_savings_then_delivery_then_reliability():
    deals = [
        _deal("slow", savings=20, delivery="2025-01-09T00:00:00+00:00"),
        _deal("cheap", savings=30),
        _deal("fast_low_rel", savings=20, delivery="2025-01-03T00:00:00+00:00", reliability=0.5),
        _deal("fast_high_rel", savings=20, delivery="2025-01-03T00:00:00+00:00", reliability=0.95),
    ]
    ranked = rank_deals(deals)
    assert [d["deal_id"] for d in ranked] == ["cheap", "fast_high_rel", "fast_low_rel", "slow"]


def test_ranking_does_not_mutate_input():
    deals = [_deal("b", savings=1), _deal("a", savings=2)]
    rank_deals(deals)
    assert [d["deal_id"] for d in deals] == ["b", "a"]


@pytest.mark.parametrize("allow_similar,allow_cross_border", [(False, False), (True, False), (False, True), (True, True)])
def test_ranked_order_properties(allow_similar, allow_cross_border):
    tiers = ["Exact", "Attribute", "Similar"]
    deals = [
        _deal(
            f"d{i}",
            tier=tiers[i % 3],
            savings=(i * 7) % 11,
            in_stock=i % 5 != 0,
            cross_border=i % 4 == 0,
        )
        for i in range(30)
    ]
    ranked = rank_deals(deals, allow_similar, allow_cross_border)

    for deal in ranked:
        assert deal["in_stock_flag"]
        if not allow_similar:
            assert deal["match_tier"] != "Similar"
        if not allow_cross_border:
            assert not deal["cross_border"]

    for a, b in zip(ranked, ranked[1:]):
        assert tier_rank(a) <= tier_rank(b)
        if tier_rank(a) == tier_rank(b):
            assert a["net_savings"] >= b["net_savings"]


def test_unknown_tier_sorts_last():
    deals = [_deal("mystery", tier="Bundle", savings=100), _deal("exact", savings=1)]
    assert [d["deal_id"] for d in rank_deals(deals)] == ["exact", "mystery"]


def test_best_deal_summary_uses_highest_savings():
    deals = [_deal("a", savings=5), _deal("b", savings=25, total_price=70.0)]
    summary = best_deal_summary(deals)
    assert summary["best_net_savings"] == 25
    assert summary["best_deal_total_price"] == 70.0
    assert summary["best_deal_merchant"] == "Seller b"
    assert best_deal_summary([]) is None
    assert best_deal_by_savings([]) is None


def test_semi_automated_eligibility_follows_best_deal():
    reliable = _deal("a", savings=30, reliability=0.9)
    shaky = _deal("b", savings=40, reliability=0.6)
    assert semi_automated_eligible([reliable])
    # The best-by-savings deal decides, even if another one is reliable.
    assert not semi_automated_eligible([reliable, shaky])
    assert not semi_automated_eligible([_deal("c", reliability=0.99, in_stock=False)])
    assert not semi_automated_eligible([])
    assert semi_automated_eligible([_deal("d", reliability=0.85)])
