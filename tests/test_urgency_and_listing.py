import pytest

from core.purchases.listing import (
    STATUS_LABELS,
    STATUSES,
    calculate_urgency_score,
    count_by_filter,
    filter_purchases,
    get_summary_message,
    get_total_savings,
    search_purchases,
    should_mark_as_window_closing,
    sort_purchases,
)


def _purchase(pid, status="monitoring", remaining=None, issues=None, savings=None,
              merchant="Shop", title="Thing", order_id=None, purchase_time="2025-01-01T00:00:00+00:00"):
    return {
        "purchase_id": pid,
        "status": status,
        "cancellation_window_remaining": remaining,
        "issues": issues,
        "best_deal_summary": {"best_net_savings": savings} if savings is not None else None,
        "merchant": merchant,
        "primary_item_title": title,
        "order_id": order_id,
        "purchase_time": purchase_time,
    }


def test_window_closing_with_two_hours_beats_monitoring_without_time():
    closing = _purchase("a", status="window_closing", remaining=2 * 3600)
    idle = _purchase("b", status="monitoring")
    assert calculate_urgency_score(closing) > calculate_urgency_score(idle)
    assert calculate_urgency_score(closing) == 1000 + 500 - 20
    assert calculate_urgency_score(idle) == 0


def test_time_bonus_only_inside_last_day():
    assert calculate_urgency_score(_purchase("a", remaining=30 * 3600)) == 0
    assert calculate_urgency_score(_purchase("b", remaining=0)) == 0
    assert calculate_urgency_score(_purchase("c", remaining=-3600)) == 0
    assert calculate_urgency_score(_purchase("d", remaining=12 * 3600)) == 500 - 120


def test_issues_add_points():
    p = _purchase("a", status="needs_review", issues=["low_confidence", "missing_order_id"])
    assert calculate_urgency_score(p) == 800 + 100


def test_urgency_sort_is_non_increasing():
    purchases = [
        _purchase("1", status="monitoring", remaining=40 * 3600),
        _purchase("2", status="deal_found", remaining=10 * 3600),
        _purchase("3", status="window_closing", remaining=3600),
        _purchase("4", status="needs_review", issues=["captcha_blocked"]),
        _purchase("5", status="paused", remaining=5 * 3600),
        _purchase("6", status="expired"),
    ]
    ranked = sort_purchases(purchases, "urgency")
    scores = [calculate_urgency_score(p) for p in ranked]
    assert scores == sorted(scores, reverse=True)
    assert ranked[0]["purchase_id"] == "3"


def test_urgency_sort_keeps_ties_in_input_order():
    purchases = [_purchase("x"), _purchase("y"), _purchase("z")]
    assert [p["purchase_id"] for p in sort_purchases(purchases, "urgency")] == ["x", "y", "z"]


def test_other_sort_options():
    purchases = [
        _purchase("a", merchant="walmart", savings=5, purchase_time="2025-01-02T00:00:00+00:00"),
        _purchase("b", merchant="Amazon", savings=None, purchase_time="2025-01-03T00:00:00+00:00"),
        _purchase("c", merchant="BestBuy", savings=40, purchase_time="2025-01-01T00:00:00+00:00"),
    ]
    assert [p["purchase_id"] for p in sort_purchases(purchases, "biggest_savings")] == ["c", "a", "b"]
    assert [p["purchase_id"] for p in sort_purchases(purchases, "most_recent")] == ["b", "a", "c"]
    assert [p["purchase_id"] for p in sort_purchases(purchases, "merchant_name")] == ["b", "c", "a"]
    assert [p["purchase_id"] for p in sort_purchases(purchases, "bogus")] == ["a", "b", "c"]


def test_filters_and_counts():
    purchases = [_purchase(str(i), status=s) for i, s in enumerate(STATUSES)]
    assert count_by_filter(purchases, "all") == len(STATUSES)
    assert {p["status"] for p in filter_purchases(purchases, "savings_available")} == {"deal_found", "window_closing"}
    assert {p["status"] for p in filter_purchases(purchases, "searching")} == {"monitoring", "swap_in_progress"}
    assert count_by_filter(purchases, "return_soon") == 4


def test_search_matches_merchant_title_and_order_id():
    purchases = [
        _purchase("a", merchant="Walmart", title="Headphones"),
        _purchase("b", merchant="Wayfair", title="Office Chair", order_id="ORDER-00009"),
    ]
    assert [p["purchase_id"] for p in search_purchases(purchases, "  WAL ")] == ["a"]
    assert [p["purchase_id"] for p in search_purchases(purchases, "chair")] == ["b"]
    assert [p["purchase_id"] for p in search_purchases(purchases, "order-0000")] == ["b"]
    assert len(search_purchases(purchases, "   ")) == 2
    assert search_purchases(purchases, "nothing") == []


def test_total_savings_counts_only_actionable_purchases():
    purchases = [
        _purchase("a", status="deal_found", savings=29.99),
        _purchase("b", status="window_closing", savings=10.01),
        _purchase("c", status="swap_completed", savings=100),
        _purchase("d", status="deal_found"),
    ]
    assert get_total_savings(purchases) == {"total_amount": 40.0, "count": 2}


@pytest.mark.parametrize(
    "statuses,expected",
    [
        (["deal_found"], "1 purchase has savings ready"),
        (["deal_found", "window_closing"], "2 purchases have savings ready"),
        (["monitoring"], "1 purchase is being tracked"),
        (["monitoring", "swap_in_progress", "expired"], "2 purchases are being tracked"),
        (["expired", "paused"], "All caught up"),
        ([], "All caught up"),
    ],
)
def test_summary_message(statuses, expected):
    purchases = [
        _purchase(str(i), status=s, savings=5 if s in ("deal_found", "window_closing") else None)
        for i, s in enumerate(statuses)
    ]
    assert get_summary_message(purchases) == expected


def test_should_mark_as_window_closing():
    assert should_mark_as_window_closing(_purchase("a", remaining=5 * 3600))
    assert not should_mark_as_window_closing(_purchase("b", remaining=30 * 3600))
    assert not should_mark_as_window_closing(_purchase("c"))
    assert not should_mark_as_window_closing(_purchase("d", status="expired", remaining=3600))
    assert not should_mark_as_window_closing(_purchase("e", status="swap_completed", remaining=3600))


def test_every_status_has_a_label():
    assert set(STATUS_LABELS) == set(STATUSES)
    assert STATUS_LABELS["swap_completed"] == "Completed"
