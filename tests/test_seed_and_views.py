from collections import Counter
from datetime import datetime, timezone

from core.purchases.listing import STATUSES
from core.purchases.views import to_detail_purchase, to_list_item, to_list_items
from core.seed import (
    DEFAULT_DEMO_ACCOUNT_ID,
    STATUSES_WITH_DEALS,
    build_items,
    make_sample_seed_data,
    purchase_item_id,
    seed_operations,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_two_demo_purchases_per_status():
    data = make_sample_seed_data(NOW)
    counts = Counter(r["purchase"]["status"] for r in data["rows"])
    assert set(counts) == set(STATUSES)
    assert all(c == 2 for c in counts.values())


def test_deals_only_for_deal_bearing_statuses():
    data = make_sample_seed_data(NOW)
    for row in data["rows"]:
        has_deals = bool(row["deals"])
        assert has_deals == (row["purchase"]["status"] in STATUSES_WITH_DEALS)
    deal_ids = [d["deal_id"] for r in data["rows"] for d in r["deals"]]
    assert deal_ids == [f"deal-{i}" for i in range(1, len(deal_ids) + 1)]


def test_demo_purchase_fields():
    data = make_sample_seed_data(NOW)
    first = data["rows"][0]
    purchase = first["purchase"]
    assert purchase["account_id"] == DEFAULT_DEMO_ACCOUNT_ID
    assert purchase["order_id"] == "ORDER-00001"
    assert purchase["cancellation_window_remaining"] == 10 * 3600
    assert purchase["cancellation_window_end"] == "2025-01-01T22:00:00+00:00"
    assert first["deals"][0]["match_tier"] == "Exact"
    assert first["deals"][0]["net_savings"] == 30.0

    review = next(r for r in data["rows"] if r["purchase"]["status"] == "needs_review")
    assert review["purchase"]["order_id"] is None
    assert review["audit_events"][-1]["type"] == "failure"

    paused = next(r for r in data["rows"] if r["purchase"]["status"] == "paused")
    assert paused["purchase"]["monitoring_enabled"] is False


def test_bundle_item_prices_add_up():
    items = build_items({"title": "Keyboard", "total_paid": 549.99, "item_count": 3})
    assert [i["title"] for i in items] == ["Keyboard Item 1", "Keyboard Item 2", "Keyboard Item 3"]
    assert round(sum(i["price"] for i in items), 2) == 549.99


def test_purchase_item_id_is_slugged():
    assert purchase_item_id("purchase-2", "Keyboard  Item 1") == "purchase-2_keyboard_item_1"


def test_seed_operations_skip_existing_purchases():
    data = make_sample_seed_data(NOW)
    fresh = seed_operations(data, set())
    tables = Counter(op[0] for op in fresh)
    assert tables["accounts"] == 1
    assert tables["purchases"] == 16

    existing = {r["purchase"]["purchase_id"] for r in data["rows"][:-1]}
    partial = seed_operations(data, existing)
    assert Counter(op[0] for op in partial)["purchases"] == 1
    assert all(op[0] != "accounts" for op in partial)

    everything = {r["purchase"]["purchase_id"] for r in data["rows"]}
    assert seed_operations(data, everything) == []


def test_list_items_are_newest_first_with_best_deal():
    data = make_sample_seed_data(NOW)
    purchases = [r["purchase"] for r in data["rows"]]
    deals = [d for r in data["rows"] for d in r["deals"]]
    items = to_list_items(purchases, deals)
    assert items[0]["purchase_id"] == "purchase-10"
    times = [i["purchase_time"] for i in items]
    assert times == sorted(times, reverse=True)

    first = next(i for i in items if i["purchase_id"] == "purchase-1")
    assert first["best_deal_summary"]["best_net_savings"] == 30.0
    monitoring = next(i for i in items if i["purchase_id"] == "purchase-3")
    assert monitoring["best_deal_summary"] is None


def test_list_item_defaults_currency():
    item = to_list_item({"purchase_id": "p", "merchant": "M"}, [])
    assert item["currency"] == "USD"
    assert item["best_deal_summary"] is None


def test_detail_defaults():
    detail = to_detail_purchase(
        {"purchase_id": "p", "merchant": "M", "cancellation_window_end": "2025-01-02T00:00:00+00:00"},
        [{"title": "Lamp", "quantity": 1, "price": 20.0, "attributes": None}],
    )
    assert detail["country"] == "US"
    assert detail["extraction_confidence_score"] == 1
    assert detail["monitoring_enabled"] is True
    assert detail["cancellation_window"] == {"end": "2025-01-02T00:00:00+00:00", "inferred": False}
    assert detail["items"][0]["attributes"] == {}

    paused = to_detail_purchase({"monitoring_enabled": False, "extraction_confidence_score": 0.4}, [])
    assert paused["monitoring_enabled"] is False
    assert paused["extraction_confidence_score"] == 0.4
