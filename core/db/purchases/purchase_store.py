"""
Purchase, purchase item and audit event storage helpers.

Every lookup is scoped to an account: a purchase id alone never identifies a row.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from core.db.base import get_conn, insert_row, new_id, now_iso, update_row


def _rows_for_purchase(table: str, account_id: str, purchase_id: str) -> List[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"SELECT * FROM {table} WHERE account_id = ? AND purchase_id = ? ORDER BY id",
        (account_id, purchase_id),
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def list_purchases(account_id: str) -> List[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT * FROM purchases WHERE account_id = ? ORDER BY id", (account_id,))
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_purchase_ids(account_id: str) -> set:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT purchase_id FROM purchases WHERE account_id = ?", (account_id,))
    rows = cur.fetchall()
    conn.close()
    return {r["purchase_id"] for r in rows}


def get_purchase(account_id: str, purchase_id: str) -> Optional[Dict]:
    rows = _rows_for_purchase("purchases", account_id, purchase_id)
    return rows[0] if rows else None


def get_purchase_items(account_id: str, purchase_id: str) -> List[Dict]:
    return _rows_for_purchase("purchase_items", account_id, purchase_id)


def get_audit_events(account_id: str, purchase_id: str) -> List[Dict]:
    """Audit events for a purchase, newest first."""
    events = _rows_for_purchase("audit_events", account_id, purchase_id)
    return sorted(events, key=lambda e: e.get("timestamp") or "", reverse=True)


def build_audit_event(
    account_id: str,
    purchase_id: str,
    event_type: str,
    label: str,
    detail: str | None = None,
    *,
    actor_user_id: str | None = None,
    metadata: Dict | None = None,
    timestamp: str | None = None,
) -> Dict:
    now = now_iso()
    return {
        "audit_event_id": new_id("ev"),
        "account_id": account_id,
        "purchase_id": purchase_id,
        "type": event_type,
        "timestamp": timestamp or now,
        "label": label,
        "detail": detail,
        "actor_user_id": actor_user_id,
        "metadata": metadata,
        "created_at": now,
    }


def update_purchase(purchase: Dict, changes: Dict, events: Iterable[Dict] = ()) -> Dict:
    """
    Apply `changes` to a stored purchase row and append audit events, atomically.
    """
    changes = {**changes, "updated_at": now_iso()}
    conn = get_conn()
    cur = conn.cursor()
    try:
        update_row(cur, "purchases", "id", purchase["id"], changes)
        for event in events:
            insert_row(cur, "audit_events", event)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return {**purchase, **changes}


def set_purchase_monitoring(purchase: Dict, enabled: bool, actor_user_id: str | None = None) -> Dict:
    """
    Turn monitoring on or off. Pausing moves the purchase to `paused`; resuming
    keeps the current status.
    """
    changes = {
        "monitoring_enabled": enabled,
        "status": purchase.get("status") if enabled else "paused",
    }
    event = build_audit_event(
        purchase["account_id"],
        purchase["purchase_id"],
        "monitoring_resumed" if enabled else "monitoring_paused",
        "Monitoring resumed" if enabled else "Monitoring paused",
        actor_user_id=actor_user_id,
    )
    return update_purchase(purchase, changes, [event])


__all__ = [
    "list_purchases",
    "get_purchase_ids",
    "get_purchase",
    "get_purchase_items",
    "get_audit_events",
    "build_audit_event",
    "update_purchase",
    "set_purchase_monitoring",
]
