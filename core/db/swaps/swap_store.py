"""
Swap execution records.
"""
from __future__ import annotations

from typing import Dict, Iterable, Optional

from core.db.base import find_by_field, get_conn, insert_row, update_row


def get_swap_execution(swap_execution_id: str) -> Optional[Dict]:
    return find_by_field("swap_executions", "swap_execution_id", swap_execution_id)


def create_swap_execution(execution: Dict, purchase: Dict, events: Iterable[Dict] = ()) -> Dict:
    """
    Store a confirmed swap execution, move the purchase to `swap_in_progress`
    and record the audit trail in one transaction.
    """
    conn = get_conn()
    cur = conn.cursor()
    try:
        insert_row(cur, "swap_executions", execution)
        update_row(
            cur,
            "purchases",
            "id",
            purchase["id"],
            {"status": "swap_in_progress", "updated_at": execution["updated_at"]},
        )
        for event in events:
            insert_row(cur, "audit_events", event)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return execution


def save_swap_transition(
    execution: Dict,
    previous_status: str,
    purchase_status: str | None = None,
    events: Iterable[Dict] = (),
) -> Optional[Dict]:
    """
    Persist an execution after a status transition, optionally updating the
    owning purchase's status.

    The write only applies while the stored status is still `previous_status`;
    returns None (and changes nothing) when another writer got there first.
    """
    changes = {
        key: execution.get(key)
        for key in ("status", "completed_at", "failure_reason", "updated_at")
    }
    columns = list(changes.keys())
    assignments = ", ".join(f"{c} = ?" for c in columns)
    conn = get_conn()
    cur = conn.cursor()
    try:
        cur.execute(
            f"UPDATE swap_executions SET {assignments} WHERE swap_execution_id = ? AND status = ?",
            tuple(changes[c] for c in columns) + (execution["swap_execution_id"], previous_status),
        )
        if cur.rowcount == 0:
            conn.rollback()
            return None
        if purchase_status:
            cur.execute(
                "UPDATE purchases SET status = ?, updated_at = ? WHERE account_id = ? AND purchase_id = ?",
                (purchase_status, execution.get("updated_at"), execution["account_id"], execution["purchase_id"]),
            )
        for event in events:
            insert_row(cur, "audit_events", event)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return execution


__all__ = [
    "get_swap_execution",
    "create_swap_execution",
    "save_swap_transition",
]
