"""
Candidate replacement deal storage helpers.
"""
from __future__ import annotations

from typing import Dict, List

from core.db.base import get_conn


def list_deals_for_account(account_id: str) -> List[Dict]:
    """All deals for an account, in insertion order."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT * FROM deals WHERE account_id = ? ORDER BY id", (account_id,))
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def list_deals_for_purchase(account_id: str, purchase_id: str) -> List[Dict]:
    """Deals for one purchase, biggest net savings first."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT * FROM deals
        WHERE account_id = ? AND purchase_id = ?
        ORDER BY net_savings DESC NULLS LAST, id
        """,
        (account_id, purchase_id),
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


__all__ = [
    "list_deals_for_account",
    "list_deals_for_purchase",
]
