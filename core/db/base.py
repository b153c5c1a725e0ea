"""
Low-level database helpers (Postgres-only).
"""
from __future__ import annotations

import os
import secrets
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

try:
    import psycopg
    from psycopg.rows import dict_row
    from psycopg.types.json import Jsonb
except Exception as exc:  # pragma: no cover - required dependency
    raise RuntimeError("psycopg is required for Postgres") from exc


# Tables and the columns callers may filter on. Names are interpolated into SQL,
# so anything outside this map is rejected.
QUERYABLE_FIELDS: Dict[str, tuple] = {
    "app_users": ("user_id", "instant_user_id", "email"),
    "accounts": ("account_id",),
    "account_memberships": ("membership_id", "account_id", "app_user_id"),
    "account_profiles": ("profile_id", "account_id"),
    "account_settings": ("settings_id", "account_id"),
    "billing_profiles": ("billing_profile_id", "account_id"),
    "device_sessions": ("session_id", "account_id", "app_user_id"),
    "purchases": ("purchase_id", "account_id"),
    "purchase_items": ("purchase_item_id", "purchase_id", "account_id"),
    "deals": ("deal_id", "purchase_id", "account_id"),
    "audit_events": ("audit_event_id", "purchase_id", "account_id"),
    "swap_executions": ("swap_execution_id", "purchase_id", "account_id"),
}

# Columns stored as JSONB.
JSON_COLUMNS = {
    "attributes",
    "issues",
    "coupon",
    "notifications",
    "automation_defaults",
    "privacy",
    "billing_address",
    "metadata",
}


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def new_id(prefix: str) -> str:
    """Return a random public identifier such as `user_3f9c...`."""
    return f"{prefix}_{secrets.token_hex(8)}"


def database_url() -> Optional[str]:
    return os.getenv("DATABASE_URL") or None


def is_configured() -> bool:
    return database_url() is not None


def _resolve_database_url() -> str:
    url = database_url()
    if not url:
        raise RuntimeError("DATABASE_URL must be set for Postgres usage")
    if url.startswith("postgres://") or url.startswith("postgresql://"):
        return url
    raise RuntimeError("DATABASE_URL must start with postgres:// or postgresql://")


def _convert_qmarks(sql: str) -> str:
    if "?" not in sql:
        return sql
    return sql.replace("?", "%s")


class _CursorWrapper:
    def __init__(self, cursor, dialect: str):
        self._cursor = cursor
        self._dialect = dialect

    def execute(self, sql: str, params: Iterable | None = None):
        if self._dialect == "postgres":
            sql = _convert_qmarks(sql)
        if params is None:
            return self._cursor.execute(sql)
        return self._cursor.execute(sql, params)

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()

    @property
    def rowcount(self):
        return getattr(self._cursor, "rowcount", 0)


class _ConnWrapper:
    def __init__(self, conn, dialect: str):
        self._conn = conn
        self.dialect = dialect

    def cursor(self):
        return _CursorWrapper(self._conn.cursor(), self.dialect)

    def commit(self):
        return self._conn.commit()

    def rollback(self):
        return self._conn.rollback()

    def close(self):
        return self._conn.close()


def get_conn():
    """
    Return a Postgres DB connection (DATABASE_URL required).
    """
    conn = psycopg.connect(_resolve_database_url(), row_factory=dict_row)
    return _ConnWrapper(conn, "postgres")


def _check_field(table: str, field: str) -> None:
    if table in QUERYABLE_FIELDS and field == "id":
        return
    if field not in QUERYABLE_FIELDS.get(table, ()):
        raise ValueError(f"Cannot query {table}.{field}")


def _adapt(column: str, value):
    if column in JSON_COLUMNS and value is not None:
        return Jsonb(value)
    return value


def find_by_field(table: str, field: str, value) -> Optional[Dict]:
    """Return the first row of `table` where `field` equals `value`, or None."""
    rows = list_by_field(table, field, value, limit=1)
    return rows[0] if rows else None


def list_by_field(table: str, field: str, value, limit: Optional[int] = None) -> List[Dict]:
    """Return all rows of `table` where `field` equals `value`, oldest first."""
    _check_field(table, field)
    conn = get_conn()
    cur = conn.cursor()

    sql = f"SELECT * FROM {table} WHERE {field} = ? ORDER BY id"
    if limit is not None:
        sql += " LIMIT ?"
        cur.execute(sql, (value, int(limit)))
    else:
        cur.execute(sql, (value,))

    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def insert_row(cur, table: str, record: Dict) -> None:
    """Insert a record with an open cursor. The caller commits."""
    if table not in QUERYABLE_FIELDS:
        raise ValueError(f"Unknown table {table}")
    columns = list(record.keys())
    placeholders = ", ".join("?" for _ in columns)
    cur.execute(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
        tuple(_adapt(c, record[c]) for c in columns),
    )


def update_row(cur, table: str, key_field: str, key_value, changes: Dict) -> int:
    """Apply `changes` to rows matching `key_field`. Returns the affected row count."""
    _check_field(table, key_field)
    if not changes:
        return 0
    columns = list(changes.keys())
    assignments = ", ".join(f"{c} = ?" for c in columns)
    cur.execute(
        f"UPDATE {table} SET {assignments} WHERE {key_field} = ?",
        tuple(_adapt(c, changes[c]) for c in columns) + (key_value,),
    )
    return cur.rowcount


def transact(operations: Iterable) -> None:
    """
    Run `(table, record)` inserts and `(table, key_field, key_value, changes)`
    updates in a single transaction.
    """
    conn = get_conn()
    cur = conn.cursor()
    try:
        for op in operations:
            if len(op) == 2:
                insert_row(cur, op[0], op[1])
            else:
                update_row(cur, op[0], op[1], op[2], op[3])
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


__all__ = [
    "QUERYABLE_FIELDS",
    "JSON_COLUMNS",
    "now_iso",
    "new_id",
    "database_url",
    "is_configured",
    "get_conn",
    "find_by_field",
    "list_by_field",
    "insert_row",
    "update_row",
    "transact",
]
