"""
Quick helper to run a query against Postgres (DATABASE_URL required).

Usage:
  DATABASE_URL=... python scripts/db_shell.py                                   # list tables
  DATABASE_URL=... python scripts/db_shell.py "SELECT purchase_id, status FROM purchases"
"""
from __future__ import annotations

import sys

from dotenv import load_dotenv

from core.db.base import get_conn, is_configured


def main() -> None:
    load_dotenv(override=True)
    if not is_configured():
        raise SystemExit("DATABASE_URL must be set for Postgres usage")

    query = " ".join(sys.argv[1:]).strip()
    if not query:
        query = (
            "SELECT tablename AS name "
            "FROM pg_tables WHERE schemaname='public' "
            "ORDER BY tablename"
        )

    print("Using DB: postgres (DATABASE_URL)", file=sys.stderr)

    try:
        conn = get_conn()
        cur = conn.cursor()
        cur.execute(query)
        if query.lstrip().lower().startswith(("select", "with")):
            for row in cur.fetchall():
                print(dict(row))
        else:
            conn.commit()
            print(f"OK ({cur.rowcount} row(s) affected)")
        conn.close()
    except Exception as exc:
        raise SystemExit(f"Error running query: {exc}") from exc


if __name__ == "__main__":
    main()
