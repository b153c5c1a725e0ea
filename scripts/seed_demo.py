"""
Create the schema and load the demo workspace (idempotent).

Usage:
  python scripts/seed_demo.py            # add any missing demo purchases
  python scripts/seed_demo.py --reset    # wipe the demo account's purchase data first
"""
from __future__ import annotations

import argparse

from dotenv import load_dotenv

from core.db.base import get_conn, is_configured
from core.db.schema import init_db
from core.seed import DEFAULT_DEMO_ACCOUNT_ID, seed_sample_data

_DEMO_TABLES = ["swap_executions", "audit_events", "deals", "purchase_items", "purchases"]


def reset_demo_purchases() -> None:
    conn = get_conn()
    cur = conn.cursor()
    for table in _DEMO_TABLES:
        cur.execute(f"DELETE FROM {table} WHERE account_id = ?", (DEFAULT_DEMO_ACCOUNT_ID,))
    conn.commit()
    conn.close()
    print(f"[seed] cleared demo purchase data for {DEFAULT_DEMO_ACCOUNT_ID}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="delete demo purchases before seeding")
    args = parser.parse_args()

    load_dotenv(override=True)
    if not is_configured():
        raise SystemExit("DATABASE_URL must be set for Postgres usage")

    init_db()
    if args.reset:
        reset_demo_purchases()
    result = seed_sample_data()
    print(f"[seed] added={result['added']} total={result['count']}")


if __name__ == "__main__":
    main()
