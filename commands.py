# Quick reference commands (run from repo root). These are comments only; copy/paste as needed.

# Install the package with test dependencies (includes httpx for TestClient)
# python -m pip install -e ".[test]"

# Run the full test suite (DB-backed tests under tests/db/ skip without DATABASE_URL)
# python -m pytest

# Run focused test files
# python -m pytest tests/test_deal_ranking.py
# python -m pytest tests/test_urgency_and_listing.py
# python -m pytest tests/test_swap_flow.py
# python -m pytest tests/test_api_fallback.py tests/test_api_routes.py

# Start the API locally (with env vars loaded); serves demo data when DATABASE_URL is unset
# python -m dotenv run -- python -m uvicorn app.api:app --reload --port 8787
# python main.py

# Create the schema and seed the demo workspace
# python scripts/seed_demo.py
# python scripts/seed_demo.py --reset

# Inspect the database (example queries)
# python scripts/db_shell.py "SELECT purchase_id, status, monitoring_enabled FROM purchases ORDER BY id"
# python scripts/db_shell.py "SELECT swap_execution_id, status, mode FROM swap_executions ORDER BY id DESC LIMIT 5"

# Call the API with a caller identity
# curl -H "x-user-email: demo@aftersave.app" "http://localhost:8787/api/purchases?sort=urgency"
