import logging

from fastapi import APIRouter

from app.errors import error_response, require_database
from core.database import is_configured
from core.seed import DEFAULT_DEMO_ACCOUNT_ID, seed_sample_data

log = logging.getLogger("api")

router = APIRouter()


@router.get("/api/health")
def health():
    return {
        "ok": True,
        "database_configured": is_configured(),
        "default_demo_account_id": DEFAULT_DEMO_ACCOUNT_ID,
    }


@router.post("/api/seed")
def seed():
    unavailable = require_database()
    if unavailable:
        return unavailable

    try:
        return seed_sample_data()
    except Exception as exc:
        log.exception("Failed to seed data")
        return error_response(str(exc) or "Failed to seed data", 500)
