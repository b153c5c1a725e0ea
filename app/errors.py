"""
JSON error responses shared by the routes.
"""
from __future__ import annotations

from fastapi.responses import JSONResponse

from core.database import is_configured

DB_NOT_CONFIGURED = "Database not configured. Set DATABASE_URL in your .env file."


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def require_database() -> JSONResponse | None:
    """Return a 500 response when no database is configured, else None."""
    if not is_configured():
        return error_response(DB_NOT_CONFIGURED, 500)
    return None


__all__ = ["DB_NOT_CONFIGURED", "error_response", "require_database"]
