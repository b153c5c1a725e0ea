"""
App user storage helpers.
"""
from core.db.users.user_store import (
    normalize_email,
    get_app_user_by_instant_id,
    get_app_user_by_email,
    create_app_user,
    touch_app_user,
)

__all__ = [
    "normalize_email",
    "get_app_user_by_instant_id",
    "get_app_user_by_email",
    "create_app_user",
    "touch_app_user",
]
