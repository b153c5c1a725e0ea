"""
Time-remaining and money helpers shared by the list and detail payloads.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

URGENT_WINDOW_SECONDS = 24 * 3600

CURRENCY_SYMBOLS = {"USD": "$", "CAD": "CA$", "AUD": "A$", "GBP": "£", "EUR": "€"}


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (a trailing `Z` is accepted); naive values are UTC."""
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _hours_minutes(seconds: float) -> str:
    seconds = abs(seconds)
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return f"{hours}h {minutes}m"


def calculate_time_remaining(end_iso: str, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.now(timezone.utc)
    diff = (parse_iso(end_iso) - now).total_seconds()
    return {"expired": diff <= 0, "label": _hours_minutes(diff)}


def format_time_remaining_from_seconds(seconds: Optional[float]) -> Dict:
    if seconds is None:
        return {"expired": False, "label": "Window unknown"}
    return {"expired": seconds <= 0, "label": _hours_minutes(seconds), "estimated": False}


def format_time_remaining_friendly(seconds: Optional[float]) -> Optional[str]:
    if seconds is None or seconds <= 0:
        return None
    hours = int(seconds // 3600)
    days = hours // 24
    if days > 0:
        return f"{days} day{'' if days == 1 else 's'} left to return"
    return f"Only {hours} hour{'' if hours == 1 else 's'} left!"


def is_urgent(seconds: Optional[float]) -> bool:
    if seconds is None or seconds <= 0:
        return False
    return seconds < URGENT_WINDOW_SECONDS


def format_currency(amount: float, currency: str = "USD") -> str:
    """`$1,234.50` for known symbols, `SEK 12.00` otherwise."""
    code = (currency or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    sign = "-" if amount < 0 else ""
    if symbol:
        return f"{sign}{symbol}{abs(amount):,.2f}"
    return f"{code} {amount:.2f}"


__all__ = [
    "URGENT_WINDOW_SECONDS",
    "parse_iso",
    "calculate_time_remaining",
    "format_time_remaining_from_seconds",
    "format_time_remaining_friendly",
    "is_urgent",
    "format_currency",
]
