"""
Swap execution storage re-exports.
"""
from core.db.swaps.swap_store import (
    get_swap_execution,
    create_swap_execution,
    save_swap_transition,
)

__all__ = [
    "get_swap_execution",
    "create_swap_execution",
    "save_swap_transition",
]
