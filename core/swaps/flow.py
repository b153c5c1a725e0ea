"""
Swap flow rules.

A swap replaces a purchase with a cheaper deal. The user picks two independent
options before anything irreversible happens:

- sequence: buy the replacement first and then cancel the original
  (`buy_second_cancel_first`, the default), or cancel first
  (`cancel_first_buy_second`);
- mode: `manual` (guided) or `semi_automated`, which is only offered when the
  best deal by savings is reliable and in stock.

Nothing here talks to the database; `plan_swap` validates a request and
`transition` moves an execution record through its status machine.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.deals.ranking import semi_automated_eligible
from core.purchases.formatting import parse_iso

BUY_SECOND_CANCEL_FIRST = "buy_second_cancel_first"
CANCEL_FIRST_BUY_SECOND = "cancel_first_buy_second"
SEQUENCES = (BUY_SECOND_CANCEL_FIRST, CANCEL_FIRST_BUY_SECOND)

MANUAL = "manual"
SEMI_AUTOMATED = "semi_automated"
MODES = (MANUAL, SEMI_AUTOMATED)

MIN_EXTRACTION_CONFIDENCE = 0.8

SEQUENCE_WARNINGS = {
    CANCEL_FIRST_BUY_SECOND: (
        "Cancelling first means you may lose this item if stock runs out "
        "before the second purchase completes."
    ),
    BUY_SECOND_CANCEL_FIRST: (
        "We'll secure the second order first, then guide you to cancel this one."
    ),
}

SEQUENCE_STEPS = {
    BUY_SECOND_CANCEL_FIRST: ["place_replacement_order", "cancel_original_order"],
    CANCEL_FIRST_BUY_SECOND: ["cancel_original_order", "place_replacement_order"],
}

AUTOMATION_BLOCKED_REASON = (
    "Semi-automated mode is not available for this merchant. "
    "Falling back to manual guided mode."
)

# Purchase statuses that never start a swap.
SWAP_BLOCKED_STATUSES = {
    "swap_in_progress": "A swap is already in progress for this purchase.",
    "swap_completed": "This purchase has already been swapped.",
    "expired": "The cancellation window for this purchase has closed.",
    "paused": "Resume monitoring before starting a swap.",
}

SWAP_TRANSITIONS = {
    "draft": ("awaiting_confirmation", "cancelled"),
    "awaiting_confirmation": ("executing", "cancelled"),
    "executing": ("completed", "failed", "cancelled"),
    "completed": (),
    "failed": (),
    "cancelled": (),
}
TERMINAL_STATUSES = ("completed", "failed", "cancelled")


class SwapRejected(Exception):
    """The swap request cannot be started; `reason` is safe to show the user."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidSwapTransition(Exception):
    pass


def sequence_warning(sequence: str) -> str:
    return SEQUENCE_WARNINGS[sequence]


def sequence_steps(sequence: str) -> List[str]:
    return list(SEQUENCE_STEPS[sequence])


def window_expired(purchase: Dict, now: Optional[datetime] = None) -> bool:
    end = purchase.get("cancellation_window_end")
    if not end:
        remaining = purchase.get("cancellation_window_remaining")
        return remaining is not None and remaining <= 0
    now = now or datetime.now(timezone.utc)
    return parse_iso(end) <= now


def plan_swap(
    purchase: Dict,
    deals: List[Dict],
    selected_deal_id: str | None,
    *,
    sequence: str = BUY_SECOND_CANCEL_FIRST,
    mode: str = MANUAL,
    acknowledged: bool = False,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Validate a swap request against a purchase and its deals.

    Raises SwapRejected when the swap must not start. A semi-automated request
    that isn't eligible is downgraded to manual and the plan carries
    `automation_blocked_reason`.
    """
    if sequence not in SEQUENCES:
        raise SwapRejected(f"Unknown execution sequence: {sequence!r}.")
    if mode not in MODES:
        raise SwapRejected(f"Unknown execution mode: {mode!r}.")
    blocked = SWAP_BLOCKED_STATUSES.get(purchase.get("status"))
    if blocked:
        raise SwapRejected(blocked)
    if window_expired(purchase, now):
        raise SwapRejected("The cancellation window for this purchase has closed.")

    confidence = purchase.get("extraction_confidence_score")
    if confidence is not None and confidence < MIN_EXTRACTION_CONFIDENCE:
        raise SwapRejected("Purchase details need review before a swap can start.")

    if not selected_deal_id:
        raise SwapRejected("Select a deal to swap to.")
    deal = next((d for d in deals if d.get("deal_id") == selected_deal_id), None)
    if deal is None:
        raise SwapRejected("Selected deal is not available for this purchase.")
    if not deal.get("in_stock_flag"):
        raise SwapRejected("Selected deal is out of stock.")

    if not acknowledged:
        raise SwapRejected("Confirm that you reviewed the swap before starting it.")

    blocked_reason = None
    effective_mode = mode
    if mode == SEMI_AUTOMATED and not semi_automated_eligible(deals):
        effective_mode = MANUAL
        blocked_reason = AUTOMATION_BLOCKED_REASON

    return {
        "purchase_id": purchase.get("purchase_id"),
        "deal": deal,
        "sequence": sequence,
        "requested_mode": mode,
        "mode": effective_mode,
        "steps": sequence_steps(sequence),
        "warning": sequence_warning(sequence),
        "automation_blocked_reason": blocked_reason,
    }


def transition(
    execution: Dict,
    new_status: str,
    *,
    now: Optional[str] = None,
    reason: str | None = None,
) -> Dict:
    """Return a copy of `execution` moved to `new_status`."""
    current = execution.get("status")
    if new_status not in SWAP_TRANSITIONS.get(current, ()):
        raise InvalidSwapTransition(f"Cannot move swap from {current} to {new_status}.")

    now = now or datetime.now(timezone.utc).isoformat(timespec="seconds")
    updated = {**execution, "status": new_status, "updated_at": now}
    if new_status == "executing":
        updated["confirmed_at"] = now
    if new_status in TERMINAL_STATUSES:
        updated["completed_at"] = now
    if new_status == "failed":
        updated["failure_reason"] = reason or "Swap failed"
    return updated


def new_execution(
    plan: Dict,
    *,
    swap_execution_id: str,
    account_id: str,
    actor_user_id: str | None = None,
    now: Optional[str] = None,
) -> Dict:
    """Build an execution from an acknowledged plan, already moved to `executing`."""
    now = now or datetime.now(timezone.utc).isoformat(timespec="seconds")
    draft = {
        "swap_execution_id": swap_execution_id,
        "account_id": account_id,
        "purchase_id": plan["purchase_id"],
        "selected_deal_id": plan["deal"]["deal_id"],
        "mode": plan["mode"],
        "sequence_policy": plan["sequence"],
        "status": "draft",
        "automation_blocked_reason": plan.get("automation_blocked_reason"),
        "confirmed_at": None,
        "completed_at": None,
        "failure_reason": None,
        "actor_user_id": actor_user_id,
        "created_at": now,
        "updated_at": now,
    }
    awaiting = transition(draft, "awaiting_confirmation", now=now)
    return transition(awaiting, "executing", now=now)


__all__ = [
    "BUY_SECOND_CANCEL_FIRST",
    "CANCEL_FIRST_BUY_SECOND",
    "SEQUENCES",
    "MANUAL",
    "SEMI_AUTOMATED",
    "MODES",
    "MIN_EXTRACTION_CONFIDENCE",
    "SWAP_BLOCKED_STATUSES",
    "SWAP_TRANSITIONS",
    "TERMINAL_STATUSES",
    "SwapRejected",
    "InvalidSwapTransition",
    "sequence_warning",
    "sequence_steps",
    "window_expired",
    "plan_swap",
    "transition",
    "new_execution",
]
