"""
Simulated swap completion.

There is no merchant integration yet: an executing swap is marked completed
after a fixed delay.
"""
from __future__ import annotations

import logging
import os
import time

from core.db.purchases import build_audit_event
from core.db.swaps import get_swap_execution, save_swap_transition
from core.swaps.flow import InvalidSwapTransition, transition

log = logging.getLogger("swaps")


def simulated_delay_seconds() -> float:
    try:
        return float(os.getenv("SWAP_SIMULATED_DELAY_SECONDS", "1.5"))
    except ValueError:
        return 1.5


def complete_simulated_swap(swap_execution_id: str, delay: float | None = None) -> dict | None:
    """
    Wait, then move an executing swap to `completed` and its purchase to
    `swap_completed`. A swap cancelled in the meantime is left alone.
    """
    time.sleep(simulated_delay_seconds() if delay is None else delay)

    execution = get_swap_execution(swap_execution_id)
    if not execution:
        log.warning("Swap %s disappeared before completion", swap_execution_id)
        return None

    try:
        completed = transition(execution, "completed")
    except InvalidSwapTransition:
        log.info("Swap %s is %s; skipping simulated completion", swap_execution_id, execution.get("status"))
        return None

    event = build_audit_event(
        completed["account_id"],
        completed["purchase_id"],
        "swap_completed",
        "Swap completed successfully",
        "Original order canceled and replacement order placed.",
        actor_user_id=completed.get("actor_user_id"),
        metadata={"swap_execution_id": swap_execution_id, "mode": completed.get("mode")},
    )
    saved = save_swap_transition(
        completed,
        execution["status"],
        purchase_status="swap_completed",
        events=[event],
    )
    if saved is None:
        log.info("Swap %s changed before completion; skipping", swap_execution_id)
        return None
    log.info("Swap %s completed (purchase=%s)", swap_execution_id, completed["purchase_id"])
    return completed


__all__ = ["simulated_delay_seconds", "complete_simulated_swap"]
