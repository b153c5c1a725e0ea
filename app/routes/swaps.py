import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Request

from app.auth_utils import resolve_request_context
from app.errors import error_response, require_database
from core.database import (
    build_audit_event,
    create_swap_execution,
    get_purchase,
    get_swap_execution,
    list_deals_for_purchase,
    new_id,
    now_iso,
    save_swap_transition,
)
from core.purchases.views import public_record
from core.swaps.flow import (
    BUY_SECOND_CANCEL_FIRST,
    MANUAL,
    InvalidSwapTransition,
    SwapRejected,
    new_execution,
    plan_swap,
    transition,
)
from core.swaps.simulation import complete_simulated_swap

log = logging.getLogger("swaps")

router = APIRouter()


@router.post("/api/purchases/{purchase_id}/swaps", status_code=201)
def start_swap(
    purchase_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    payload: Optional[dict] = Body(default=None),
):
    unavailable = require_database()
    if unavailable:
        return unavailable

    body = payload or {}
    try:
        context = resolve_request_context(request)
        account_id = context["account_id"]
        purchase = get_purchase(account_id, purchase_id)
        if not purchase:
            return error_response("Purchase not found", 404)

        deals = list_deals_for_purchase(account_id, purchase_id)
        try:
            plan = plan_swap(
                purchase,
                deals,
                body.get("deal_id"),
                sequence=body.get("sequence") or BUY_SECOND_CANCEL_FIRST,
                mode=body.get("mode") or MANUAL,
                acknowledged=body.get("acknowledged") is True,
            )
        except SwapRejected as exc:
            return error_response(exc.reason, 400)

        now = now_iso()
        execution = new_execution(
            plan,
            swap_execution_id=new_id("swap"),
            account_id=account_id,
            actor_user_id=context["app_user_id"],
            now=now,
        )
        started = build_audit_event(
            account_id,
            purchase_id,
            "swap_started",
            "Swap started",
            plan["warning"],
            actor_user_id=context["app_user_id"],
            metadata={
                "swap_execution_id": execution["swap_execution_id"],
                "mode": plan["mode"],
                "sequence": plan["sequence"],
                "net_savings": plan["deal"].get("net_savings"),
            },
            timestamp=now,
        )
        create_swap_execution(execution, purchase, [started])
        background_tasks.add_task(complete_simulated_swap, execution["swap_execution_id"])

        log.info(
            "Swap %s started for purchase %s (mode=%s, sequence=%s)",
            execution["swap_execution_id"],
            purchase_id,
            plan["mode"],
            plan["sequence"],
        )
        return {
            "swap_execution": public_record(execution),
            "steps": plan["steps"],
            "warning": plan["warning"],
            "automation_blocked_reason": plan["automation_blocked_reason"],
        }
    except Exception as exc:
        log.exception("Failed to start swap for %s", purchase_id)
        return error_response(str(exc) or "Failed to start swap", 500)


def _load_owned_execution(request: Request, swap_execution_id: str):
    context = resolve_request_context(request)
    execution = get_swap_execution(swap_execution_id)
    if not execution or execution.get("account_id") != context["account_id"]:
        return context, None
    return context, execution


@router.get("/api/swaps/{swap_execution_id}")
def swap_status(swap_execution_id: str, request: Request):
    unavailable = require_database()
    if unavailable:
        return unavailable

    try:
        _, execution = _load_owned_execution(request, swap_execution_id)
        if not execution:
            return error_response("Swap not found", 404)
        return {"swap_execution": public_record(execution)}
    except Exception as exc:
        log.exception("Failed to fetch swap %s", swap_execution_id)
        return error_response(str(exc) or "Failed to fetch swap", 500)


@router.post("/api/swaps/{swap_execution_id}/cancel")
def cancel_swap(swap_execution_id: str, request: Request):
    unavailable = require_database()
    if unavailable:
        return unavailable

    try:
        context, execution = _load_owned_execution(request, swap_execution_id)
        if not execution:
            return error_response("Swap not found", 404)

        try:
            cancelled = transition(execution, "cancelled")
        except InvalidSwapTransition as exc:
            return error_response(str(exc), 409)

        purchase = get_purchase(execution["account_id"], execution["purchase_id"])
        # Back to deal_found so the user can pick again.
        purchase_status = "deal_found" if purchase and purchase.get("status") == "swap_in_progress" else None
        event = build_audit_event(
            execution["account_id"],
            execution["purchase_id"],
            "swap_failed",
            "Swap cancelled",
            "The swap was cancelled before completion.",
            actor_user_id=context["app_user_id"],
            metadata={"swap_execution_id": swap_execution_id},
        )
        saved = save_swap_transition(
            cancelled,
            execution["status"],
            purchase_status=purchase_status,
            events=[event],
        )
        if saved is None:
            return error_response("Swap status changed; it can no longer be cancelled.", 409)
        log.info("Swap %s cancelled", swap_execution_id)
        return {"swap_execution": public_record(cancelled)}
    except Exception as exc:
        log.exception("Failed to cancel swap %s", swap_execution_id)
        return error_response(str(exc) or "Failed to cancel swap", 500)
