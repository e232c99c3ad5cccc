"""Administrative coin and subscription endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.dependencies import get_ledger_service, require_admin
from app.schemas.ledger import (
    AccountListResponse,
    AdminBalanceResponse,
    CapSweepResponse,
    CoinAmountRequest,
    SetBalanceRequest,
)
from app.schemas.subscription import SubscriptionChangeRequest
from app.services.coin_service import CoinLedgerService

router = APIRouter()
logger = logging.getLogger(__name__)

REMOVE_PLAN = "none"


@router.get("/users", response_model=AccountListResponse)
def list_user_coins(
    _admin_id: str = Depends(require_admin),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Return every user's balance with their resolved cap."""
    return {"users": ledger.list_accounts_with_caps()}


@router.patch("/users/{user_id}/add", response_model=AdminBalanceResponse)
def add_coins(
    user_id: str,
    payload: CoinAmountRequest,
    _admin_id: str = Depends(require_admin),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Credit coins to a user, up to their cap."""
    return {"user_id": user_id, "coins": ledger.admin_credit(user_id, payload.amount)}


@router.patch("/users/{user_id}/remove", response_model=AdminBalanceResponse)
def remove_coins(
    user_id: str,
    payload: CoinAmountRequest,
    _admin_id: str = Depends(require_admin),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Remove coins from a user, flooring at zero."""
    return {"user_id": user_id, "coins": ledger.admin_debit(user_id, payload.amount)}


@router.patch("/users/{user_id}/set", response_model=AdminBalanceResponse)
def set_coins(
    user_id: str,
    payload: SetBalanceRequest,
    _admin_id: str = Depends(require_admin),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Assign a user's balance, clamped to their cap."""
    return {"user_id": user_id, "coins": ledger.admin_set_balance(user_id, payload.amount)}


@router.post("/apply-caps", response_model=CapSweepResponse)
def apply_coin_caps(
    admin_id: str = Depends(require_admin),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Clamp every balance that exceeds its owner's cap."""
    logger.info("Admin %s triggered coin cap enforcement", admin_id)
    return {"adjusted": ledger.sweep_caps()}


@router.post("/users/{user_id}/subscription")
def change_user_subscription(
    user_id: str,
    payload: SubscriptionChangeRequest,
    _admin_id: str = Depends(require_admin),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Move a user onto a plan, or remove their plan with ``none``."""
    if payload.plan_type == REMOVE_PLAN:
        canceled = ledger.remove_subscription(user_id)
        return {"message": "Subscription removed", "canceled": canceled}

    subscription, account = ledger.change_subscription(user_id, payload.plan_type)
    return {
        "message": "Subscription updated",
        "subscription": subscription,
        "coins": int(account["coins"]),
    }
