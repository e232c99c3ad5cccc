"""Subscription endpoints for the current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user_id, get_ledger_service
from app.schemas.subscription import SubscriptionHistoryResponse
from app.services.coin_service import CoinLedgerService

router = APIRouter()


@router.get("/me", response_model=SubscriptionHistoryResponse)
def my_subscription(
    user_id: str = Depends(get_current_user_id),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Return the active subscription and its history."""
    return ledger.get_subscriptions(user_id)
