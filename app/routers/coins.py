"""Coin balance endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user_id, get_ledger_service
from app.schemas.ledger import CoinBalanceResponse, SpendCoinsRequest, SpendCoinsResponse
from app.services.coin_service import CoinLedgerService

router = APIRouter()


@router.get("", response_model=CoinBalanceResponse)
def get_coins(
    user_id: str = Depends(get_current_user_id),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Return the current user's balance after applying any due reset."""
    return ledger.balance_summary(user_id)


@router.post("/check-reset", response_model=CoinBalanceResponse)
def check_reset(
    user_id: str = Depends(get_current_user_id),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Run the periodic reset check explicitly and return the resulting balance."""
    return ledger.balance_summary(user_id)


@router.post("/spend", response_model=SpendCoinsResponse)
def spend_coins(
    payload: SpendCoinsRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> dict:
    """Spend coins on a paid action."""
    account = ledger.debit(user_id, payload.amount)
    return {"success": True, "coins_remaining": int(account["coins"]), "reason": payload.reason}
