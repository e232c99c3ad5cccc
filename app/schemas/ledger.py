"""Coin ledger schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class CoinBalanceResponse(BaseModel):
    """Balance and cycle information for one user."""

    user_id: str
    coins: int
    cap: int | None = None
    last_coin_reset: datetime | None = None
    days_until_reset: int
    plan: str | None = None


class SpendCoinsRequest(BaseModel):
    """Request body for spending coins on a paid action."""

    amount: int = Field(..., gt=0)
    reason: str = Field("Coin spent", max_length=200)


class SpendCoinsResponse(BaseModel):
    """Result of a successful spend."""

    success: bool = True
    coins_remaining: int
    reason: str


class CoinAmountRequest(BaseModel):
    """Request body for admin credit and debit."""

    amount: int = Field(..., gt=0)


class SetBalanceRequest(BaseModel):
    """Request body for assigning a balance."""

    amount: int = Field(..., ge=0)


class AdminBalanceResponse(BaseModel):
    """Balance after an administrative adjustment."""

    user_id: str
    coins: int


class AccountResponse(BaseModel):
    """Admin view of a user's balance."""

    id: str
    coins: int
    last_coin_reset: datetime | None = None
    role: str | None = None
    cap: int | None = None
    plan: str | None = None


class CapSweepResponse(BaseModel):
    """Outcome of a cap sweep."""

    adjusted: int


class AccountListResponse(BaseModel):
    """Admin listing of every user's balance."""

    users: list[AccountResponse]
