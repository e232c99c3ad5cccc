"""Subscription and plan schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class PlanResponse(BaseModel):
    """Public representation of a catalog plan."""

    id: str
    name: str
    monthly_price: int
    coins: int
    has_unlimited_coin_cap: bool
    coin_cap: int | None = None


class SubscriptionResponse(BaseModel):
    """A subscription record."""

    id: str
    user_id: str
    plan_type: str
    status: str
    monthly_price: int
    coin_allocation: int
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    canceled_at: datetime | None = None
    created_at: datetime | None = None


class SubscriptionChangeRequest(BaseModel):
    """Admin request to move a user onto a plan; ``none`` removes the plan."""

    plan_type: str = Field(..., min_length=1, max_length=50)


class PlanListResponse(BaseModel):
    """Catalog listing."""

    plans: list[PlanResponse]


class SubscriptionHistoryResponse(BaseModel):
    """Active subscription plus every past record, newest first."""

    active: SubscriptionResponse | None = None
    history: list[SubscriptionResponse] = []
