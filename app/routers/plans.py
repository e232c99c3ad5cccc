"""Subscription plan catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_catalog
from app.schemas.subscription import PlanListResponse
from app.services.plan_catalog import PlanCatalog

router = APIRouter()


@router.get("", response_model=PlanListResponse)
def list_plans(catalog: PlanCatalog = Depends(get_catalog)) -> dict:
    """Return every plan in ascending tier order."""
    return {"plans": [plan.model_dump() for plan in catalog.plans()]}
