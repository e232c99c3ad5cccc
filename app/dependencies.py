"""FastAPI dependency injection helpers."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, Header

from app.config import settings
from app.services.coin_service import CoinLedgerService
from app.services.ledger_factory import build_ledger_service, get_plan_catalog
from app.services.plan_catalog import PlanCatalog
from app.utils.errors import ForbiddenError, UnauthorizedError
from app.utils.supabase_client import get_supabase_client


def get_authenticated_user(authorization: str = Header(None)) -> Any:
    """Extract and validate a Supabase JWT from the Authorization header.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token cannot be validated.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing authorization header")

    token = authorization.split(" ", 1)[1]
    supabase = get_supabase_client()

    try:
        response = supabase.auth.get_user(token)
        if not response or not response.user:
            raise UnauthorizedError("Invalid token")
        return response.user
    except UnauthorizedError:
        raise
    except Exception as exc:
        raise UnauthorizedError("Invalid or expired token") from exc


def get_current_user_id(user: Any = Depends(get_authenticated_user)) -> str:
    """Extract a stable user id string from the Supabase user object."""
    return str(user.id)


def get_ledger_service() -> CoinLedgerService:
    """Return a ledger service bound to the configured backend."""
    return build_ledger_service()


def get_catalog() -> PlanCatalog:
    """Return the subscription plan catalog."""
    return get_plan_catalog()


def require_admin(
    user_id: str = Depends(get_current_user_id),
    ledger: CoinLedgerService = Depends(get_ledger_service),
) -> str:
    """Return the caller's id when their stored role is the admin role."""
    account = ledger.store.get_account(user_id)
    if account.get("role") != settings.admin_role:
        raise ForbiddenError("Admin only")
    return user_id
