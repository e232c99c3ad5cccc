"""Postgres-backed ledger store reached through Supabase/PostgREST."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from app.services.balance_rules import BalanceOperation, BalanceRules
from app.services.common import SupabaseService
from app.services.ledger_store import ACTIVE, LedgerStore
from app.services.plan_catalog import PlanDefinition
from app.utils.errors import (
    InsufficientBalanceError,
    NotFoundError,
    PersistenceError,
    UnknownPlanError,
)
from app.utils.time import cycle_end, to_iso
from supabase import Client

USER_COLUMNS = "id,coins,last_coin_reset,role"
USERS_TABLE = "users"
SUBSCRIPTIONS_TABLE = "coin_subscriptions"


class SupabaseLedgerStore(LedgerStore):
    """Ledger persistence over the ``users`` and ``coin_subscriptions`` tables.

    Every write runs inside a Postgres function that first locks the user row
    with ``SELECT ... FOR UPDATE``: ``apply_coin_operation`` for balance
    changes, ``activate_coin_subscription`` and ``cancel_coin_subscriptions``
    for plan changes. Writers for the same user therefore queue on the row
    lock instead of racing, and no write is retried.
    """

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def get_account(self, user_id: str) -> dict[str, Any]:
        return self.db.select_one(
            USERS_TABLE,
            {"id": user_id},
            columns=USER_COLUMNS,
            not_found_label="User",
        )

    def list_accounts(self) -> list[dict[str, Any]]:
        return self.db.select_many(USERS_TABLE, columns=USER_COLUMNS, order_by="id")

    def apply_operation(
        self,
        user_id: str,
        operation: BalanceOperation,
        rules: BalanceRules,
        now: datetime,
    ) -> tuple[dict[str, Any], dict[str, Any] | None, bool]:
        params = {"p_user_id": str(user_id), **rules.rpc_params(operation, now)}
        rows = self.db.rpc("apply_coin_operation", params)
        if not rows:
            raise PersistenceError("Balance update returned no result")

        payload = rows[0]
        if not payload.get("success"):
            self._raise_for_operation(str(payload.get("reason") or ""), operation, payload)

        account = {
            "id": str(user_id),
            "coins": int(payload["coins"]),
            "last_coin_reset": payload.get("last_coin_reset"),
            "role": payload.get("role"),
        }
        subscription = None
        if payload.get("subscription_id"):
            subscription = {
                "id": str(payload["subscription_id"]),
                "user_id": str(user_id),
                "plan_type": payload.get("plan_type"),
                "coin_allocation": payload.get("coin_allocation"),
                "status": ACTIVE,
            }
        return account, subscription, bool(payload.get("changed"))

    def get_active_subscription(self, user_id: str) -> dict[str, Any] | None:
        rows = self.db.select_many(
            SUBSCRIPTIONS_TABLE,
            filters={"user_id": user_id, "status": ACTIVE},
            limit=1,
        )
        return rows[0] if rows else None

    def list_subscriptions(self, user_id: str) -> list[dict[str, Any]]:
        return self.db.select_many(
            SUBSCRIPTIONS_TABLE,
            filters={"user_id": user_id},
            order_by="created_at",
            descending=True,
        )

    def activate_subscription(
        self,
        user_id: str,
        plan: PlanDefinition,
        now: datetime,
        cycle_days: int,
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        rows = self.db.rpc(
            "activate_coin_subscription",
            {
                "p_user_id": user_id,
                "p_plan_type": plan.id,
                "p_coin_allocation": plan.coins,
                "p_monthly_price": plan.monthly_price,
                "p_period_start": to_iso(now),
                "p_period_end": to_iso(cycle_end(now, cycle_days)),
            },
        )
        if not rows:
            raise PersistenceError("Subscription activation returned no result")

        payload = rows[0]
        if not payload.get("success"):
            self._raise_for_reason(str(payload.get("reason") or ""), plan.id)

        subscription = self.db.select_one(
            SUBSCRIPTIONS_TABLE,
            {"id": str(payload["subscription_id"])},
            not_found_label="Subscription",
        )
        return subscription, self.get_account(user_id)

    def cancel_active_subscriptions(self, user_id: str, now: datetime) -> list[dict[str, Any]]:
        return self.db.rpc(
            "cancel_coin_subscriptions",
            {"p_user_id": user_id, "p_canceled_at": to_iso(now)},
        )

    @staticmethod
    def _raise_for_reason(reason: str, plan_id: str) -> None:
        if reason == "user_not_found":
            raise NotFoundError("User")
        if reason == "invalid_plan":
            raise UnknownPlanError(plan_id)
        raise PersistenceError("Subscription activation failed")

    @staticmethod
    def _raise_for_operation(
        reason: str,
        operation: BalanceOperation,
        payload: dict[str, Any],
    ) -> None:
        if reason == "user_not_found":
            raise NotFoundError("User")
        if reason == "insufficient_coins":
            raise InsufficientBalanceError(
                required=operation.amount,
                available=int(payload.get("available") or 0),
            )
        raise PersistenceError(f"Balance {operation.kind} failed")
