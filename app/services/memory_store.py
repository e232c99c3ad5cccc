"""In-process ledger store for tests and local development."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

from app.services.balance_rules import BalanceOperation, BalanceRules
from app.services.ledger_store import ACTIVE, CANCELED, LedgerStore
from app.services.plan_catalog import PlanDefinition
from app.utils.errors import NotFoundError
from app.utils.time import cycle_end, now_utc, to_iso


class MemoryLedgerStore(LedgerStore):
    """Dict-backed store; every read-check-write runs under one lock."""

    def __init__(self, clock: Callable[[], datetime] = now_utc) -> None:
        self.clock = clock
        self._users: dict[str, dict[str, Any]] = {}
        self._subscriptions: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def add_user(
        self,
        user_id: str | None = None,
        coins: int = 20,
        last_coin_reset: datetime | None = None,
        role: str = "user",
        never_reset: bool = False,
    ) -> dict[str, Any]:
        """Seed a user balance row; ``never_reset`` leaves the reset timestamp empty."""
        reset_at = None if never_reset else to_iso(last_coin_reset or self.clock())
        row = {
            "id": user_id or str(uuid.uuid4()),
            "coins": coins,
            "last_coin_reset": reset_at,
            "role": role,
        }
        with self._lock:
            self._users[row["id"]] = row
        return dict(row)

    def add_subscription(
        self,
        user_id: str,
        plan: PlanDefinition,
        started_at: datetime | None = None,
        cycle_days: int = 30,
        status: str = ACTIVE,
    ) -> dict[str, Any]:
        """Seed a subscription row without touching the balance."""
        start = started_at or self.clock()
        row = self._subscription_row(user_id, plan, start, cycle_days)
        row["status"] = status
        with self._lock:
            self._subscriptions[row["id"]] = row
        return dict(row)

    def get_account(self, user_id: str) -> dict[str, Any]:
        with self._lock:
            return dict(self._account_locked(str(user_id)))

    def list_accounts(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(row) for row in self._users.values()]

    def apply_operation(
        self,
        user_id: str,
        operation: BalanceOperation,
        rules: BalanceRules,
        now: datetime,
    ) -> tuple[dict[str, Any], dict[str, Any] | None, bool]:
        with self._lock:
            row = self._account_locked(str(user_id))
            subscription = self._active_locked(str(user_id))
            changes = rules.changes(operation, dict(row), subscription, now)
            if changes:
                row.update(changes)
            return dict(row), subscription, bool(changes)

    def get_active_subscription(self, user_id: str) -> dict[str, Any] | None:
        with self._lock:
            return self._active_locked(str(user_id))

    def list_subscriptions(self, user_id: str) -> list[dict[str, Any]]:
        with self._lock:
            rows = [
                dict(row) for row in self._subscriptions.values() if row["user_id"] == str(user_id)
            ]
        rows.reverse()
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return rows

    def activate_subscription(
        self,
        user_id: str,
        plan: PlanDefinition,
        now: datetime,
        cycle_days: int,
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        with self._lock:
            user = self._account_locked(str(user_id))
            self._cancel_locked(str(user_id), now)
            subscription = self._subscription_row(str(user_id), plan, now, cycle_days)
            self._subscriptions[subscription["id"]] = subscription

            user["coins"] = int(user["coins"]) + plan.coins
            user["last_coin_reset"] = to_iso(now)
            return dict(subscription), dict(user)

    def cancel_active_subscriptions(self, user_id: str, now: datetime) -> list[dict[str, Any]]:
        with self._lock:
            return self._cancel_locked(str(user_id), now)

    def _account_locked(self, user_id: str) -> dict[str, Any]:
        row = self._users.get(user_id)
        if row is None:
            raise NotFoundError("User")
        return row

    def _active_locked(self, user_id: str) -> dict[str, Any] | None:
        for row in self._subscriptions.values():
            if row["user_id"] == user_id and row["status"] == ACTIVE:
                return dict(row)
        return None

    def _cancel_locked(self, user_id: str, now: datetime) -> list[dict[str, Any]]:
        canceled: list[dict[str, Any]] = []
        for row in self._subscriptions.values():
            if row["user_id"] == user_id and row["status"] == ACTIVE:
                row["status"] = CANCELED
                row["canceled_at"] = to_iso(now)
                row["updated_at"] = to_iso(now)
                canceled.append(dict(row))
        return canceled

    @staticmethod
    def _subscription_row(
        user_id: str,
        plan: PlanDefinition,
        start: datetime,
        cycle_days: int,
    ) -> dict[str, Any]:
        return {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "plan_type": plan.id,
            "status": ACTIVE,
            "monthly_price": plan.monthly_price,
            "coin_allocation": plan.coins,
            "current_period_start": to_iso(start),
            "current_period_end": to_iso(cycle_end(start, cycle_days)),
            "canceled_at": None,
            "created_at": to_iso(start),
            "updated_at": to_iso(start),
        }
