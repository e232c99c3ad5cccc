"""Cap, grant and adjustment rules applied inside a store's atomic unit."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from app.services.plan_catalog import PlanCatalog
from app.utils.errors import InsufficientBalanceError
from app.utils.time import parse_timestamp, to_iso, whole_days_between

logger = logging.getLogger(__name__)

OperationKind = Literal["reconcile", "debit", "credit", "remove", "set", "cap"]


class LedgerPolicy(BaseModel):
    """Grant and cap constants that are not tied to a plan."""

    model_config = ConfigDict(frozen=True)

    free_tier_cap: int = 40
    free_tier_grant: int = 20
    admin_grant: int = 100
    reset_cycle_days: int = 30
    admin_role: str = "admin"

    @classmethod
    def from_settings(cls, source: Any) -> LedgerPolicy:
        """Build a policy from the application settings object."""
        return cls(
            free_tier_cap=source.free_tier_cap,
            free_tier_grant=source.free_tier_grant,
            admin_grant=source.admin_grant,
            reset_cycle_days=source.reset_cycle_days,
            admin_role=source.admin_role,
        )


class BalanceOperation(BaseModel):
    """One balance mutation.

    ``reconcile`` applies a due reset or clamps to the cap, ``debit`` does the
    same and then spends ``amount``, ``credit``/``remove``/``set`` are the
    admin adjustments and ``cap`` only clamps an over-cap balance.
    """

    model_config = ConfigDict(frozen=True)

    kind: OperationKind
    amount: int = 0


def clamp_to_cap(coins: int, cap: int | None) -> int:
    """Clamp a balance into ``[0, cap]``; a None cap is unbounded."""
    coins = max(0, coins)
    return coins if cap is None else min(coins, cap)


class BalanceRules:
    """Pure balance arithmetic over a user row and its active subscription.

    Stores call :meth:`changes` while they hold the user row, so the cap and
    grant are always computed from the state the write lands on.
    """

    def __init__(self, catalog: PlanCatalog, policy: LedgerPolicy) -> None:
        self.catalog = catalog
        self.policy = policy

    def cap_for(self, account: dict[str, Any], subscription: dict[str, Any] | None) -> int | None:
        """Return the maximum balance, or None when unbounded."""
        if account.get("role") == self.policy.admin_role:
            return None
        if subscription is None:
            return self.policy.free_tier_cap

        plan = self.catalog.find(subscription.get("plan_type"))
        if plan is None:
            logger.warning(
                "Subscription %s references unknown plan %s; using free tier cap",
                subscription.get("id"),
                subscription.get("plan_type"),
            )
            return self.policy.free_tier_cap
        if plan.has_unlimited_coin_cap:
            return None
        return plan.coin_cap

    def grant_for(
        self,
        account: dict[str, Any],
        subscription: dict[str, Any] | None,
        cap: int | None,
    ) -> int:
        if account.get("role") == self.policy.admin_role:
            return self.policy.admin_grant
        if subscription is None:
            return self.policy.free_tier_grant

        allocation = int(subscription["coin_allocation"])
        plan = self.catalog.find(subscription.get("plan_type"))
        if plan is not None and plan.has_unlimited_coin_cap:
            # Unlimited plans accumulate across cycles.
            return int(account["coins"]) + allocation
        # Capped plans replace the balance; leftovers do not carry over.
        return clamp_to_cap(allocation, cap)

    def changes(
        self,
        operation: BalanceOperation,
        account: dict[str, Any],
        subscription: dict[str, Any] | None,
        now: datetime,
    ) -> dict[str, Any]:
        """Return the column changes ``operation`` makes (empty if none)."""
        if operation.kind == "reconcile":
            return self.reset_changes(account, subscription, now)
        if operation.kind == "debit":
            return self.debit_changes(account, subscription, now, operation.amount)
        if operation.kind == "cap":
            return self.cap_changes(account, subscription)
        return self.adjust_changes(operation, account, subscription)

    def reset_changes(
        self,
        account: dict[str, Any],
        subscription: dict[str, Any] | None,
        now: datetime,
    ) -> dict[str, Any]:
        coins = int(account["coins"])
        cap = self.cap_for(account, subscription)
        last_reset = parse_timestamp(account.get("last_coin_reset"))

        due = last_reset is None or (
            whole_days_between(last_reset, now) >= self.policy.reset_cycle_days
        )
        if due:
            grant = clamp_to_cap(self.grant_for(account, subscription, cap), cap)
            return {"coins": grant, "last_coin_reset": to_iso(now)}

        if cap is not None and coins > cap:
            return {"coins": cap}
        return {}

    def debit_changes(
        self,
        account: dict[str, Any],
        subscription: dict[str, Any] | None,
        now: datetime,
        amount: int,
    ) -> dict[str, Any]:
        """Reset-then-spend in one set of changes; raise when not covered."""
        payload = self.reset_changes(account, subscription, now)
        available = int(payload.get("coins", account["coins"]))
        if available < amount:
            raise InsufficientBalanceError(required=amount, available=available)
        payload["coins"] = available - amount
        return payload

    def adjust_changes(
        self,
        operation: BalanceOperation,
        account: dict[str, Any],
        subscription: dict[str, Any] | None,
    ) -> dict[str, Any]:
        coins = int(account["coins"])
        if operation.kind == "credit":
            target = coins + operation.amount
        elif operation.kind == "remove":
            target = coins - operation.amount
        else:
            target = operation.amount

        new_coins = clamp_to_cap(target, self.cap_for(account, subscription))
        return {"coins": new_coins} if new_coins != coins else {}

    def cap_changes(
        self,
        account: dict[str, Any],
        subscription: dict[str, Any] | None,
    ) -> dict[str, Any]:
        cap = self.cap_for(account, subscription)
        if cap is not None and int(account["coins"]) > cap:
            return {"coins": cap}
        return {}

    def rpc_params(self, operation: BalanceOperation, now: datetime) -> dict[str, Any]:
        """Parameters for ``apply_coin_operation``, which runs these rules in SQL."""
        return {
            "p_operation": operation.kind,
            "p_amount": operation.amount,
            "p_now": to_iso(now),
            "p_cycle_days": self.policy.reset_cycle_days,
            "p_free_cap": self.policy.free_tier_cap,
            "p_free_grant": self.policy.free_tier_grant,
            "p_admin_grant": self.policy.admin_grant,
            "p_admin_role": self.policy.admin_role,
            "p_plans": {
                plan.id: {"cap": plan.coin_cap, "unlimited": plan.has_unlimited_coin_cap}
                for plan in self.catalog
            },
        }
