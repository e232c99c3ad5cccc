"""Coin balances, periodic grants and subscription entitlements."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from app.services.balance_rules import BalanceOperation, BalanceRules, LedgerPolicy, clamp_to_cap
from app.services.ledger_store import LedgerStore
from app.services.plan_catalog import PlanCatalog
from app.utils.errors import InsufficientBalanceError, InvalidInputError
from app.utils.time import days_until_reset, now_utc

logger = logging.getLogger(__name__)

__all__ = ["CoinLedgerService", "LedgerPolicy", "clamp_to_cap"]


class CoinLedgerService:
    """Business logic for coin balances.

    Each balance mutation is a single store operation: the store reads the
    user row and active subscription, applies :class:`BalanceRules` and
    writes while holding the user, so sufficiency checks and caps are always
    judged against the state that is actually written over.
    """

    def __init__(
        self,
        store: LedgerStore,
        catalog: PlanCatalog,
        policy: LedgerPolicy | None = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.policy = policy or LedgerPolicy(free_tier_cap=catalog.free_tier_cap)
        self.rules = BalanceRules(catalog, self.policy)
        self.clock = clock

    # Caps

    def resolve_cap(self, user_id: str) -> int | None:
        """Return the user's maximum balance, or None when unbounded."""
        account = self.store.get_account(user_id)
        return self.rules.cap_for(account, self.store.get_active_subscription(user_id))

    # Periodic reset

    def check_and_reset(self, user_id: str) -> dict[str, Any]:
        """Bring the stored balance up to date with the current cycle and cap."""
        account, _ = self._reconcile(user_id)
        return account

    def _reconcile(self, user_id: str) -> tuple[dict[str, Any], dict[str, Any] | None]:
        account, subscription, changed = self._apply(user_id, BalanceOperation(kind="reconcile"))
        if changed:
            logger.info("Coin balance for user %s reconciled to %s", user_id, account["coins"])
        return account, subscription

    def get_balance(self, user_id: str) -> int:
        """Return the user's current spendable balance."""
        return int(self.check_and_reset(user_id)["coins"])

    def balance_summary(self, user_id: str) -> dict[str, Any]:
        """Return balance, cap and cycle information for display."""
        account, subscription = self._reconcile(user_id)
        return {
            "user_id": str(account["id"]),
            "coins": int(account["coins"]),
            "cap": self.rules.cap_for(account, subscription),
            "last_coin_reset": account.get("last_coin_reset"),
            "days_until_reset": days_until_reset(
                account.get("last_coin_reset"),
                self.policy.reset_cycle_days,
                now=self.clock(),
            ),
            "plan": subscription.get("plan_type") if subscription else None,
        }

    # Spending

    def debit(self, user_id: str, amount: int) -> dict[str, Any]:
        """Spend ``amount`` coins or raise InsufficientBalanceError."""
        self._require_positive(amount)
        try:
            account, _, _ = self._apply(user_id, BalanceOperation(kind="debit", amount=amount))
        except InsufficientBalanceError as exc:
            logger.info("Declined debit of %s for user %s (has %s)", amount, user_id, exc.available)
            raise
        return account

    # Administrative adjustments

    def admin_credit(self, user_id: str, amount: int) -> int:
        """Add coins up to the user's cap and return the new balance."""
        self._require_positive(amount)
        return self._admin_adjust(user_id, BalanceOperation(kind="credit", amount=amount))

    def admin_debit(self, user_id: str, amount: int) -> int:
        """Remove coins, flooring at zero, and return the new balance."""
        self._require_positive(amount)
        return self._admin_adjust(user_id, BalanceOperation(kind="remove", amount=amount))

    def admin_set_balance(self, user_id: str, amount: int) -> int:
        """Set the balance, clamped to ``[0, cap]``, and return it."""
        if amount < 0:
            raise InvalidInputError("Amount cannot be negative")
        return self._admin_adjust(user_id, BalanceOperation(kind="set", amount=amount))

    def _admin_adjust(self, user_id: str, operation: BalanceOperation) -> int:
        account, _, _ = self._apply(user_id, operation)
        logger.info(
            "Admin %s of %s coins for user %s; balance now %s",
            operation.kind,
            operation.amount,
            user_id,
            account["coins"],
        )
        return int(account["coins"])

    # Subscriptions

    def change_subscription(
        self, user_id: str, plan_id: str
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """Switch the user to ``plan_id`` and grant its allocation immediately.

        The activation credit is added on top of the current balance without
        applying the new cap. Returns ``(subscription, account)``.
        """
        plan = self.catalog.get(plan_id)
        subscription, account = self.store.activate_subscription(
            user_id,
            plan,
            self.clock(),
            self.policy.reset_cycle_days,
        )
        logger.info(
            "User %s subscribed to %s; credited %s coins (balance %s)",
            user_id,
            plan.id,
            plan.coins,
            account["coins"],
        )
        return subscription, account

    def remove_subscription(self, user_id: str) -> list[dict[str, Any]]:
        """Cancel the user's active subscription; the balance is left alone."""
        self.store.get_account(user_id)
        canceled = self.store.cancel_active_subscriptions(user_id, self.clock())
        logger.info("Canceled %s subscription(s) for user %s", len(canceled), user_id)
        return canceled

    def get_subscriptions(self, user_id: str) -> dict[str, Any]:
        """Return the active subscription and full history for a user."""
        self.store.get_account(user_id)
        return {
            "active": self.store.get_active_subscription(user_id),
            "history": self.store.list_subscriptions(user_id),
        }

    # Maintenance

    def sweep_caps(self) -> int:
        """Clamp every over-cap balance; return how many users were adjusted."""
        adjusted = 0
        failed = 0
        for account in self.store.list_accounts():
            user_id = str(account["id"])
            try:
                _, _, changed = self._apply(user_id, BalanceOperation(kind="cap"))
            except Exception:
                failed += 1
                logger.exception("Cap sweep skipped user %s", user_id)
                continue
            if changed:
                adjusted += 1

        logger.info("Cap sweep adjusted %s users (%s failed)", adjusted, failed)
        return adjusted

    def list_accounts_with_caps(self) -> list[dict[str, Any]]:
        """Return every user balance row annotated with its resolved cap."""
        rows: list[dict[str, Any]] = []
        for account in self.store.list_accounts():
            subscription = self.store.get_active_subscription(str(account["id"]))
            payload = dict(account)
            payload["cap"] = self.rules.cap_for(account, subscription)
            payload["plan"] = subscription.get("plan_type") if subscription else None
            rows.append(payload)
        return rows

    # Internals

    def _apply(
        self, user_id: str, operation: BalanceOperation
    ) -> tuple[dict[str, Any], dict[str, Any] | None, bool]:
        return self.store.apply_operation(user_id, operation, self.rules, self.clock())

    @staticmethod
    def _require_positive(amount: int) -> None:
        if amount <= 0:
            raise InvalidInputError("Amount must be a positive number")
