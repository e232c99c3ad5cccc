"""Storage contract shared by the coin ledger backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from app.services.balance_rules import BalanceOperation, BalanceRules
from app.services.plan_catalog import PlanDefinition

ACTIVE = "active"
CANCELED = "canceled"


class LedgerStore(ABC):
    """Persistence operations the coin ledger depends on.

    Rows are plain dicts. User rows carry ``id``, ``coins``,
    ``last_coin_reset`` and ``role``; subscription rows mirror the
    ``coin_subscriptions`` table.

    Every write that touches a user's balance or subscriptions holds that
    user exclusively, so balance operations, activation and cancellation
    for one user are serialized.
    """

    @abstractmethod
    def get_account(self, user_id: str) -> dict[str, Any]:
        """Return a user balance row or raise NotFoundError."""

    @abstractmethod
    def list_accounts(self) -> list[dict[str, Any]]:
        """Return every user balance row."""

    @abstractmethod
    def apply_operation(
        self,
        user_id: str,
        operation: BalanceOperation,
        rules: BalanceRules,
        now: datetime,
    ) -> tuple[dict[str, Any], dict[str, Any] | None, bool]:
        """Apply one balance operation as a single atomic unit.

        The user row and active subscription are read, the changes computed
        by ``rules`` and written while the user is held, so no other write
        for that user can land in between. Errors raised by the rules (such
        as InsufficientBalanceError) leave the row untouched.

        Returns ``(account, subscription, changed)`` as of the write.
        """

    @abstractmethod
    def get_active_subscription(self, user_id: str) -> dict[str, Any] | None:
        """Return the user's active subscription, if any."""

    @abstractmethod
    def list_subscriptions(self, user_id: str) -> list[dict[str, Any]]:
        """Return the user's subscription history, newest first."""

    @abstractmethod
    def activate_subscription(
        self,
        user_id: str,
        plan: PlanDefinition,
        now: datetime,
        cycle_days: int,
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """Cancel any active plan, start ``plan`` and credit its coins atomically.

        Returns ``(subscription, account)``.
        """

    @abstractmethod
    def cancel_active_subscriptions(self, user_id: str, now: datetime) -> list[dict[str, Any]]:
        """Cancel every active subscription for the user and return them."""
