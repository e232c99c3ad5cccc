"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "BalanceOperation": "app.services.balance_rules",
    "BalanceRules": "app.services.balance_rules",
    "CoinLedgerService": "app.services.coin_service",
    "LedgerPolicy": "app.services.balance_rules",
    "LedgerStore": "app.services.ledger_store",
    "MemoryLedgerStore": "app.services.memory_store",
    "PlanCatalog": "app.services.plan_catalog",
    "PlanDefinition": "app.services.plan_catalog",
    "SupabaseLedgerStore": "app.services.supabase_store",
    "SupabaseService": "app.services.common",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
