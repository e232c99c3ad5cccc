"""Construct the coin ledger for the configured storage backend."""

from __future__ import annotations

from functools import lru_cache

from app.config import settings
from app.services.coin_service import CoinLedgerService, LedgerPolicy
from app.services.ledger_store import LedgerStore
from app.services.memory_store import MemoryLedgerStore
from app.services.plan_catalog import DEFAULT_PLANS, PlanCatalog
from app.services.supabase_store import SupabaseLedgerStore
from app.utils.errors import InvalidInputError
from app.utils.supabase_client import get_service_client
from supabase import Client


@lru_cache(maxsize=1)
def get_plan_catalog() -> PlanCatalog:
    """Return the process-wide plan catalog."""
    return PlanCatalog(DEFAULT_PLANS, free_tier_cap=settings.free_tier_cap)


@lru_cache(maxsize=1)
def get_memory_store() -> MemoryLedgerStore:
    """Return the shared in-process store used when LEDGER_BACKEND=memory."""
    return MemoryLedgerStore()


def get_ledger_store(client: Client | None = None) -> LedgerStore:
    """Return the store selected by ``settings.ledger_backend``."""
    backend = settings.ledger_backend.strip().lower()
    if backend == "memory":
        return get_memory_store()
    if backend == "supabase":
        return SupabaseLedgerStore(client or get_service_client())
    raise InvalidInputError(f"Unsupported ledger backend: {settings.ledger_backend}")


def build_ledger_service(client: Client | None = None) -> CoinLedgerService:
    """Wire a ledger service with the configured store, catalog and policy."""
    return CoinLedgerService(
        store=get_ledger_store(client),
        catalog=get_plan_catalog(),
        policy=LedgerPolicy.from_settings(settings),
    )
