"""Pytest fixtures for ledger tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")
    os.environ.setdefault("LEDGER_BACKEND", "memory")


_set_default_env()

from app.services.coin_service import CoinLedgerService, LedgerPolicy  # noqa: E402
from app.services.memory_store import MemoryLedgerStore  # noqa: E402
from app.services.plan_catalog import DEFAULT_PLANS, PlanCatalog  # noqa: E402

START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Controllable replacement for ``now_utc``."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, seconds: int = 0) -> None:
        self.now = self.now + timedelta(days=days, seconds=seconds)

    def days_ago(self, days: int) -> datetime:
        return self.now - timedelta(days=days)


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at a fixed instant."""
    return FakeClock(START)


@pytest.fixture
def store(clock: FakeClock) -> MemoryLedgerStore:
    """Fresh in-memory store seeded on the test clock."""
    return MemoryLedgerStore(clock=clock)


@pytest.fixture
def catalog() -> PlanCatalog:
    """Default plan catalog."""
    return PlanCatalog(DEFAULT_PLANS, free_tier_cap=40)


@pytest.fixture
def ledger(store: MemoryLedgerStore, catalog: PlanCatalog, clock: FakeClock) -> CoinLedgerService:
    """Ledger service over the memory store with a frozen clock."""
    return CoinLedgerService(store, catalog, LedgerPolicy(), clock=clock)


class CurrentUser:
    """Mutable identity returned by the overridden auth dependency."""

    user_id = "anonymous"


@pytest.fixture
def current_user() -> CurrentUser:
    return CurrentUser()


@pytest.fixture
def client(ledger: CoinLedgerService, current_user: CurrentUser) -> Iterator[TestClient]:
    """FastAPI test client wired to the test ledger."""
    from app.dependencies import get_current_user_id, get_ledger_service
    from app.main import app

    app.dependency_overrides[get_current_user_id] = lambda: current_user.user_id
    app.dependency_overrides[get_ledger_service] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()
