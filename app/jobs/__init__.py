"""Background job modules for periodic ledger maintenance."""

from app.jobs.cap_sweep import coin_cap_sweep

__all__ = [
    "coin_cap_sweep",
]
