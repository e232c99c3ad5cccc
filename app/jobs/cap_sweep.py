"""Nightly coin cap sweep job."""

from __future__ import annotations

import logging

from app.services.ledger_factory import build_ledger_service

logger = logging.getLogger(__name__)


async def coin_cap_sweep() -> None:
    """Clamp every balance that exceeds its owner's current cap."""
    ledger = build_ledger_service()
    adjusted = ledger.sweep_caps()
    logger.info("coin_cap_sweep completed with %s balances clamped", adjusted)
