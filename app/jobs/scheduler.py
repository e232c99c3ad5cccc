"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.jobs.cap_sweep import coin_cap_sweep

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register periodic jobs if not already present.

    Periodic grants are applied lazily on read, so only the cap sweep runs
    on a schedule.
    """
    if scheduler.get_job("coin_cap_sweep") is None:
        scheduler.add_job(
            coin_cap_sweep,
            CronTrigger(
                hour=settings.cap_sweep_hour,
                minute=settings.cap_sweep_minute,
                timezone=settings.timezone,
            ),
            id="coin_cap_sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
