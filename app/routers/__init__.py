"""API router package."""

from app.routers import admin, coins, plans, subscriptions

__all__ = [
    "admin",
    "coins",
    "plans",
    "subscriptions",
]
