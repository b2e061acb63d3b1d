"""
Points Ledger for Habit Tracking

This module provides:
- Habits that earn points when completed for the day
- Rewards that spend points from the balance
- A per-day history of earned points, kept sorted by date
- Change notifications for presentation layers
"""

from .models import (
    EventKind,
    PurchaseFailure,
    Habit,
    Reward,
    DailyPointsEntry,
    LedgerEvent,
    PurchaseResult,
)
from .service import PointsLedger, InMemoryStorage

__all__ = [
    "EventKind",
    "PurchaseFailure",
    "Habit",
    "Reward",
    "DailyPointsEntry",
    "LedgerEvent",
    "PurchaseResult",
    "PointsLedger",
    "InMemoryStorage",
]
