"""Database models for cycles."""

from ledger.cycles.models.database.cycle import (
    SubscriptionCycleDetailEntity,
    SubscriptionCycleEntity,
)

__all__ = [
    "SubscriptionCycleEntity",
    "SubscriptionCycleDetailEntity",
]
