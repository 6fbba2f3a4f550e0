"""Database models for subscriptions."""

from ledger.subscriptions.models.database.subscription import (
    CustomerSubscriptionEntity,
    SubscriptionPlanEntity,
    SubscriptionPlanProductEntity,
)

__all__ = [
    "CustomerSubscriptionEntity",
    "SubscriptionPlanEntity",
    "SubscriptionPlanProductEntity",
]
