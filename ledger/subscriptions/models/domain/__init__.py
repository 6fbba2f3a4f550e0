"""Domain models for subscriptions."""

from ledger.subscriptions.models.domain.enums import PaymentMode, SubscriptionStatus
from ledger.subscriptions.models.domain.subscription import (
    PlanProduct,
    Subscription,
    SubscriptionPlan,
)

__all__ = [
    "PaymentMode",
    "SubscriptionStatus",
    "PlanProduct",
    "Subscription",
    "SubscriptionPlan",
]
