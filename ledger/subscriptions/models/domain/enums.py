"""
Subscription enums.
"""

from enum import Enum


class SubscriptionStatus(str, Enum):
    """
    Customer subscription lifecycle.

    Only ACTIVE subscriptions get new cycles.
    """

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"

    def can_provision_cycles(self) -> bool:
        return self is SubscriptionStatus.ACTIVE


class PaymentMode(str, Enum):
    """When a cycle is due: at its start (ADVANCE) or after delivery (ARREARS)."""

    ADVANCE = "ADVANCE"
    ARREARS = "ARREARS"
