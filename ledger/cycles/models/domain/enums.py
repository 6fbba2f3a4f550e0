"""
Cycle enums.
"""

from enum import Enum


class PaymentStatus(str, Enum):
    """
    Payment status of a cycle.

    Flow: PENDING -> PARTIAL -> PAID -> CREDITED
    Only the payment and credit services move a cycle between states.
    """

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CREDITED = "CREDITED"

    def is_outstanding(self) -> bool:
        return self in (
            PaymentStatus.PENDING,
            PaymentStatus.PARTIAL,
            PaymentStatus.OVERDUE,
        )
