"""
Ledger enums.
"""

from enum import Enum


class LedgerEntryKind(str, Enum):
    """
    What a ledger row did to its cycle.

    Amounts are always positive; the kind carries the direction.
    """

    PAYMENT = "PAYMENT"  # money received from the customer
    SURCHARGE = "SURCHARGE"  # late fee added to the debt
    CREDIT_TRANSFER = "CREDIT_TRANSFER"  # credit moved in from a closed cycle
    CREDIT_APPLICATION = "CREDIT_APPLICATION"  # credit used to settle this cycle's debt

    def is_system_entry(self) -> bool:
        return self is not LedgerEntryKind.PAYMENT
