"""Domain models for the payment ledger."""

from ledger.payments.models.domain.enums import LedgerEntryKind
from ledger.payments.models.domain.payment import (
    CyclePayment,
    CyclePaymentCreateModel,
)
from ledger.payments.models.domain.summary import CycleSummary
from ledger.payments.models.domain.allocation import (
    CreditApplicationEntry,
    CreditApplicationPlan,
    CycleBalanceChange,
    LateFeeAssessment,
    LateFeePolicy,
    PaymentAllocation,
)

__all__ = [
    "LedgerEntryKind",
    "CyclePayment",
    "CyclePaymentCreateModel",
    "CycleSummary",
    "CreditApplicationEntry",
    "CreditApplicationPlan",
    "CycleBalanceChange",
    "LateFeeAssessment",
    "LateFeePolicy",
    "PaymentAllocation",
]
