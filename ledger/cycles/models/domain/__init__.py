"""Domain models for cycles and quotas."""

from ledger.cycles.models.domain.enums import PaymentStatus
from ledger.cycles.models.domain.cycle import (
    CycleCreateModel,
    CycleDetail,
    CycleDetailCreateModel,
    CycleDetailUpdateModel,
    CycleUpdateModel,
    SubscriptionCycle,
)
from ledger.cycles.models.domain.quota import (
    LateFeeInfo,
    ProductQuota,
    QuotaBreakdown,
    QuotaItem,
)

__all__ = [
    # Enums
    "PaymentStatus",
    # Cycles
    "CycleCreateModel",
    "CycleDetail",
    "CycleDetailCreateModel",
    "CycleDetailUpdateModel",
    "CycleUpdateModel",
    "SubscriptionCycle",
    # Quotas
    "LateFeeInfo",
    "ProductQuota",
    "QuotaBreakdown",
    "QuotaItem",
]
