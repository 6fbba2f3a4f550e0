"""
Value objects produced by the ledger calculations.

None of these are persisted; the services turn them into cycle updates and
ledger rows.
"""

from decimal import Decimal
from pydantic import BaseModel, Field

from common.core.config import settings
from ledger.cycles.models.domain.enums import PaymentStatus


class LateFeePolicy(BaseModel):
    grace_days: int = 3
    daily_rate: Decimal = Decimal("0.02")
    max_rate: Decimal = Decimal("0.30")

    @classmethod
    def from_settings(cls) -> "LateFeePolicy":
        return cls(
            grace_days=settings.late_fee_grace_days,
            daily_rate=settings.late_fee_daily_rate,
            max_rate=settings.late_fee_max_rate,
        )


class LateFeeAssessment(BaseModel):
    days_late: int = 0
    rate: Decimal = Decimal("0")
    fee: Decimal = Decimal("0.00")

    @property
    def applies(self) -> bool:
        return self.fee > 0


class PaymentAllocation(BaseModel):
    """New balances of a cycle after one payment and its late fee."""

    applied_to_debt: Decimal
    added_to_credit: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    pending_balance: Decimal
    credit_balance: Decimal
    payment_status: PaymentStatus
    late_fee: LateFeeAssessment


class CycleBalanceChange(BaseModel):
    cycle_id: int
    paid_amount: Decimal
    pending_balance: Decimal
    credit_balance: Decimal
    payment_status: PaymentStatus


class CreditApplicationEntry(BaseModel):
    """Credit from source_cycle_id used against debt_cycle_id."""

    debt_cycle_id: int
    source_cycle_id: int
    amount: Decimal


class CreditApplicationPlan(BaseModel):
    changes: list[CycleBalanceChange] = Field(default_factory=list)
    entries: list[CreditApplicationEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries
