"""
Read models for cycle balances.
"""

from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from ledger.cycles.models.domain.cycle import SubscriptionCycle
from ledger.cycles.models.domain.enums import PaymentStatus
from ledger.payments.models.domain.payment import CyclePayment


class CycleSummary(BaseModel):
    """Balances of a cycle together with its ledger, newest entry first."""

    cycle_id: int
    subscription_id: int
    cycle_number: int
    cycle_start: date
    cycle_end: date
    total_amount: Decimal
    paid_amount: Decimal
    pending_balance: Decimal
    credit_balance: Decimal
    payment_status: PaymentStatus
    payment_due_date: datetime
    late_fee_applied: bool
    late_fee_percentage: Decimal
    payments: list[CyclePayment] = Field(default_factory=list)

    @classmethod
    def from_cycle(
        cls, cycle: SubscriptionCycle, payments: list[CyclePayment]
    ) -> "CycleSummary":
        return cls(
            cycle_id=cycle.id,
            subscription_id=cycle.subscription_id,
            cycle_number=cycle.cycle_number,
            cycle_start=cycle.cycle_start,
            cycle_end=cycle.cycle_end,
            total_amount=cycle.total_amount,
            paid_amount=cycle.paid_amount,
            pending_balance=cycle.pending_balance,
            credit_balance=cycle.credit_balance,
            payment_status=cycle.payment_status,
            payment_due_date=cycle.payment_due_date,
            late_fee_applied=cycle.late_fee_applied,
            late_fee_percentage=cycle.late_fee_percentage,
            payments=payments,
        )
