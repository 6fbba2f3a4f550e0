"""
Domain models for subscription cycles.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledger.cycles.models.domain.enums import PaymentStatus


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CycleDetail(BaseModel):
    """
    Entitlement of one product within a cycle.

    remaining_balance is always max(0, planned_quantity - delivered_quantity).
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    cycle_id: int
    product_id: int
    planned_quantity: int
    delivered_quantity: int = 0
    remaining_balance: int


class SubscriptionCycle(BaseModel):
    """
    One billing period of a subscription.

    Balances are stored denormalized for fast reads; every change to them has
    a matching row in the cycle's payment ledger.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
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

    late_fee_applied: bool = False
    late_fee_percentage: Decimal = Decimal("0")

    notes: Optional[str] = None
    details: list[CycleDetail] = Field(default_factory=list)

    @field_validator("payment_due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return as_utc(v)

    def contains(self, day: date) -> bool:
        return self.cycle_start <= day <= self.cycle_end

    def detail_for(self, product_id: int) -> Optional[CycleDetail]:
        for detail in self.details:
            if detail.product_id == product_id:
                return detail
        return None


class CycleCreateModel(BaseModel):
    """Model for provisioning a cycle."""

    subscription_id: int
    cycle_number: int
    cycle_start: date
    cycle_end: date
    total_amount: Decimal
    paid_amount: Decimal = Decimal("0.00")
    pending_balance: Decimal
    credit_balance: Decimal = Decimal("0.00")
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_due_date: datetime
    notes: Optional[str] = None


class CycleDetailCreateModel(BaseModel):
    product_id: int
    planned_quantity: int
    delivered_quantity: int = 0
    remaining_balance: int


class CycleUpdateModel(BaseModel):
    """Balance/status changes written by the payment and credit services."""

    total_amount: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None
    pending_balance: Optional[Decimal] = None
    credit_balance: Optional[Decimal] = None
    payment_status: Optional[str] = None
    late_fee_applied: Optional[bool] = None
    late_fee_percentage: Optional[Decimal] = None

    @field_validator("payment_status", mode="before")
    @classmethod
    def validate_status(cls, v):
        if isinstance(v, PaymentStatus):
            return v.value
        return v


class CycleDetailUpdateModel(BaseModel):
    delivered_quantity: int
    remaining_balance: int
