"""
Domain models for ledger entries.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator

from ledger.cycles.models.domain.cycle import as_utc
from ledger.payments.models.domain.enums import LedgerEntryKind


class CyclePayment(BaseModel):
    """One append-only row of a cycle's payment ledger."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    cycle_id: int
    kind: LedgerEntryKind
    payment_date: datetime
    amount: Decimal
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    source_cycle_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @field_validator("payment_date", "created_at")
    @classmethod
    def normalize_timestamps(cls, v):
        return as_utc(v)


class CyclePaymentCreateModel(BaseModel):
    cycle_id: int
    kind: LedgerEntryKind
    payment_date: datetime
    amount: Decimal
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    source_cycle_id: Optional[int] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("ledger amounts must be positive")
        return v
