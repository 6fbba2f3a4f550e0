"""Database models for the payment ledger."""

from ledger.payments.models.database.payment import CyclePaymentEntity

__all__ = ["CyclePaymentEntity"]
