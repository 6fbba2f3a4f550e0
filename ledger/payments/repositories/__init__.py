"""Ledger repositories."""

from ledger.payments.repositories.interface import PaymentRepositoryInterface
from ledger.payments.repositories.payment_repository import PaymentRepository

__all__ = [
    "PaymentRepositoryInterface",
    "PaymentRepository",
]
