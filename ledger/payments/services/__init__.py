"""Ledger services."""

from ledger.payments.services.payment_service import PaymentService
from ledger.payments.services.credit_service import CreditService
from ledger.payments.services.rollover_service import RolloverService

__all__ = ["PaymentService", "CreditService", "RolloverService"]
