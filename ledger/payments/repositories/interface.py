"""
Interface for ledger storage.
"""

from abc import ABC, abstractmethod

from ledger.payments.models.domain.payment import (
    CyclePayment,
    CyclePaymentCreateModel,
)


class PaymentRepositoryInterface(ABC):
    """Append-only access to cycle ledger rows."""

    @abstractmethod
    async def create(self, create_model: CyclePaymentCreateModel) -> CyclePayment:
        pass

    @abstractmethod
    async def get_by_cycle(self, cycle_id: int) -> list[CyclePayment]:
        """Ledger rows of one cycle, newest first."""
        pass

    @abstractmethod
    async def get_by_cycles(self, cycle_ids: list[int]) -> dict[int, list[CyclePayment]]:
        """Ledger rows grouped by cycle id, newest first within each group."""
        pass
