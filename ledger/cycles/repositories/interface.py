"""
Interface for cycle storage.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from ledger.cycles.models.domain.cycle import (
    CycleCreateModel,
    CycleDetail,
    CycleDetailCreateModel,
    CycleDetailUpdateModel,
    CycleUpdateModel,
    SubscriptionCycle,
)


class CycleRepositoryInterface(ABC):
    """Abstract interface for subscription cycles and their detail rows."""

    @abstractmethod
    async def get(self, cycle_id: int) -> Optional[SubscriptionCycle]:
        pass

    @abstractmethod
    async def get_for_update(self, cycle_id: int) -> Optional[SubscriptionCycle]:
        """Load a cycle and hold a row lock on it until the transaction ends."""
        pass

    @abstractmethod
    async def get_active(
        self, subscription_id: int, today: date, for_update: bool = False
    ) -> Optional[SubscriptionCycle]:
        """Cycle whose date range contains today, latest start first."""
        pass

    @abstractmethod
    async def get_last_cycle_number(self, subscription_id: int) -> int:
        """Highest cycle number of the subscription, 0 if it has none."""
        pass

    @abstractmethod
    async def create_with_details(
        self,
        cycle: CycleCreateModel,
        details: list[CycleDetailCreateModel],
    ) -> SubscriptionCycle:
        pass

    @abstractmethod
    async def get_credit_or_debt_cycles(
        self, subscription_id: int
    ) -> list[SubscriptionCycle]:
        """Locked cycles with credit or pending balance, oldest start first."""
        pass

    @abstractmethod
    async def get_latest_closed_with_credit(
        self, subscription_id: int, today: date, exclude_cycle_id: int
    ) -> Optional[SubscriptionCycle]:
        """Most recently ended cycle (before today) still holding credit, locked."""
        pass

    @abstractmethod
    async def get_pending(self) -> list[SubscriptionCycle]:
        """Cycles with money still owed, earliest due date first."""
        pass

    @abstractmethod
    async def get_by_subscription_ids(
        self, subscription_ids: list[int]
    ) -> list[SubscriptionCycle]:
        """All cycles of the given subscriptions, newest start first."""
        pass

    @abstractmethod
    async def update(
        self, cycle_id: int, update_model: CycleUpdateModel
    ) -> Optional[SubscriptionCycle]:
        pass

    @abstractmethod
    async def update_detail(
        self, detail_id: int, update_model: CycleDetailUpdateModel
    ) -> Optional[CycleDetail]:
        pass

    @abstractmethod
    async def acquire_subscription_lock(self, subscription_id: int) -> None:
        """Serialize subscription-wide operations until the transaction ends."""
        pass
