"""
Interface for subscription storage.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ledger.subscriptions.models.domain.subscription import Subscription


class SubscriptionRepositoryInterface(ABC):
    """Read access to customer subscriptions and their plans."""

    @abstractmethod
    async def get_with_plan(self, subscription_id: int) -> Optional[Subscription]:
        """Subscription with its plan and plan products, or None."""
        pass

    @abstractmethod
    async def get_ids_for_customer(self, customer_id: int) -> list[int]:
        """IDs of every subscription a customer holds, any status."""
        pass
