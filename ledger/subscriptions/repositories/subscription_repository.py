"""
Repository for customer subscriptions.
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from common.core.otel_axiom_exporter import trace_span
from common.repositories.base import BaseRepository
from ledger.subscriptions.models.database.subscription import (
    CustomerSubscriptionEntity,
    SubscriptionPlanEntity,
)
from ledger.subscriptions.models.domain.subscription import Subscription
from ledger.subscriptions.repositories.interface import (
    SubscriptionRepositoryInterface,
)


class SubscriptionRepository(
    BaseRepository[CustomerSubscriptionEntity, Subscription],
    SubscriptionRepositoryInterface,
):
    """Repository for customer subscriptions."""

    def __init__(self, db_session=None):
        super().__init__(CustomerSubscriptionEntity, Subscription, db_session)

    @trace_span
    async def get_with_plan(self, subscription_id: int) -> Optional[Subscription]:
        async with self._get_session() as session:
            result = await session.execute(
                select(CustomerSubscriptionEntity)
                .options(
                    selectinload(CustomerSubscriptionEntity.plan).selectinload(
                        SubscriptionPlanEntity.products
                    )
                )
                .where(CustomerSubscriptionEntity.id == subscription_id)
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def get_ids_for_customer(self, customer_id: int) -> list[int]:
        async with self._get_session() as session:
            result = await session.execute(
                select(CustomerSubscriptionEntity.id)
                .where(CustomerSubscriptionEntity.customer_id == customer_id)
                .order_by(CustomerSubscriptionEntity.id)
            )
            return list(result.scalars().all())
