"""
Repository for subscription cycles.
"""

from datetime import date
from typing import Optional
from sqlalchemy import func, select, text, update

from common.core.otel_axiom_exporter import get_logger, trace_span
from common.repositories.base import BaseRepository
from ledger.cycles.models.database.cycle import (
    SubscriptionCycleDetailEntity,
    SubscriptionCycleEntity,
)
from ledger.cycles.models.domain.cycle import (
    CycleCreateModel,
    CycleDetail,
    CycleDetailCreateModel,
    CycleDetailUpdateModel,
    SubscriptionCycle,
)
from ledger.cycles.models.domain.enums import PaymentStatus
from ledger.cycles.repositories.interface import CycleRepositoryInterface

logger = get_logger(__name__)

OUTSTANDING_STATUSES = [
    PaymentStatus.PENDING.value,
    PaymentStatus.PARTIAL.value,
    PaymentStatus.OVERDUE.value,
]


class CycleRepository(
    BaseRepository[SubscriptionCycleEntity, SubscriptionCycle],
    CycleRepositoryInterface,
):
    """
    Repository for subscription cycles.

    Every query refreshes already-loaded rows so reads inside a unit of work
    see the balances written earlier in the same transaction.
    """

    def __init__(self, db_session=None):
        super().__init__(SubscriptionCycleEntity, SubscriptionCycle, db_session)

    def _select(self, for_update: bool = False):
        query = select(SubscriptionCycleEntity).execution_options(
            populate_existing=True
        )
        if for_update:
            query = query.with_for_update()
        return query

    async def _first(self, query) -> Optional[SubscriptionCycle]:
        async with self._get_session() as session:
            result = await session.execute(query)
            entity = result.scalars().first()
            return self._entity_to_domain(entity) if entity else None

    async def _all(self, query) -> list[SubscriptionCycle]:
        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def get_for_update(self, cycle_id: int) -> Optional[SubscriptionCycle]:
        return await self._first(
            self._select(for_update=True).where(SubscriptionCycleEntity.id == cycle_id)
        )

    @trace_span
    async def get_active(
        self, subscription_id: int, today: date, for_update: bool = False
    ) -> Optional[SubscriptionCycle]:
        query = (
            self._select(for_update=for_update)
            .where(
                SubscriptionCycleEntity.subscription_id == subscription_id,
                SubscriptionCycleEntity.cycle_start <= today,
                SubscriptionCycleEntity.cycle_end >= today,
            )
            .order_by(
                SubscriptionCycleEntity.cycle_start.desc(),
                SubscriptionCycleEntity.id.desc(),
            )
            .limit(1)
        )
        return await self._first(query)

    @trace_span
    async def get_last_cycle_number(self, subscription_id: int) -> int:
        async with self._get_session() as session:
            result = await session.execute(
                select(func.max(SubscriptionCycleEntity.cycle_number)).where(
                    SubscriptionCycleEntity.subscription_id == subscription_id
                )
            )
            return result.scalar() or 0

    @trace_span
    async def create_with_details(
        self,
        cycle: CycleCreateModel,
        details: list[CycleDetailCreateModel],
    ) -> SubscriptionCycle:
        data = cycle.model_dump(exclude_none=True)
        data["payment_status"] = cycle.payment_status.value
        entity = SubscriptionCycleEntity(**data)

        async with self._get_session() as session:
            session.add(entity)
            await session.flush()

            session.add_all(
                [
                    SubscriptionCycleDetailEntity(
                        cycle_id=entity.id, **detail.model_dump()
                    )
                    for detail in details
                ]
            )
            await session.flush()
            cycle_id = entity.id

        logger.info(
            f"Created cycle {cycle.cycle_number} for subscription {cycle.subscription_id}",
            extra={
                "cycle_id": cycle_id,
                "subscription_id": cycle.subscription_id,
                "detail_count": len(details),
            },
        )
        return await self.get(cycle_id)

    @trace_span
    async def get_credit_or_debt_cycles(
        self, subscription_id: int
    ) -> list[SubscriptionCycle]:
        query = (
            self._select(for_update=True)
            .where(
                SubscriptionCycleEntity.subscription_id == subscription_id,
                (SubscriptionCycleEntity.credit_balance > 0)
                | (SubscriptionCycleEntity.pending_balance > 0),
            )
            .order_by(
                SubscriptionCycleEntity.cycle_start.asc(),
                SubscriptionCycleEntity.id.asc(),
            )
        )
        return await self._all(query)

    @trace_span
    async def get_latest_closed_with_credit(
        self, subscription_id: int, today: date, exclude_cycle_id: int
    ) -> Optional[SubscriptionCycle]:
        query = (
            self._select(for_update=True)
            .where(
                SubscriptionCycleEntity.subscription_id == subscription_id,
                SubscriptionCycleEntity.id != exclude_cycle_id,
                SubscriptionCycleEntity.cycle_end < today,
                SubscriptionCycleEntity.credit_balance > 0,
            )
            .order_by(
                SubscriptionCycleEntity.cycle_end.desc(),
                SubscriptionCycleEntity.id.desc(),
            )
            .limit(1)
        )
        return await self._first(query)

    @trace_span
    async def get_pending(self) -> list[SubscriptionCycle]:
        query = (
            self._select()
            .where(
                SubscriptionCycleEntity.payment_status.in_(OUTSTANDING_STATUSES),
                SubscriptionCycleEntity.pending_balance > 0,
            )
            .order_by(
                SubscriptionCycleEntity.payment_due_date.asc(),
                SubscriptionCycleEntity.id.asc(),
            )
        )
        return await self._all(query)

    @trace_span
    async def get_by_subscription_ids(
        self, subscription_ids: list[int]
    ) -> list[SubscriptionCycle]:
        if not subscription_ids:
            return []
        query = (
            self._select()
            .where(SubscriptionCycleEntity.subscription_id.in_(subscription_ids))
            .order_by(
                SubscriptionCycleEntity.cycle_start.desc(),
                SubscriptionCycleEntity.id.desc(),
            )
        )
        return await self._all(query)

    @trace_span
    async def update_detail(
        self, detail_id: int, update_model: CycleDetailUpdateModel
    ) -> Optional[CycleDetail]:
        async with self._get_session() as session:
            await session.execute(
                update(SubscriptionCycleDetailEntity)
                .where(SubscriptionCycleDetailEntity.id == detail_id)
                .values(update_model.model_dump())
            )
            await session.flush()
            result = await session.execute(
                select(SubscriptionCycleDetailEntity)
                .where(SubscriptionCycleDetailEntity.id == detail_id)
                .execution_options(populate_existing=True)
            )
            entity = result.scalar_one_or_none()
            return CycleDetail.model_validate(entity) if entity else None

    @trace_span
    async def acquire_subscription_lock(self, subscription_id: int) -> None:
        async with self._get_session() as session:
            if session.get_bind().dialect.name != "postgresql":
                return
            await session.execute(
                text("SELECT pg_advisory_xact_lock(:key)"),
                {"key": subscription_id},
            )
