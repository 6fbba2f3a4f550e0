"""
Repository for cycle ledger rows.
"""

from sqlalchemy import select

from common.core.otel_axiom_exporter import trace_span
from common.repositories.base import BaseRepository
from ledger.payments.models.database.payment import CyclePaymentEntity
from ledger.payments.models.domain.payment import (
    CyclePayment,
    CyclePaymentCreateModel,
)
from ledger.payments.repositories.interface import PaymentRepositoryInterface


class PaymentRepository(
    BaseRepository[CyclePaymentEntity, CyclePayment],
    PaymentRepositoryInterface,
):
    """Repository for cycle ledger rows."""

    def __init__(self, db_session=None):
        super().__init__(CyclePaymentEntity, CyclePayment, db_session)

    @trace_span
    async def create(self, create_model: CyclePaymentCreateModel) -> CyclePayment:
        data = create_model.model_dump(exclude_none=True)
        data["kind"] = create_model.kind.value
        entity = CyclePaymentEntity(**data)
        async with self._get_session() as session:
            session.add(entity)
            await session.flush()
            await session.refresh(entity)
            return self._entity_to_domain(entity)

    @trace_span
    async def get_by_cycle(self, cycle_id: int) -> list[CyclePayment]:
        grouped = await self.get_by_cycles([cycle_id])
        return grouped.get(cycle_id, [])

    @trace_span
    async def get_by_cycles(self, cycle_ids: list[int]) -> dict[int, list[CyclePayment]]:
        if not cycle_ids:
            return {}
        async with self._get_session() as session:
            result = await session.execute(
                select(CyclePaymentEntity)
                .where(CyclePaymentEntity.cycle_id.in_(cycle_ids))
                .order_by(
                    CyclePaymentEntity.payment_date.desc(),
                    CyclePaymentEntity.id.desc(),
                )
            )
            payments = self._entities_to_domain(result.scalars().all())

        grouped: dict[int, list[CyclePayment]] = {}
        for payment in payments:
            grouped.setdefault(payment.cycle_id, []).append(payment)
        return grouped
