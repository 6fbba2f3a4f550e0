"""
Service for starting a subscription's next cycle.
"""

from typing import Optional

from common.core.clock import Clock, SystemClock
from common.core.otel_axiom_exporter import get_logger, trace_span
from ledger.cycles.models.domain.cycle import SubscriptionCycle
from ledger.cycles.services.quota_service import QuotaService
from ledger.payments.services.credit_service import CreditService
from ledger.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork

logger = get_logger(__name__)


class RolloverService:
    """
    Provision the current cycle and carry credit into it.

    Runs on demand (e.g. from the order flow or an operator action); there is
    no scheduler here.
    """

    def __init__(
        self,
        uow: Optional[AbstractUnitOfWork] = None,
        clock: Optional[Clock] = None,
    ):
        self.uow = uow or SqlAlchemyUnitOfWork()
        self.clock = clock or SystemClock()
        self.quota_service = QuotaService(self.uow, self.clock)
        self.credit_service = CreditService(self.uow, self.clock)

    @trace_span
    async def rollover(self, subscription_id: int) -> SubscriptionCycle:
        async with self.uow:
            cycle = await self.quota_service.ensure_cycle(subscription_id)
            transfer = await self.credit_service.transfer_credit(
                subscription_id, cycle.id
            )
            applied = await self.credit_service.apply_credits_to_outstanding_debt(
                subscription_id
            )
            cycle = await self.uow.cycles.get(cycle.id)

        logger.info(
            f"Rolled over subscription {subscription_id} into cycle {cycle.id}",
            extra={
                "subscription_id": subscription_id,
                "cycle_id": cycle.id,
                "credit_transferred": transfer is not None,
                "credit_applications": len(applied),
            },
        )
        return cycle
