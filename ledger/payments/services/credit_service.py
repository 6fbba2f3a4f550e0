"""
Service for moving credit between cycles of a subscription.

Credit is money a customer paid beyond what a cycle owed. It is carried
forward into the next cycle at rollover and used to settle older debt.
"""

from typing import Optional

from common.core.clock import Clock, SystemClock
from common.core.exceptions import NotFoundError
from common.core.otel_axiom_exporter import get_logger, trace_span
from ledger.cycles.models.domain.cycle import CycleUpdateModel
from ledger.money import ZERO
from ledger.payments.calculations import (
    plan_credit_application,
    resolve_payment_status,
)
from ledger.payments.models.domain.enums import LedgerEntryKind
from ledger.payments.models.domain.payment import (
    CyclePayment,
    CyclePaymentCreateModel,
)
from ledger.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork

logger = get_logger(__name__)


class CreditService:
    """Service for credit transfer and credit application."""

    def __init__(
        self,
        uow: Optional[AbstractUnitOfWork] = None,
        clock: Optional[Clock] = None,
    ):
        self.uow = uow or SqlAlchemyUnitOfWork()
        self.clock = clock or SystemClock()

    @trace_span
    async def transfer_credit(
        self, subscription_id: int, target_cycle_id: int
    ) -> Optional[CyclePayment]:
        """
        Move the credit of the most recently closed cycle into the target cycle.

        The credit is added to whatever the target already holds and the
        source is left with none. Returns the CREDIT_TRANSFER ledger row, or
        None when there was no credit to move.

        Raises:
            NotFoundError: target cycle does not exist or belongs to another subscription
        """
        now = self.clock.now()
        async with self.uow:
            await self.uow.cycles.acquire_subscription_lock(subscription_id)
            target = await self.uow.cycles.get_for_update(target_cycle_id)
            if not target or target.subscription_id != subscription_id:
                raise NotFoundError(
                    f"Cycle {target_cycle_id} not found for subscription {subscription_id}"
                )

            source = await self.uow.cycles.get_latest_closed_with_credit(
                subscription_id, self.clock.today(), exclude_cycle_id=target_cycle_id
            )
            if not source:
                logger.debug(
                    f"No closed cycle with credit for subscription {subscription_id}",
                    extra={"subscription_id": subscription_id},
                )
                return None

            amount = source.credit_balance
            target_credit = target.credit_balance + amount

            await self.uow.cycles.update(
                source.id,
                CycleUpdateModel(
                    credit_balance=ZERO,
                    payment_status=resolve_payment_status(
                        source.pending_balance,
                        source.paid_amount,
                        ZERO,
                        source.payment_status,
                    ),
                ),
            )
            await self.uow.cycles.update(
                target.id,
                CycleUpdateModel(
                    credit_balance=target_credit,
                    payment_status=resolve_payment_status(
                        target.pending_balance,
                        target.paid_amount,
                        target_credit,
                        target.payment_status,
                    ),
                ),
            )
            entry = await self.uow.payments.create(
                CyclePaymentCreateModel(
                    cycle_id=target.id,
                    kind=LedgerEntryKind.CREDIT_TRANSFER,
                    payment_date=now,
                    amount=amount,
                    source_cycle_id=source.id,
                    notes=f"Credit carried over from cycle {source.cycle_number}",
                )
            )

        logger.info(
            f"Transferred credit from cycle {source.id} to cycle {target.id}",
            extra={
                "subscription_id": subscription_id,
                "source_cycle_id": source.id,
                "target_cycle_id": target.id,
                "amount": str(amount),
            },
        )
        return entry

    @trace_span
    async def apply_credits_to_outstanding_debt(
        self, subscription_id: int
    ) -> list[CyclePayment]:
        """
        Settle outstanding cycles of a subscription with its pooled credit.

        Debt is paid oldest cycle first. Running it again without new
        payments in between changes nothing.
        """
        now = self.clock.now()
        async with self.uow:
            await self.uow.cycles.acquire_subscription_lock(subscription_id)
            cycles = await self.uow.cycles.get_credit_or_debt_cycles(subscription_id)
            plan = plan_credit_application(cycles)
            if plan.is_empty:
                return []

            for change in plan.changes:
                await self.uow.cycles.update(
                    change.cycle_id,
                    CycleUpdateModel(
                        paid_amount=change.paid_amount,
                        pending_balance=change.pending_balance,
                        credit_balance=change.credit_balance,
                        payment_status=change.payment_status,
                    ),
                )

            entries = []
            for application in plan.entries:
                entries.append(
                    await self.uow.payments.create(
                        CyclePaymentCreateModel(
                            cycle_id=application.debt_cycle_id,
                            kind=LedgerEntryKind.CREDIT_APPLICATION,
                            payment_date=now,
                            amount=application.amount,
                            source_cycle_id=application.source_cycle_id,
                            notes="Credit applied to outstanding balance",
                        )
                    )
                )

        logger.info(
            f"Applied credit to {len(entries)} debts of subscription {subscription_id}",
            extra={
                "subscription_id": subscription_id,
                "total_applied": str(sum((e.amount for e in entries), ZERO)),
            },
        )
        return entries
