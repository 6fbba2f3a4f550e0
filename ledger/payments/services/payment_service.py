"""
Service for registering payments against cycles.

A payment settles the cycle's pending balance first; anything beyond that
becomes credit. Paying late adds a one-time surcharge computed on what was
owed before the payment.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from common.core.clock import Clock, SystemClock
from common.core.exceptions import InvalidArgumentError, NotFoundError
from common.core.otel_axiom_exporter import get_logger, log_span_event, trace_span
from common.db.context import readonly
from ledger.cycles.models.domain.cycle import CycleUpdateModel, SubscriptionCycle
from ledger.cycles.models.domain.enums import PaymentStatus
from ledger.money import to_money
from ledger.payments.calculations import allocate_payment, calculate_late_fee
from ledger.payments.models.domain.allocation import (
    LateFeeAssessment,
    LateFeePolicy,
)
from ledger.payments.models.domain.enums import LedgerEntryKind
from ledger.payments.models.domain.payment import (
    CyclePayment,
    CyclePaymentCreateModel,
)
from ledger.payments.models.domain.summary import CycleSummary
from ledger.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork

logger = get_logger(__name__)


class PaymentService:
    """Service for the cycle payment ledger."""

    def __init__(
        self,
        uow: Optional[AbstractUnitOfWork] = None,
        clock: Optional[Clock] = None,
        late_fee_policy: Optional[LateFeePolicy] = None,
    ):
        self.uow = uow or SqlAlchemyUnitOfWork()
        self.clock = clock or SystemClock()
        self.late_fee_policy = late_fee_policy or LateFeePolicy.from_settings()

    def _assess_late_fee(self, cycle: SubscriptionCycle, now: datetime) -> LateFeeAssessment:
        if cycle.late_fee_applied or cycle.payment_status == PaymentStatus.PAID:
            return LateFeeAssessment()
        return calculate_late_fee(
            now, cycle.payment_due_date, cycle.pending_balance, self.late_fee_policy
        )

    @trace_span
    async def register_payment(
        self,
        cycle_id: int,
        amount: Decimal,
        payment_method: str,
        actor_id: Optional[int],
        payment_date: Optional[datetime] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> CyclePayment:
        """
        Record a payment on a cycle and update its balances.

        Raises:
            InvalidArgumentError: amount is not positive
            NotFoundError: cycle does not exist
        """
        try:
            amount = to_money(amount)
        except (TypeError, ArithmeticError) as e:
            raise InvalidArgumentError(f"Invalid payment amount: {amount!r}") from e
        if amount <= 0:
            raise InvalidArgumentError("Payment amount must be greater than zero")
        now = self.clock.now()
        payment_date = payment_date or now

        async with self.uow:
            cycle = await self.uow.cycles.get_for_update(cycle_id)
            if not cycle:
                raise NotFoundError(f"Cycle {cycle_id} not found")

            late_fee = self._assess_late_fee(cycle, now)
            allocation = allocate_payment(cycle, amount, late_fee)

            payment = await self.uow.payments.create(
                CyclePaymentCreateModel(
                    cycle_id=cycle_id,
                    kind=LedgerEntryKind.PAYMENT,
                    payment_date=payment_date,
                    amount=amount,
                    payment_method=payment_method,
                    reference=reference,
                    notes=notes,
                    created_by=actor_id,
                )
            )

            late_fee_fields = {}
            if late_fee.applies:
                await self.uow.payments.create(
                    CyclePaymentCreateModel(
                        cycle_id=cycle_id,
                        kind=LedgerEntryKind.SURCHARGE,
                        payment_date=payment_date,
                        amount=late_fee.fee,
                        notes=(
                            f"Late fee {late_fee.rate * 100:.2f}% "
                            f"({late_fee.days_late} days late)"
                        ),
                        created_by=actor_id,
                    )
                )
                late_fee_fields = {
                    "late_fee_applied": True,
                    "late_fee_percentage": late_fee.rate,
                }
                log_span_event(
                    f"Late fee applied to cycle {cycle_id}",
                    {
                        "cycle_id": cycle_id,
                        "days_late": late_fee.days_late,
                        "fee": str(late_fee.fee),
                    },
                )

            await self.uow.cycles.update(
                cycle_id,
                CycleUpdateModel(
                    total_amount=allocation.total_amount,
                    paid_amount=allocation.paid_amount,
                    pending_balance=allocation.pending_balance,
                    credit_balance=allocation.credit_balance,
                    payment_status=allocation.payment_status,
                    **late_fee_fields,
                ),
            )

        logger.info(
            f"Registered payment {payment.id} on cycle {cycle_id}",
            extra={
                "cycle_id": cycle_id,
                "amount": str(amount),
                "applied_to_debt": str(allocation.applied_to_debt),
                "added_to_credit": str(allocation.added_to_credit),
                "payment_status": allocation.payment_status.value,
            },
        )
        return payment

    @trace_span
    async def get_cycle_summary(self, cycle_id: int) -> CycleSummary:
        async with self.uow:
            cycle = await self.uow.cycles.get(cycle_id)
            if not cycle:
                raise NotFoundError(f"Cycle {cycle_id} not found")
            payments = await self.uow.payments.get_by_cycle(cycle_id)
        return CycleSummary.from_cycle(cycle, payments)

    async def _summaries(self, cycles: list[SubscriptionCycle]) -> list[CycleSummary]:
        grouped = await self.uow.payments.get_by_cycles([c.id for c in cycles])
        return [CycleSummary.from_cycle(c, grouped.get(c.id, [])) for c in cycles]

    @readonly
    @trace_span
    async def get_pending_cycles(self) -> list[CycleSummary]:
        """Cycles with money still owed, earliest due date first."""
        async with self.uow:
            cycles = await self.uow.cycles.get_pending()
            return await self._summaries(cycles)

    @readonly
    @trace_span
    async def get_customer_summaries(self, customer_id: int) -> list[CycleSummary]:
        """Every cycle of every subscription the customer holds, newest first."""
        async with self.uow:
            subscription_ids = await self.uow.subscriptions.get_ids_for_customer(
                customer_id
            )
            cycles = await self.uow.cycles.get_by_subscription_ids(subscription_ids)
            return await self._summaries(cycles)
