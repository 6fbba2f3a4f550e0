"""
Service for per-cycle delivery quotas.

Every cycle entitles the subscription to a fixed quantity of each plan
product. Orders are split into the part the cycle covers and the part that
is charged on top; deliveries consume the covered part.
"""

from datetime import timedelta
from typing import Optional

from common.core.clock import Clock, SystemClock
from common.core.config import settings
from common.core.exceptions import (
    BadStateError,
    InvalidArgumentError,
    NotFoundError,
)
from common.core.otel_axiom_exporter import get_logger, trace_span
from ledger.cycles.models.domain.cycle import (
    CycleCreateModel,
    CycleDetail,
    CycleDetailCreateModel,
    CycleDetailUpdateModel,
    SubscriptionCycle,
)
from ledger.cycles.models.domain.quota import (
    LateFeeInfo,
    ProductQuota,
    QuotaBreakdown,
    QuotaItem,
)
from ledger.money import to_money
from ledger.subscriptions.utils.due_date import calculate_payment_due_date
from ledger.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork

logger = get_logger(__name__)


def _validate_items(items: list[QuotaItem]) -> None:
    for item in items:
        if item.quantity <= 0:
            raise InvalidArgumentError(
                f"Quantity for product {item.product_id} must be positive, got {item.quantity}"
            )


def split_coverage(cycle: SubscriptionCycle, items: list[QuotaItem]) -> list[ProductQuota]:
    """
    Split requested quantities into covered and additional parts.

    Repeated products draw on the same remaining balance.
    """
    remaining = {d.product_id: max(0, d.remaining_balance) for d in cycle.details}
    quotas = []
    for item in items:
        detail = cycle.detail_for(item.product_id)
        if detail is None:
            covered = 0
        else:
            covered = min(item.quantity, remaining[item.product_id])
            remaining[item.product_id] -= covered

        quotas.append(
            ProductQuota(
                product_id=item.product_id,
                planned_quantity=detail.planned_quantity if detail else 0,
                delivered_quantity=detail.delivered_quantity if detail else 0,
                remaining_balance=detail.remaining_balance if detail else 0,
                requested_quantity=item.quantity,
                covered_by_subscription=covered,
                additional_quantity=item.quantity - covered,
            )
        )
    return quotas


class QuotaService:
    """Service for cycle provisioning and quota consumption."""

    def __init__(
        self,
        uow: Optional[AbstractUnitOfWork] = None,
        clock: Optional[Clock] = None,
    ):
        self.uow = uow or SqlAlchemyUnitOfWork()
        self.clock = clock or SystemClock()

    def _late_fee_info(self, cycle: SubscriptionCycle) -> LateFeeInfo:
        is_overdue = (
            cycle.payment_status.is_outstanding()
            and cycle.pending_balance > 0
            and self.clock.now() > cycle.payment_due_date
        )
        return LateFeeInfo(
            is_overdue=is_overdue,
            late_fee_percentage=cycle.late_fee_percentage,
            late_fee_applied=cycle.late_fee_applied,
            payment_due_date=cycle.payment_due_date,
        )

    @trace_span
    async def get_current_active_cycle(
        self, subscription_id: int
    ) -> Optional[SubscriptionCycle]:
        async with self.uow:
            return await self.uow.cycles.get_active(
                subscription_id, self.clock.today()
            )

    @trace_span
    async def ensure_cycle(self, subscription_id: int) -> SubscriptionCycle:
        """
        Return the active cycle, provisioning one if the subscription has none.

        Raises:
            NotFoundError: subscription does not exist
            BadStateError: subscription is not active
        """
        today = self.clock.today()
        async with self.uow:
            await self.uow.cycles.acquire_subscription_lock(subscription_id)
            cycle = await self.uow.cycles.get_active(subscription_id, today)
            if cycle:
                return cycle

            subscription = await self.uow.subscriptions.get_with_plan(subscription_id)
            if not subscription:
                raise NotFoundError(f"Subscription {subscription_id} not found")
            if not subscription.is_active():
                raise BadStateError(
                    f"Subscription {subscription_id} is {subscription.status.value}, "
                    "cycles can only be created for active subscriptions"
                )

            plan = subscription.plan
            cycle_days = plan.default_cycle_days or settings.default_cycle_days
            cycle_end = today + timedelta(days=cycle_days)
            price = to_money(plan.price)
            cycle_number = (
                await self.uow.cycles.get_last_cycle_number(subscription_id)
            ) + 1

            cycle = await self.uow.cycles.create_with_details(
                CycleCreateModel(
                    subscription_id=subscription_id,
                    cycle_number=cycle_number,
                    cycle_start=today,
                    cycle_end=cycle_end,
                    total_amount=price,
                    pending_balance=price,
                    payment_due_date=calculate_payment_due_date(
                        today, cycle_end, plan.payment_mode, plan.payment_due_day
                    ),
                ),
                [
                    CycleDetailCreateModel(
                        product_id=product.product_id,
                        planned_quantity=product.product_quantity,
                        remaining_balance=product.product_quantity,
                    )
                    for product in plan.products
                ],
            )

        logger.info(
            f"Provisioned cycle {cycle.cycle_number} for subscription {subscription_id}",
            extra={
                "subscription_id": subscription_id,
                "cycle_id": cycle.id,
                "cycle_end": cycle.cycle_end.isoformat(),
                "total_amount": str(cycle.total_amount),
            },
        )
        return cycle

    @trace_span
    async def validate_quotas(
        self, subscription_id: int, items: list[QuotaItem]
    ) -> QuotaBreakdown:
        """
        Split an order against the current cycle without consuming anything.

        The only write is provisioning a cycle when none is active.
        """
        _validate_items(items)
        async with self.uow:
            cycle = await self.ensure_cycle(subscription_id)
            return self._breakdown(subscription_id, cycle, items)

    def _breakdown(
        self,
        subscription_id: int,
        cycle: SubscriptionCycle,
        items: list[QuotaItem],
    ) -> QuotaBreakdown:
        products = split_coverage(cycle, items)
        return QuotaBreakdown(
            subscription_id=subscription_id,
            current_cycle_id=cycle.id,
            products=products,
            has_additional_charges=any(p.additional_quantity > 0 for p in products),
            late_fee_info=self._late_fee_info(cycle),
        )

    async def _adjust_delivered(
        self, cycle: SubscriptionCycle, items: list[QuotaItem], sign: int
    ) -> list[CycleDetail]:
        delivered = {d.id: d.delivered_quantity for d in cycle.details}
        touched = {}
        for item in items:
            detail = cycle.detail_for(item.product_id)
            if detail is None:
                continue
            delivered[detail.id] = max(0, delivered[detail.id] + sign * item.quantity)
            touched[detail.id] = detail

        updated = []
        for detail_id, detail in touched.items():
            new_delivered = delivered[detail_id]
            updated.append(
                await self.uow.cycles.update_detail(
                    detail_id,
                    CycleDetailUpdateModel(
                        delivered_quantity=new_delivered,
                        remaining_balance=max(0, detail.planned_quantity - new_delivered),
                    ),
                )
            )
        return updated

    @trace_span
    async def apply_delivery(
        self, subscription_id: int, items: list[QuotaItem]
    ) -> list[CycleDetail]:
        """
        Record delivered quantities against the active cycle.

        Products without an entitlement in the cycle are ignored. Call once
        per confirmed delivery; repeating it consumes the quota again.
        """
        _validate_items(items)
        async with self.uow:
            await self.uow.cycles.acquire_subscription_lock(subscription_id)
            cycle = await self.uow.cycles.get_active(
                subscription_id, self.clock.today(), for_update=True
            )
            if not cycle:
                raise BadStateError(
                    f"Subscription {subscription_id} has no active cycle"
                )
            updated = await self._adjust_delivered(cycle, items, sign=1)

        logger.info(
            f"Applied delivery to cycle {cycle.id}",
            extra={
                "subscription_id": subscription_id,
                "cycle_id": cycle.id,
                "detail_count": len(updated),
            },
        )
        return updated

    @trace_span
    async def rollback_delivery(
        self, subscription_id: int, items: list[QuotaItem]
    ) -> list[CycleDetail]:
        """Give quota back after a cancelled order. No active cycle means nothing to undo."""
        _validate_items(items)
        async with self.uow:
            await self.uow.cycles.acquire_subscription_lock(subscription_id)
            cycle = await self.uow.cycles.get_active(
                subscription_id, self.clock.today(), for_update=True
            )
            if not cycle:
                logger.warning(
                    f"No active cycle for subscription {subscription_id}, nothing to roll back",
                    extra={"subscription_id": subscription_id},
                )
                return []
            updated = await self._adjust_delivered(cycle, items, sign=-1)

        logger.info(
            f"Rolled back delivery on cycle {cycle.id}",
            extra={
                "subscription_id": subscription_id,
                "cycle_id": cycle.id,
                "detail_count": len(updated),
            },
        )
        return updated

    @trace_span
    async def reserve_quotas(
        self, subscription_id: int, items: list[QuotaItem]
    ) -> QuotaBreakdown:
        """
        Split an order and consume its covered part in one transaction.

        Concurrent reservations for the same subscription are serialized, so
        the same remaining units are never covered twice. If the order is
        abandoned, hand the covered quantities back with rollback_delivery.
        """
        _validate_items(items)
        async with self.uow:
            cycle = await self.ensure_cycle(subscription_id)
            cycle = await self.uow.cycles.get_for_update(cycle.id)
            breakdown = self._breakdown(subscription_id, cycle, items)
            await self._adjust_delivered(cycle, breakdown.covered_items(), sign=1)

        logger.info(
            f"Reserved quota on cycle {cycle.id}",
            extra={
                "subscription_id": subscription_id,
                "cycle_id": cycle.id,
                "has_additional_charges": breakdown.has_additional_charges,
            },
        )
        return breakdown

    @trace_span
    async def get_available_quotas(self, subscription_id: int) -> list[CycleDetail]:
        """Entitlements of the current cycle, or an empty list if there can be none."""
        try:
            cycle = await self.ensure_cycle(subscription_id)
        except (NotFoundError, BadStateError) as e:
            logger.warning(
                f"No quotas available for subscription {subscription_id}: {e}",
                extra={"subscription_id": subscription_id},
            )
            return []
        return cycle.details
