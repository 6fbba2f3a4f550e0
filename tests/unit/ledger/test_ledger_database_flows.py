"""
Service flows against the SQLite test database.

Exercises the services with their default SQLAlchemy unit of work, so every
repository query runs for real.
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from common.core.clock import FixedClock
from common.core.exceptions import BadStateError
from ledger.cycles.models.domain.enums import PaymentStatus
from ledger.cycles.models.domain.quota import QuotaItem
from ledger.cycles.repositories.cycle_repository import CycleRepository
from ledger.cycles.services.quota_service import QuotaService
from ledger.payments.models.domain.enums import LedgerEntryKind
from ledger.payments.repositories.payment_repository import PaymentRepository
from ledger.payments.services.credit_service import CreditService
from ledger.payments.services.payment_service import PaymentService
from ledger.payments.services.rollover_service import RolloverService
from tests.fixtures import NOW, PRODUCT_WATER, TODAY


@pytest.mark.asyncio
class TestPaymentFlow:
    """PaymentService with the database unit of work."""

    async def test_late_payment(self, sample_subscription, cycle_factory, clock):
        cycle = await cycle_factory(
            sample_subscription.id,
            cycle_number=1,
            cycle_start=TODAY - timedelta(days=40),
            cycle_end=TODAY - timedelta(days=10),
            total_amount="5000.00",
            pending_balance="5000.00",
            payment_due_date=NOW - timedelta(days=10),
        )
        service = PaymentService(clock=clock)

        await service.register_payment(cycle.id, Decimal("5000"), "CASH", actor_id=3)

        summary = await service.get_cycle_summary(cycle.id)
        assert summary.pending_balance == Decimal("700.00")
        assert summary.paid_amount == Decimal("5000.00")
        assert summary.total_amount == Decimal("5700.00")
        assert summary.payment_status == PaymentStatus.PARTIAL
        assert summary.late_fee_applied is True
        assert {p.kind for p in summary.payments} == {
            LedgerEntryKind.PAYMENT,
            LedgerEntryKind.SURCHARGE,
        }

    async def test_overpayment(self, sample_subscription, current_cycle, clock):
        service = PaymentService(clock=clock)

        await service.register_payment(
            current_cycle.id, Decimal("25000"), "TRANSFER", actor_id=3
        )

        summary = await service.get_cycle_summary(current_cycle.id)
        assert summary.pending_balance == Decimal("0.00")
        assert summary.credit_balance == Decimal("5000.00")
        assert summary.payment_status == PaymentStatus.CREDITED

    async def test_pending_and_customer_summaries(
        self, sample_subscription, previous_cycle, current_cycle, clock
    ):
        service = PaymentService(clock=clock)
        await service.register_payment(
            current_cycle.id, Decimal("20000"), "CASH", actor_id=3
        )

        pending = await service.get_pending_cycles()
        customer = await service.get_customer_summaries(sample_subscription.customer_id)

        assert [s.cycle_id for s in pending] == [previous_cycle.id]
        assert [s.cycle_id for s in customer] == [current_cycle.id, previous_cycle.id]
        assert customer[0].payment_status == PaymentStatus.PAID
        assert len(customer[0].payments) == 1
        assert customer[1].payments == []


@pytest.mark.asyncio
class TestCreditFlow:
    """CreditService with the database unit of work."""

    async def test_credit_settles_older_debt(self, sample_subscription, cycle_factory, clock):
        debt = await cycle_factory(
            sample_subscription.id,
            cycle_number=1,
            cycle_start=TODAY - timedelta(days=60),
            cycle_end=TODAY - timedelta(days=31),
            pending_balance="3000.00",
        )
        credit = await cycle_factory(
            sample_subscription.id,
            cycle_number=2,
            cycle_start=TODAY - timedelta(days=30),
            cycle_end=TODAY - timedelta(days=1),
            paid_amount="25000.00",
            pending_balance="0.00",
            credit_balance="5000.00",
            payment_status="CREDITED",
        )
        service = CreditService(clock=clock)

        entries = await service.apply_credits_to_outstanding_debt(sample_subscription.id)
        again = await service.apply_credits_to_outstanding_debt(sample_subscription.id)

        repo = CycleRepository()
        debt_after = await repo.get(debt.id)
        credit_after = await repo.get(credit.id)
        assert debt_after.pending_balance == Decimal("0.00")
        assert debt_after.paid_amount == Decimal("3000.00")
        assert debt_after.payment_status == PaymentStatus.PAID
        assert credit_after.credit_balance == Decimal("2000.00")
        assert [(e.cycle_id, e.source_cycle_id) for e in entries] == [(debt.id, credit.id)]
        assert again == []

    async def test_transfer_into_running_cycle(
        self, sample_subscription, cycle_factory, current_cycle, clock
    ):
        source = await cycle_factory(
            sample_subscription.id,
            cycle_number=1,
            cycle_start=TODAY - timedelta(days=36),
            cycle_end=TODAY - timedelta(days=6),
            paid_amount="20400.00",
            pending_balance="0.00",
            credit_balance="400.00",
            payment_status="CREDITED",
        )
        service = CreditService(clock=clock)

        entry = await service.transfer_credit(sample_subscription.id, current_cycle.id)

        repo = CycleRepository()
        assert (await repo.get(source.id)).credit_balance == Decimal("0.00")
        assert (await repo.get(current_cycle.id)).credit_balance == Decimal("400.00")
        ledger = await PaymentRepository().get_by_cycle(current_cycle.id)
        assert [p.id for p in ledger] == [entry.id]


@pytest.mark.asyncio
class TestQuotaFlow:
    """QuotaService and RolloverService with the database unit of work."""

    async def test_provision_and_reserve(self, sample_subscription, clock):
        service = QuotaService(clock=clock)

        cycle = await service.ensure_cycle(sample_subscription.id)
        again = await service.ensure_cycle(sample_subscription.id)
        first = await service.reserve_quotas(
            sample_subscription.id, [QuotaItem(product_id=PRODUCT_WATER, quantity=8)]
        )
        second = await service.reserve_quotas(
            sample_subscription.id, [QuotaItem(product_id=PRODUCT_WATER, quantity=5)]
        )

        assert again.id == cycle.id
        assert cycle.cycle_number == 1
        assert cycle.total_amount == Decimal("20000.00")
        assert first.products[0].covered_by_subscription == 8
        assert second.products[0].covered_by_subscription == 2
        assert second.products[0].additional_quantity == 3

        available = await service.get_available_quotas(sample_subscription.id)
        water = next(d for d in available if d.product_id == PRODUCT_WATER)
        assert water.delivered_quantity == 10
        assert water.remaining_balance == 0

    async def test_paused_subscription(self, paused_subscription, clock):
        service = QuotaService(clock=clock)

        with pytest.raises(BadStateError):
            await service.ensure_cycle(paused_subscription.id)
        assert await service.get_current_active_cycle(paused_subscription.id) is None

    async def test_rollover_carries_credit(self, sample_subscription, cycle_factory, clock):
        previous = await cycle_factory(
            sample_subscription.id,
            cycle_number=1,
            cycle_start=TODAY - timedelta(days=31),
            cycle_end=TODAY - timedelta(days=1),
            payment_due_date=NOW,
        )
        await PaymentService(clock=clock).register_payment(
            previous.id, Decimal("21000"), "CASH", actor_id=3
        )

        cycle = await RolloverService(clock=FixedClock(NOW)).rollover(
            sample_subscription.id
        )

        assert cycle.cycle_number == 2
        assert cycle.cycle_start == TODAY
        assert cycle.pending_balance == Decimal("19000.00")
        assert cycle.paid_amount == Decimal("1000.00")
        assert cycle.credit_balance == Decimal("0.00")
        assert cycle.payment_status == PaymentStatus.PARTIAL
