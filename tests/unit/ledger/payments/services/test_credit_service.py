"""
Unit tests for CreditService.
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from common.core.clock import FixedClock
from common.core.exceptions import NotFoundError
from ledger.cycles.models.domain.enums import PaymentStatus
from ledger.payments.models.domain.enums import LedgerEntryKind
from ledger.payments.services.credit_service import CreditService
from tests.fakes import FakeUnitOfWork
from tests.fixtures import NOW, TODAY, make_cycle, make_subscription


@pytest.fixture
def uow():
    uow = FakeUnitOfWork()
    uow.add_subscription(make_subscription(1))
    uow.add_subscription(make_subscription(2, customer_id=8))
    return uow


@pytest.fixture
def service(uow):
    return CreditService(uow=uow, clock=FixedClock(NOW))


def closed_cycle(cycle_id, days_ago, **kwargs):
    """Cycle that ended ``days_ago`` days before today."""
    end = TODAY - timedelta(days=days_ago)
    return make_cycle(
        cycle_id, cycle_start=end - timedelta(days=30), cycle_end=end, **kwargs
    )


@pytest.mark.asyncio
class TestTransferCredit:
    """Tests for CreditService.transfer_credit."""

    async def test_moves_credit_to_target(self, service, uow):
        uow.add_cycle(
            closed_cycle(
                1,
                days_ago=1,
                paid_amount="25000.00",
                pending_balance="0.00",
                credit_balance="5000.00",
                payment_status=PaymentStatus.CREDITED,
            )
        )
        uow.add_cycle(make_cycle(2))

        entry = await service.transfer_credit(1, 2)

        assert entry.kind == LedgerEntryKind.CREDIT_TRANSFER
        assert entry.cycle_id == 2
        assert entry.source_cycle_id == 1
        assert entry.amount == Decimal("5000.00")
        assert uow.cycle(1).credit_balance == Decimal("0.00")
        assert uow.cycle(1).payment_status == PaymentStatus.PAID
        assert uow.cycle(2).credit_balance == Decimal("5000.00")

    async def test_transfer_takes_subscription_lock(self, service, uow):
        uow.add_cycle(
            closed_cycle(1, days_ago=1, pending_balance="0.00", credit_balance="10.00")
        )
        uow.add_cycle(make_cycle(2))

        await service.transfer_credit(1, 2)

        assert uow.cycles.locked_subscriptions == [1]

    async def test_transfer_adds_to_existing_credit(self, service, uow):
        uow.add_cycle(
            closed_cycle(1, days_ago=1, pending_balance="0.00", credit_balance="300.00")
        )
        uow.add_cycle(
            make_cycle(
                2,
                paid_amount="20000.00",
                pending_balance="0.00",
                credit_balance="200.00",
                payment_status=PaymentStatus.CREDITED,
            )
        )

        await service.transfer_credit(1, 2)

        assert uow.cycle(2).credit_balance == Decimal("500.00")
        assert uow.cycle(2).payment_status == PaymentStatus.CREDITED

    async def test_uses_most_recently_closed_cycle(self, service, uow):
        uow.add_cycle(
            closed_cycle(1, days_ago=40, pending_balance="0.00", credit_balance="100.00")
        )
        uow.add_cycle(
            closed_cycle(2, days_ago=5, pending_balance="0.00", credit_balance="70.00")
        )
        uow.add_cycle(make_cycle(3))

        entry = await service.transfer_credit(1, 3)

        assert entry.source_cycle_id == 2
        assert uow.cycle(1).credit_balance == Decimal("100.00")
        assert uow.cycle(3).credit_balance == Decimal("70.00")

    async def test_ignores_cycles_still_running(self, service, uow):
        uow.add_cycle(
            make_cycle(
                1,
                cycle_start=TODAY - timedelta(days=10),
                cycle_end=TODAY,
                pending_balance="0.00",
                credit_balance="100.00",
            )
        )
        uow.add_cycle(make_cycle(2, cycle_start=TODAY))

        assert await service.transfer_credit(1, 2) is None
        assert uow.cycle(2).credit_balance == Decimal("0.00")

    async def test_no_credit_is_noop(self, service, uow):
        uow.add_cycle(closed_cycle(1, days_ago=1, pending_balance="0.00"))
        uow.add_cycle(make_cycle(2))

        assert await service.transfer_credit(1, 2) is None
        assert uow.store.payments == []

    async def test_target_from_other_subscription(self, service, uow):
        uow.add_cycle(make_cycle(2, subscription_id=2))

        with pytest.raises(NotFoundError):
            await service.transfer_credit(1, 2)

    async def test_missing_target(self, service):
        with pytest.raises(NotFoundError):
            await service.transfer_credit(1, 404)


@pytest.mark.asyncio
class TestApplyCreditsToOutstandingDebt:
    """Tests for CreditService.apply_credits_to_outstanding_debt."""

    async def test_older_debt_settled_from_newer_credit(self, service, uow):
        """Cycle 1 owes 3000, cycle 2 holds 5000 of credit."""
        uow.add_cycle(closed_cycle(1, days_ago=31, pending_balance="3000.00"))
        uow.add_cycle(
            closed_cycle(
                2,
                days_ago=1,
                paid_amount="25000.00",
                pending_balance="0.00",
                credit_balance="5000.00",
                payment_status=PaymentStatus.CREDITED,
            )
        )

        entries = await service.apply_credits_to_outstanding_debt(1)

        assert uow.cycle(1).pending_balance == Decimal("0.00")
        assert uow.cycle(1).paid_amount == Decimal("3000.00")
        assert uow.cycle(1).payment_status == PaymentStatus.PAID
        assert uow.cycle(2).credit_balance == Decimal("2000.00")
        assert len(entries) == 1
        assert entries[0].kind == LedgerEntryKind.CREDIT_APPLICATION
        assert entries[0].cycle_id == 1
        assert entries[0].source_cycle_id == 2
        assert entries[0].amount == Decimal("3000.00")

    async def test_second_run_changes_nothing(self, service, uow):
        uow.add_cycle(closed_cycle(1, days_ago=31, pending_balance="3000.00"))
        uow.add_cycle(
            closed_cycle(2, days_ago=1, pending_balance="0.00", credit_balance="5000.00")
        )
        await service.apply_credits_to_outstanding_debt(1)
        cycles_before = {k: v.model_copy(deep=True) for k, v in uow.store.cycles.items()}
        payments_before = len(uow.store.payments)

        entries = await service.apply_credits_to_outstanding_debt(1)

        assert entries == []
        assert uow.store.cycles == cycles_before
        assert len(uow.store.payments) == payments_before

    async def test_debt_without_credit(self, service, uow):
        uow.add_cycle(closed_cycle(1, days_ago=31, pending_balance="3000.00"))

        assert await service.apply_credits_to_outstanding_debt(1) == []
        assert uow.cycle(1).pending_balance == Decimal("3000.00")

    async def test_other_subscriptions_untouched(self, service, uow):
        uow.add_cycle(closed_cycle(1, days_ago=31, pending_balance="3000.00"))
        uow.add_cycle(
            closed_cycle(
                2,
                days_ago=1,
                subscription_id=2,
                pending_balance="0.00",
                credit_balance="5000.00",
            )
        )

        assert await service.apply_credits_to_outstanding_debt(1) == []
        assert uow.cycle(2).credit_balance == Decimal("5000.00")

    async def test_takes_subscription_lock(self, service, uow):
        await service.apply_credits_to_outstanding_debt(1)

        assert uow.cycles.locked_subscriptions == [1]
