# Database and ledger fixtures shared by every test module
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from common.core.clock import FixedClock
from common.db.base import Base
from ledger.cycles.models.database.cycle import (
    SubscriptionCycleDetailEntity,
    SubscriptionCycleEntity,
)
from ledger.payments.models.database.payment import CyclePaymentEntity  # noqa: F401
from ledger.subscriptions.models.database.subscription import (
    CustomerSubscriptionEntity,
    SubscriptionPlanEntity,
    SubscriptionPlanProductEntity,
)
from tests.fixtures import (
    NOW,
    PRODUCT_ICE,
    PRODUCT_WATER,
    SAMPLE_PLAN_PRODUCTS,
    TODAY,
    end_of_day,
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """In-memory SQLite engine with the ledger schema created."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_connection(test_engine):
    """One connection per test; everything it did is rolled back afterwards."""
    async with test_engine.connect() as connection:
        trans = await connection.begin()
        yield connection
        await trans.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_connection):
    """
    Sessions bound to the test connection.

    A unit of work "commit" only releases a savepoint, so the outer test
    transaction still discards it.
    """
    return async_sessionmaker(
        bind=test_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(test_session_factory):
    """Session for seeding rows directly."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function", autouse=True)
async def patch_lazy_sessions(test_session_factory, monkeypatch):
    """Point transaction() and get_session() at the test connection."""
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", test_session_factory)
    monkeypatch.setattr(
        "common.db.scoped.AsyncSessionLocalReadonly", test_session_factory
    )


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest_asyncio.fixture(scope="function")
async def sample_plan(test_db: AsyncSession):
    """Plan with two products: 10 water and 4 ice per cycle."""
    plan = SubscriptionPlanEntity(
        name="Weekly water",
        price=Decimal("20000.00"),
        default_cycle_days=30,
        payment_mode="ARREARS",
    )
    test_db.add(plan)
    await test_db.flush()
    test_db.add_all(
        [
            SubscriptionPlanProductEntity(
                plan_id=plan.id, product_id=PRODUCT_WATER, product_quantity=10
            ),
            SubscriptionPlanProductEntity(
                plan_id=plan.id, product_id=PRODUCT_ICE, product_quantity=4
            ),
        ]
    )
    await test_db.commit()
    await test_db.refresh(plan)
    return plan


async def _create_subscription(test_db, plan, customer_id=7, status="ACTIVE"):
    subscription = CustomerSubscriptionEntity(
        customer_id=customer_id,
        plan_id=plan.id,
        status=status,
        start_date=TODAY - timedelta(days=90),
    )
    test_db.add(subscription)
    await test_db.commit()
    await test_db.refresh(subscription)
    return subscription


@pytest_asyncio.fixture(scope="function")
async def sample_subscription(test_db: AsyncSession, sample_plan):
    """Active subscription of customer 7 to the sample plan."""
    return await _create_subscription(test_db, sample_plan)


@pytest_asyncio.fixture(scope="function")
async def paused_subscription(test_db: AsyncSession, sample_plan):
    return await _create_subscription(test_db, sample_plan, status="PAUSED")


async def create_cycle_entity(
    test_db: AsyncSession,
    subscription_id: int,
    cycle_number: int,
    cycle_start: date,
    cycle_end: date,
    total_amount: str = "20000.00",
    paid_amount: str = "0.00",
    pending_balance: str = "20000.00",
    credit_balance: str = "0.00",
    payment_status: str = "PENDING",
    payment_due_date: datetime = None,
    delivered: dict = None,
):
    """Insert a cycle with one detail row per sample plan product."""
    delivered = delivered or {}
    cycle = SubscriptionCycleEntity(
        subscription_id=subscription_id,
        cycle_number=cycle_number,
        cycle_start=cycle_start,
        cycle_end=cycle_end,
        total_amount=Decimal(total_amount),
        paid_amount=Decimal(paid_amount),
        pending_balance=Decimal(pending_balance),
        credit_balance=Decimal(credit_balance),
        payment_status=payment_status,
        payment_due_date=payment_due_date
        or end_of_day(cycle_end),
    )
    test_db.add(cycle)
    await test_db.flush()
    for product_id, planned in SAMPLE_PLAN_PRODUCTS.items():
        done = delivered.get(product_id, 0)
        test_db.add(
            SubscriptionCycleDetailEntity(
                cycle_id=cycle.id,
                product_id=product_id,
                planned_quantity=planned,
                delivered_quantity=done,
                remaining_balance=max(0, planned - done),
            )
        )
    await test_db.commit()
    return cycle


@pytest_asyncio.fixture(scope="function")
async def current_cycle(test_db: AsyncSession, sample_subscription):
    """Cycle 2 of the sample subscription, running today."""
    return await create_cycle_entity(
        test_db,
        sample_subscription.id,
        cycle_number=2,
        cycle_start=TODAY - timedelta(days=5),
        cycle_end=TODAY + timedelta(days=25),
    )


@pytest_asyncio.fixture(scope="function")
async def previous_cycle(test_db: AsyncSession, sample_subscription):
    """Cycle 1 of the sample subscription, closed before today."""
    return await create_cycle_entity(
        test_db,
        sample_subscription.id,
        cycle_number=1,
        cycle_start=TODAY - timedelta(days=36),
        cycle_end=TODAY - timedelta(days=6),
    )


@pytest.fixture
def cycle_factory(test_db: AsyncSession):
    """Insert cycles for a subscription; see create_cycle_entity for arguments."""

    async def _create(subscription_id: int, **kwargs):
        return await create_cycle_entity(test_db, subscription_id, **kwargs)

    return _create
