# Sample data shared by unit tests
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from ledger.cycles.models.domain.cycle import CycleDetail, SubscriptionCycle
from ledger.cycles.models.domain.enums import PaymentStatus
from ledger.subscriptions.models.domain.enums import PaymentMode, SubscriptionStatus
from ledger.subscriptions.models.domain.subscription import (
    PlanProduct,
    Subscription,
    SubscriptionPlan,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()

PRODUCT_WATER = 101
PRODUCT_ICE = 102
PRODUCT_UNPLANNED = 999

SAMPLE_PLAN_PRODUCTS = {PRODUCT_WATER: 10, PRODUCT_ICE: 4}


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)


def make_subscription(
    subscription_id: int = 1,
    customer_id: int = 7,
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    price: str = "20000.00",
    payment_mode: PaymentMode = PaymentMode.ARREARS,
    payment_due_day: int = None,
) -> Subscription:
    return Subscription(
        id=subscription_id,
        customer_id=customer_id,
        plan_id=1,
        status=status,
        start_date=TODAY - timedelta(days=90),
        plan=SubscriptionPlan(
            id=1,
            name="Weekly water",
            price=Decimal(price),
            default_cycle_days=30,
            payment_mode=payment_mode,
            payment_due_day=payment_due_day,
            products=[
                PlanProduct(product_id=product_id, product_quantity=quantity)
                for product_id, quantity in SAMPLE_PLAN_PRODUCTS.items()
            ],
        ),
    )


def make_cycle(
    cycle_id: int,
    subscription_id: int = 1,
    cycle_number: int = None,
    cycle_start: date = TODAY - timedelta(days=5),
    cycle_end: date = TODAY + timedelta(days=25),
    total_amount: str = "20000.00",
    paid_amount: str = "0.00",
    pending_balance: str = "20000.00",
    credit_balance: str = "0.00",
    payment_status: PaymentStatus = PaymentStatus.PENDING,
    payment_due_date: datetime = None,
    late_fee_applied: bool = False,
    delivered: dict = None,
) -> SubscriptionCycle:
    delivered = delivered or {}
    details = []
    for index, (product_id, planned) in enumerate(SAMPLE_PLAN_PRODUCTS.items()):
        done = delivered.get(product_id, 0)
        details.append(
            CycleDetail(
                id=cycle_id * 100 + index,
                cycle_id=cycle_id,
                product_id=product_id,
                planned_quantity=planned,
                delivered_quantity=done,
                remaining_balance=max(0, planned - done),
            )
        )
    return SubscriptionCycle(
        id=cycle_id,
        subscription_id=subscription_id,
        cycle_number=cycle_number or cycle_id,
        cycle_start=cycle_start,
        cycle_end=cycle_end,
        total_amount=Decimal(total_amount),
        paid_amount=Decimal(paid_amount),
        pending_balance=Decimal(pending_balance),
        credit_balance=Decimal(credit_balance),
        payment_status=payment_status,
        payment_due_date=payment_due_date or end_of_day(cycle_end),
        late_fee_applied=late_fee_applied,
        details=details,
    )
