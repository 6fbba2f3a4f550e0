"""
Pure ledger arithmetic.

Nothing here touches storage; the services load cycles, call these and
persist the result.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from ledger.cycles.models.domain.cycle import SubscriptionCycle
from ledger.cycles.models.domain.enums import PaymentStatus
from ledger.money import ZERO, to_money
from ledger.payments.models.domain.allocation import (
    CreditApplicationEntry,
    CreditApplicationPlan,
    CycleBalanceChange,
    LateFeeAssessment,
    LateFeePolicy,
    PaymentAllocation,
)

RATE_PRECISION = Decimal("0.0001")


def calculate_late_fee(
    now: datetime,
    due_date: datetime,
    pending_balance: Decimal,
    policy: LateFeePolicy,
) -> LateFeeAssessment:
    """
    Surcharge owed for paying after the due date.

    Days late are whole days since the due date. The first ``grace_days``
    are free; each day after adds ``daily_rate`` up to ``max_rate``.
    """
    if now <= due_date or pending_balance <= 0:
        return LateFeeAssessment()

    days_late = (now - due_date).days
    if days_late <= policy.grace_days:
        return LateFeeAssessment(days_late=days_late)

    effective_days = days_late - policy.grace_days
    rate = min(effective_days * policy.daily_rate, policy.max_rate).quantize(
        RATE_PRECISION, rounding=ROUND_HALF_UP
    )
    return LateFeeAssessment(
        days_late=days_late,
        rate=rate,
        fee=to_money(pending_balance * rate),
    )


def resolve_payment_status(
    pending_balance: Decimal,
    paid_amount: Decimal,
    credit_balance: Decimal,
    current: PaymentStatus,
) -> PaymentStatus:
    if pending_balance <= 0:
        return PaymentStatus.CREDITED if credit_balance > 0 else PaymentStatus.PAID
    if paid_amount > 0:
        return PaymentStatus.PARTIAL
    return current


def allocate_payment(
    cycle: SubscriptionCycle,
    amount: Decimal,
    late_fee: LateFeeAssessment,
) -> PaymentAllocation:
    """
    Split a payment between the cycle's debt and its credit, then add the
    late fee to the debt. The fee was assessed on the balance before the
    payment.
    """
    amount = to_money(amount)
    pending = cycle.pending_balance
    paid = cycle.paid_amount
    credit = cycle.credit_balance
    total = cycle.total_amount

    applied = min(amount, pending) if pending > 0 else ZERO
    pending -= applied
    paid += applied

    surplus = amount - applied
    if surplus > 0:
        credit += surplus

    if late_fee.applies:
        pending += late_fee.fee
        total += late_fee.fee

    return PaymentAllocation(
        applied_to_debt=applied,
        added_to_credit=surplus,
        total_amount=total,
        paid_amount=paid,
        pending_balance=pending,
        credit_balance=credit,
        payment_status=resolve_payment_status(
            pending, paid, credit, cycle.payment_status
        ),
        late_fee=late_fee,
    )


def plan_credit_application(cycles: list[SubscriptionCycle]) -> CreditApplicationPlan:
    """
    Use the subscription's pooled credit to pay off debt, oldest cycle first.

    Whatever credit is left is handed back to the credit-holding cycles
    oldest first, so the cycles that lose credit are the newest ones. Each
    unit of credit spent is attributed to the cycle that lost it.
    """
    cycles = sorted(cycles, key=lambda c: (c.cycle_start, c.id))
    available = sum((c.credit_balance for c in cycles if c.credit_balance > 0), ZERO)
    debts = [c for c in cycles if c.pending_balance > 0]
    if available <= 0 or not debts:
        return CreditApplicationPlan()

    balances = {
        c.id: {
            "paid_amount": c.paid_amount,
            "pending_balance": c.pending_balance,
            "credit_balance": c.credit_balance,
        }
        for c in cycles
    }

    remaining = available
    applications: list[tuple[int, Decimal]] = []
    for cycle in debts:
        if remaining <= 0:
            break
        applied = min(remaining, cycle.pending_balance)
        balances[cycle.id]["pending_balance"] -= applied
        balances[cycle.id]["paid_amount"] += applied
        applications.append((cycle.id, applied))
        remaining -= applied

    losses: list[tuple[int, Decimal]] = []
    leftover = remaining
    for cycle in cycles:
        if cycle.credit_balance <= 0:
            continue
        kept = min(leftover, cycle.credit_balance)
        balances[cycle.id]["credit_balance"] = kept
        leftover -= kept
        if cycle.credit_balance > kept:
            losses.append((cycle.id, cycle.credit_balance - kept))

    entries: list[CreditApplicationEntry] = []
    source_index = 0
    for debt_cycle_id, applied in applications:
        while applied > 0:
            source_cycle_id, lost = losses[source_index]
            used = min(applied, lost)
            entries.append(
                CreditApplicationEntry(
                    debt_cycle_id=debt_cycle_id,
                    source_cycle_id=source_cycle_id,
                    amount=used,
                )
            )
            applied -= used
            lost -= used
            if lost > 0:
                losses[source_index] = (source_cycle_id, lost)
            else:
                source_index += 1

    changes = []
    for cycle in cycles:
        new = balances[cycle.id]
        if (
            new["paid_amount"] == cycle.paid_amount
            and new["pending_balance"] == cycle.pending_balance
            and new["credit_balance"] == cycle.credit_balance
        ):
            continue
        changes.append(
            CycleBalanceChange(
                cycle_id=cycle.id,
                payment_status=resolve_payment_status(
                    new["pending_balance"],
                    new["paid_amount"],
                    new["credit_balance"],
                    cycle.payment_status,
                ),
                **new,
            )
        )

    return CreditApplicationPlan(changes=changes, entries=entries)
