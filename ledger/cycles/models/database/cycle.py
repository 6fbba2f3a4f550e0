"""
Database entities for subscription cycles.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, MoneyType


class SubscriptionCycleEntity(Base):
    """
    Subscription cycle database entity.

    Balances are denormalized here; cycle_payments holds the ledger they
    come from.
    """

    __tablename__ = "subscription_cycles"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    subscription_id = Column(
        BigIntegerType,
        ForeignKey("customer_subscriptions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    cycle_number = Column(Integer, nullable=False)

    # Inclusive date range
    cycle_start = Column(Date, nullable=False)
    cycle_end = Column(Date, nullable=False)

    # Balances
    total_amount = Column(MoneyType, nullable=False, server_default="0")
    paid_amount = Column(MoneyType, nullable=False, server_default="0")
    pending_balance = Column(MoneyType, nullable=False, server_default="0")
    credit_balance = Column(MoneyType, nullable=False, server_default="0")
    payment_status = Column(
        String(20), nullable=False, server_default="PENDING", index=True
    )  # PENDING, PARTIAL, PAID, OVERDUE, CREDITED
    payment_due_date = Column(DateTime(timezone=True), nullable=False)

    # Surcharge is applied at most once per cycle
    late_fee_applied = Column(Boolean, nullable=False, server_default=false())
    late_fee_percentage = Column(Numeric(5, 4), nullable=False, server_default="0")

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    details = relationship(
        "SubscriptionCycleDetailEntity",
        lazy="selectin",
        order_by="SubscriptionCycleDetailEntity.id",
    )

    __table_args__ = (
        UniqueConstraint("subscription_id", "cycle_number", name="uq_cycle_number"),
        Index("idx_cycle_subscription_dates", "subscription_id", "cycle_start", "cycle_end"),
        Index("idx_cycle_due_date", "payment_due_date"),
    )


class SubscriptionCycleDetailEntity(Base):
    """Per-product entitlement within a cycle."""

    __tablename__ = "subscription_cycle_details"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    cycle_id = Column(
        BigIntegerType,
        ForeignKey("subscription_cycles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(BigIntegerType, nullable=False)
    planned_quantity = Column(Integer, nullable=False)
    delivered_quantity = Column(Integer, nullable=False, server_default="0")
    remaining_balance = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("cycle_id", "product_id", name="uq_cycle_detail_product"),
    )
