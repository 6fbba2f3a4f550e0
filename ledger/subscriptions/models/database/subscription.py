"""
Database entities for plans and customer subscriptions.
"""

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Integer, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, MoneyType


class SubscriptionPlanEntity(Base):
    """
    Subscription plan: cycle price, cycle length and due-date rules.
    """

    __tablename__ = "subscription_plans"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    price = Column(MoneyType, nullable=False, server_default="0")
    default_cycle_days = Column(Integer, nullable=False, server_default="30")
    payment_mode = Column(
        String(20), nullable=False, server_default="ARREARS"
    )  # ADVANCE, ARREARS
    payment_due_day = Column(Integer, nullable=True)  # day of month, optional

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    products = relationship(
        "SubscriptionPlanProductEntity",
        lazy="selectin",
        order_by="SubscriptionPlanProductEntity.id",
    )


class SubscriptionPlanProductEntity(Base):
    """Entitlement template: how many units of a product each cycle includes."""

    __tablename__ = "subscription_plan_products"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    plan_id = Column(
        BigIntegerType,
        ForeignKey("subscription_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Product catalog lives outside the ledger, no FK
    product_id = Column(BigIntegerType, nullable=False)
    product_quantity = Column(Integer, nullable=False)


class CustomerSubscriptionEntity(Base):
    """
    Customer subscription database entity.

    Customers live outside the ledger, so customer_id carries no FK.
    """

    __tablename__ = "customer_subscriptions"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(BigIntegerType, nullable=False, index=True)
    plan_id = Column(
        BigIntegerType,
        ForeignKey("subscription_plans.id"),
        nullable=False,
        index=True,
    )
    status = Column(
        String(20), nullable=False, index=True
    )  # ACTIVE, PAUSED, CANCELLED, EXPIRED
    start_date = Column(Date, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    plan = relationship("SubscriptionPlanEntity", lazy="selectin")

    __table_args__ = (Index("idx_customer_subscription_status", "customer_id", "status"),)
