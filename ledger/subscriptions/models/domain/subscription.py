"""
Domain models for subscriptions and plans.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from ledger.subscriptions.models.domain.enums import PaymentMode, SubscriptionStatus


class PlanProduct(BaseModel):
    """Units of one product included in every cycle of a plan."""

    model_config = ConfigDict(from_attributes=True)

    product_id: int
    product_quantity: int


class SubscriptionPlan(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Decimal
    default_cycle_days: int = 30
    payment_mode: PaymentMode = PaymentMode.ARREARS
    payment_due_day: Optional[int] = None
    products: list[PlanProduct] = Field(default_factory=list)


class Subscription(BaseModel):
    """
    A customer's subscription to a plan.

    The ledger only reads it: status gates cycle provisioning and the plan
    supplies price and entitlements.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    plan_id: int
    status: SubscriptionStatus
    start_date: date
    plan: SubscriptionPlan

    def is_active(self) -> bool:
        return self.status.can_provision_cycles()
