"""
Domain models for quota allocation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel


class QuotaItem(BaseModel):
    """One product line of an order or delivery."""

    product_id: int
    quantity: int


class ProductQuota(BaseModel):
    """
    Coverage of one requested product by the current cycle.

    covered_by_subscription + additional_quantity == requested_quantity.
    The additional part is priced by the ordering side.
    """

    product_id: int
    planned_quantity: int
    delivered_quantity: int
    remaining_balance: int
    requested_quantity: int
    covered_by_subscription: int
    additional_quantity: int


class LateFeeInfo(BaseModel):
    is_overdue: bool
    late_fee_percentage: Decimal
    late_fee_applied: bool
    payment_due_date: Optional[datetime] = None


class QuotaBreakdown(BaseModel):
    """Result of splitting an order against the subscription's current cycle."""

    subscription_id: int
    current_cycle_id: int
    products: list[ProductQuota]
    has_additional_charges: bool
    late_fee_info: LateFeeInfo

    def covered_items(self) -> list["QuotaItem"]:
        """Quantities to consume from the cycle when the order goes through."""
        return [
            QuotaItem(product_id=p.product_id, quantity=p.covered_by_subscription)
            for p in self.products
            if p.covered_by_subscription > 0
        ]
