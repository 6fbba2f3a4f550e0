"""Subscription repositories."""

from ledger.subscriptions.repositories.interface import SubscriptionRepositoryInterface
from ledger.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)

__all__ = [
    "SubscriptionRepositoryInterface",
    "SubscriptionRepository",
]
