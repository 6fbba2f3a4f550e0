"""Cycle services."""

from ledger.cycles.services.quota_service import QuotaService

__all__ = ["QuotaService"]
