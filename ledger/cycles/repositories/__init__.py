"""Cycle repositories."""

from ledger.cycles.repositories.interface import CycleRepositoryInterface
from ledger.cycles.repositories.cycle_repository import CycleRepository

__all__ = ["CycleRepositoryInterface", "CycleRepository"]
