"""
Transaction boundary for the billing services.

A unit of work exposes the repositories and makes everything done through
them inside ``async with uow:`` commit or roll back together. Entering an
already-open unit of work joins it, so a service can call another service
that shares its unit of work without splitting the transaction.
"""

from abc import ABC, abstractmethod
from contextlib import AsyncExitStack
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from common.core.exceptions import InternalError
from common.core.otel_axiom_exporter import get_logger
from common.db.scoped import transaction
from ledger.cycles.repositories.cycle_repository import CycleRepository
from ledger.cycles.repositories.interface import CycleRepositoryInterface
from ledger.payments.repositories.interface import PaymentRepositoryInterface
from ledger.payments.repositories.payment_repository import PaymentRepository
from ledger.subscriptions.repositories.interface import (
    SubscriptionRepositoryInterface,
)
from ledger.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)

logger = get_logger(__name__)


class AbstractUnitOfWork(ABC):
    subscriptions: SubscriptionRepositoryInterface
    cycles: CycleRepositoryInterface
    payments: PaymentRepositoryInterface

    def __init__(self):
        self._depth = 0

    async def __aenter__(self) -> "AbstractUnitOfWork":
        if self._depth == 0:
            await self._begin()
        self._depth += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self._depth -= 1
        if self._depth > 0:
            return False
        if exc is None:
            await self._commit()
        else:
            await self._rollback(exc)
        return False

    @abstractmethod
    async def _begin(self) -> None:
        pass

    @abstractmethod
    async def _commit(self) -> None:
        pass

    @abstractmethod
    async def _rollback(self, exc: BaseException) -> None:
        pass


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    Unit of work over ``common.db.scoped.transaction``.

    Repositories run in lazy-session mode, so inside the transaction they all
    pick up its session from the context. If a transaction is already open in
    the current context, transaction() joins it and leaves commit to its owner.
    """

    def __init__(self):
        super().__init__()
        self.subscriptions = SubscriptionRepository()
        self.cycles = CycleRepository()
        self.payments = PaymentRepository()
        self._stack: Optional[AsyncExitStack] = None

    async def _begin(self) -> None:
        self._stack = AsyncExitStack()
        try:
            await self._stack.enter_async_context(transaction())
        except SQLAlchemyError as e:
            self._stack = None
            raise InternalError("Could not open a database transaction") from e

    async def _commit(self) -> None:
        stack, self._stack = self._stack, None
        if stack is None:
            return
        try:
            await stack.aclose()
        except SQLAlchemyError as e:
            logger.error(f"Commit failed: {e!r}")
            raise InternalError("Could not commit ledger changes") from e

    async def _rollback(self, exc: BaseException) -> None:
        stack, self._stack = self._stack, None
        if stack is not None:
            try:
                await stack.__aexit__(type(exc), exc, exc.__traceback__)
            except SQLAlchemyError as e:
                if e is not exc:
                    logger.error(f"Rollback failed: {e!r}")
                    raise InternalError("Could not roll back ledger changes") from e
        if isinstance(exc, SQLAlchemyError):
            raise InternalError("Database error, ledger changes rolled back") from exc
