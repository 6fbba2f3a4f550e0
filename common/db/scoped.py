"""
Session scopes for ledger operations.

``transaction()`` opens the session a unit of work runs in and commits it
once at the end. ``get_session()`` is what repositories call: inside a
transaction it hands back the transaction's session, outside one it opens a
short-lived session that commits on its own.

    async with transaction():
        await cycle_repo.update(cycle_id, changes)
        await payment_repo.create(entry)
    # both rows committed together

Nested ``transaction()`` blocks join the outermost one, which alone commits.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from common.core.otel_axiom_exporter import get_logger
from common.db.context import bound_session, get_current_session, resolve_readonly
from common.db.session import AsyncSessionLocal, AsyncSessionLocalReadonly

logger = get_logger(__name__)


def _factory(readonly: bool):
    return AsyncSessionLocalReadonly if readonly else AsyncSessionLocal


@asynccontextmanager
async def _owned_session(
    readonly: bool, scope: str
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session, commit it on success unless readonly, roll back on error."""
    started = time.perf_counter()
    async with _factory(readonly)() as session:
        logger.debug(
            f"{scope} session opened in {(time.perf_counter() - started) * 1000:.2f}ms",
            extra={"readonly": readonly},
        )
        try:
            yield session
            if not readonly:
                committed = time.perf_counter()
                await session.commit()
                logger.debug(
                    f"{scope} commit took {(time.perf_counter() - committed) * 1000:.2f}ms"
                )
        except Exception as e:
            logger.error(f"{scope} rolled back: {e!r}")
            await session.rollback()
            raise


@asynccontextmanager
async def transaction(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Run a block in one session bound to the current task.

    Args:
        readonly: skip the commit and use the read factory. Also implied by
                  an enclosing @readonly.

    Raises:
        Exception: whatever the block raised, after the rollback
    """
    readonly = resolve_readonly(readonly)
    existing = get_current_session(readonly=readonly)
    if existing is not None:
        yield existing
        return

    async with _owned_session(readonly, "Transaction") as session:
        with bound_session(session, readonly=readonly):
            yield session


@asynccontextmanager
async def get_session(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """Session for a single repository call."""
    readonly = resolve_readonly(readonly)
    existing = get_current_session(readonly=readonly)
    if existing is not None:
        yield existing
        return

    async with _owned_session(readonly, "Operation") as session:
        yield session
