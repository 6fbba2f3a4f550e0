"""
Per-task session slots.

Each asyncio task sees its own write and read session slot, so concurrent
payments never share a session. ``transaction()`` fills a slot for the
duration of a unit of work and ``get_session()`` picks it up from there;
see common/db/scoped.py.

``@readonly`` pins a whole call chain to the read slot. Summaries and
listings use it so a report can't write to the ledger.
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from functools import wraps
from typing import Callable, Iterator, Optional, ParamSpec, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

_SLOTS: dict[bool, ContextVar[Optional[AsyncSession]]] = {
    False: ContextVar("ledger_write_session", default=None),
    True: ContextVar("ledger_read_session", default=None),
}

_readonly_pinned: ContextVar[bool] = ContextVar("ledger_readonly", default=False)


def is_readonly_forced() -> bool:
    return _readonly_pinned.get()


def resolve_readonly(readonly: bool = False) -> bool:
    """A call is readonly if it asks to be or if an outer @readonly pinned it."""
    return readonly or is_readonly_forced()


def get_current_session(readonly: bool = False) -> Optional[AsyncSession]:
    """Session bound to the slot this call resolves to, or None outside a transaction."""
    return _SLOTS[resolve_readonly(readonly)].get()


def set_current_session(session: AsyncSession, readonly: bool = False) -> Token:
    return _SLOTS[readonly].set(session)


def reset_current_session(token: Token, readonly: bool = False) -> None:
    _SLOTS[readonly].reset(token)


@contextmanager
def bound_session(session: AsyncSession, readonly: bool = False) -> Iterator[AsyncSession]:
    """Bind ``session`` to a slot until the block exits."""
    token = set_current_session(session, readonly=readonly)
    try:
        yield session
    finally:
        reset_current_session(token, readonly=readonly)


def in_transaction(readonly: bool = False) -> bool:
    return get_current_session(readonly=readonly) is not None


P = ParamSpec("P")
T = TypeVar("T")


def readonly(func: Callable[P, T]) -> Callable[P, T]:
    """
    Run an async function with every session in its call chain readonly.

    Readonly transactions are never committed.

    Usage:
        @readonly
        async def get_pending_cycles(self):
            async with self.uow:
                return await self.uow.cycles.get_pending()
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        token = _readonly_pinned.set(True)
        try:
            return await func(*args, **kwargs)
        finally:
            _readonly_pinned.reset(token)

    return wrapper
