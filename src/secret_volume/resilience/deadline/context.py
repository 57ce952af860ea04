"""Resilience – DeadlineContext and deadline_aware."""
from __future__ import annotations

import asyncio
import contextlib
import inspect
from asyncio import TimeoutError as AsyncTimeoutError
from contextvars import ContextVar, Token
from typing import Awaitable, TypeVar

from secret_volume.resilience.timeouts.deadline import Deadline

__all__ = [
    "DeadlineContext",
    "DeadlineExceededError",
    "deadline_aware",
]

T = TypeVar("T")


class DeadlineExceededError(Exception):
    """Raised when the timeout or the active deadline has been exceeded."""

    def __init__(self, message: str, budget: float) -> None:
        super().__init__(message)
        self.budget = budget


_DEADLINE_VAR: ContextVar[Deadline | None] = ContextVar("_deadline", default=None)


class DeadlineContext:
    """Context-variable wrapper for propagating deadlines across async boundaries.

    A caller that wants to abandon a volume creation early (for example an HTTP
    handler whose client went away) scopes a :class:`Deadline` around the call;
    every outbound fetch made inside the scope honours it.
    """

    @staticmethod
    def set(deadline: Deadline) -> Token[Deadline | None]:
        return _DEADLINE_VAR.set(deadline)

    @staticmethod
    def get() -> Deadline | None:
        return _DEADLINE_VAR.get()

    @staticmethod
    def reset(token: Token[Deadline | None]) -> None:
        _DEADLINE_VAR.reset(token)

    @staticmethod
    @contextlib.asynccontextmanager
    async def scoped(deadline: Deadline):  # type: ignore[no-untyped-def]
        token = _DEADLINE_VAR.set(deadline)
        try:
            yield deadline
        finally:
            _DEADLINE_VAR.reset(token)


async def deadline_aware(coro: Awaitable[T], timeout: float) -> T:
    """Await *coro*, giving up after *timeout* or when the context deadline expires.

    The awaited work is cancelled on expiry, so any in-flight request it holds is
    aborted before :class:`DeadlineExceededError` is raised.
    """
    budget = timeout
    dl = _DEADLINE_VAR.get()
    if dl is not None:
        budget = dl.budget(timeout)
    if budget <= 0:
        # Close the coroutine cleanly to avoid ResourceWarning
        if inspect.iscoroutine(coro):
            coro.close()
        raise DeadlineExceededError("Deadline already exceeded", budget)
    try:
        return await asyncio.wait_for(coro, timeout=budget)
    except AsyncTimeoutError:
        raise DeadlineExceededError(f"Deadline exceeded after {budget:.2f}s", budget) from None
