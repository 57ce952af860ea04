"""Volume – KeyedLock: one asyncio lock per key."""
from __future__ import annotations

import asyncio
import contextlib
from typing import AsyncIterator


class KeyedLock:
    """Serialises work per key while letting different keys run concurrently.

    Locks are created on demand and dropped once no task holds or awaits them.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @contextlib.asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
            self._waiters[key] = 0
        lock = self._locks[key]
        self._waiters[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._locks[key]
                del self._waiters[key]


__all__ = ["KeyedLock"]
