"""
In-process keyed lock

Serializes work per key (e.g. a reservation id) inside one service process.
Locks are created on first use and dropped once nobody holds or waits on them.
"""

from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager

import anyio

from src.platform.logging.loguru_io import Logger


class KeyedLock:
    def __init__(self, *, name: str = 'lock') -> None:
        self._name = name
        self._locks: dict[Hashable, anyio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, anyio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                Logger.base.debug(f'🔒 [{self._name.upper()}] Acquired {key}')
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]
            Logger.base.debug(f'🔓 [{self._name.upper()}] Released {key}')

    def is_held(self, key: Hashable) -> bool:
        return key in self._locks and self._locks[key].locked()
