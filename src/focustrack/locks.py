"""Per-key asyncio locks shared by the session manager and the challenge tracker."""

from __future__ import annotations

import asyncio


class KeyedLock:
    """One asyncio.Lock per key, dropped when no longer held or awaited."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def __call__(self, key: str) -> _KeyedLockContext:
        return _KeyedLockContext(self, key)

    def __len__(self) -> int:
        return len(self._locks)


class _KeyedLockContext:
    def __init__(self, owner: KeyedLock, key: str) -> None:
        self.owner = owner
        self.key = key

    async def __aenter__(self) -> None:
        lock = self.owner._locks.setdefault(self.key, asyncio.Lock())
        self.owner._waiters[self.key] = self.owner._waiters.get(self.key, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            self._release_waiter()
            raise

    async def __aexit__(self, *exc_info: object) -> None:
        self.owner._locks[self.key].release()
        self._release_waiter()

    def _release_waiter(self) -> None:
        remaining = self.owner._waiters[self.key] - 1
        if remaining:
            self.owner._waiters[self.key] = remaining
        else:
            del self.owner._waiters[self.key]
            del self.owner._locks[self.key]
