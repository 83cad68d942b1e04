"""Per-user delayed callbacks for auto-end and auto-post."""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[object]]


class TimerKind(str, enum.Enum):
    AUTO_END = "auto_end"
    AUTO_POST = "auto_post"


class TimerRegistry:
    """At most one pending callback per (kind, user).

    Callbacks must re-validate session state themselves; the registry only
    guarantees single-shot delivery and self-removal.
    """

    def __init__(self) -> None:
        self._tasks: dict[tuple[TimerKind, str], asyncio.Task[None]] = {}

    def arm(self, kind: TimerKind, user_id: str, delay: float, callback: TimerCallback) -> None:
        """Schedule callback after delay seconds, replacing any timer for the same key."""
        self.cancel(kind, user_id)
        key = (kind, user_id)
        self._tasks[key] = asyncio.create_task(self._run(key, delay, callback), name=f"{kind.value}:{user_id}")
        logger.info("Armed %s timer for user %s (%ss)", kind.value, user_id, delay)

    async def _run(self, key: tuple[TimerKind, str], delay: float, callback: TimerCallback) -> None:
        try:
            await asyncio.sleep(delay)
            logger.info("Firing %s timer for user %s", key[0].value, key[1])
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Timer %s for user %s failed", key[0].value, key[1])
        finally:
            if self._tasks.get(key) is asyncio.current_task():
                del self._tasks[key]

    def cancel(self, kind: TimerKind, user_id: str) -> bool:
        """Cancel a pending timer. No-op if none is armed."""
        task = self._tasks.pop((kind, user_id), None)
        if task is None:
            return False
        # A firing callback may cancel its own key; let it finish.
        if task is not asyncio.current_task():
            task.cancel()
        logger.info("Cancelled %s timer for user %s", kind.value, user_id)
        return True

    def cancel_all(self, user_id: str) -> None:
        for kind in TimerKind:
            self.cancel(kind, user_id)

    def is_armed(self, kind: TimerKind, user_id: str) -> bool:
        return (kind, user_id) in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel every pending timer and wait for them to unwind."""
        current = asyncio.current_task()
        tasks = [t for t in self._tasks.values() if t is not current]
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
