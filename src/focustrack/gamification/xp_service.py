"""XP grants with idempotency and stats bootstrap."""

from __future__ import annotations

import logging
from datetime import datetime

from focustrack.records import UserStats, XPLedgerEntry
from focustrack.store.base import SessionStore

logger = logging.getLogger(__name__)


async def get_or_create_stats(store: SessionStore, user_id: str, username: str = "") -> UserStats:
    """Get the stats document for a user, or a fresh unsaved one."""
    stats = await store.get_user_stats(user_id)
    if stats is None:
        stats = UserStats(user_id=user_id, username=username)
    return stats


async def grant_xp(
    store: SessionStore,
    stats: UserStats,
    *,
    amount: int,
    source: str,
    source_id: str,
    description: str,
    idempotency_key: str,
    server_id: str,
    now: datetime,
) -> bool:
    """Grant XP to a user. Returns True if granted, False if duplicate.

    The ledger entry is written first; ``stats.xp`` only moves when the
    ledger accepts the key. The caller saves ``stats``.
    """
    entry = XPLedgerEntry(
        user_id=stats.user_id,
        server_id=server_id,
        amount=amount,
        source=source,
        source_id=source_id,
        description=description,
        idempotency_key=idempotency_key,
        created_at=now,
    )
    if not await store.append_xp_entry(entry):
        logger.info("Duplicate XP grant skipped: %s", idempotency_key)
        return False

    stats.xp += amount
    logger.info("Granted %d XP to user %s (%s)", amount, stats.user_id, source)
    return True
