"""Best-effort publication of session and progression events to Redis pub/sub."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

SESSION_STARTED = "pubsub:session_started"
SESSION_COMPLETED = "pubsub:session_completed"
ACHIEVEMENTS_UNLOCKED = "pubsub:achievements_unlocked"
STREAK_MILESTONE = "pubsub:streak_milestone"
LEVEL_UP = "pubsub:level_up"
WEEKLY_CHALLENGE_COMPLETED = "pubsub:weekly_challenge_completed"


async def publish(redis: object, channel: str, payload: dict[str, Any]) -> bool:
    """Publish a JSON payload. Returns False when skipped or failed; never raises."""
    if redis is None:
        return False
    try:
        await redis.publish(channel, json.dumps(payload, default=str))  # type: ignore[attr-defined]
    except Exception:
        logger.warning("Failed to publish %s", channel, exc_info=True)
        return False
    return True
