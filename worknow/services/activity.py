"""Per-user activity history and pub/sub notifications.

Both are best effort: failures are logged and reported as ``False``.
Pub/sub delivery is at-most-once and nothing is persisted for late
subscribers.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

ACTIVITY_PREFIX = "activity:"
ACTIVITY_MAX_ENTRIES = 100
ACTIVITY_TTL_SECONDS = 86400


def activity_key(user_id: str) -> str:
    return f"{ACTIVITY_PREFIX}{user_id}"


class ActivityTracker:
    """Capped, most-recent-first activity list per user."""

    def __init__(
        self,
        client: Redis,
        *,
        max_entries: int = ACTIVITY_MAX_ENTRIES,
        ttl_seconds: int = ACTIVITY_TTL_SECONDS,
    ) -> None:
        self.client = client
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds

    async def track_user_activity(self, user_id: str, action: Any) -> bool:
        """Prepend ``{action, timestamp}``, trim to the cap and refresh the TTL."""

        key = activity_key(user_id)
        entry = {
            "action": action,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self.client.lpush(key, json.dumps(entry, default=str, ensure_ascii=False))
            await self.client.ltrim(key, 0, self.max_entries - 1)
            await self.client.expire(key, self.ttl_seconds)
        except Exception as exc:
            logger.warning(
                "activity.track_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return False
        return True

    async def recent_activity(self, user_id: str, limit: int = ACTIVITY_MAX_ENTRIES) -> list[dict[str, Any]]:
        """Return up to ``limit`` entries, newest first; empty on store failure."""

        try:
            raw_entries = await self.client.lrange(activity_key(user_id), 0, limit - 1)
        except Exception as exc:
            logger.warning(
                "activity.read_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return []

        entries = []
        for raw in raw_entries:
            try:
                entries.append(json.loads(raw))
            except ValueError:
                logger.debug("activity.skipped_malformed_entry")
        return entries


class NotificationPublisher:
    """Fire-and-forget publish of JSON messages to named channels."""

    def __init__(self, client: Redis) -> None:
        self.client = client

    async def publish_notification(self, channel: str, message: Any) -> bool:
        try:
            receivers = await self.client.publish(
                channel, json.dumps(message, default=str, ensure_ascii=False)
            )
        except Exception as exc:
            logger.warning(
                "notification.publish_failed",
                extra={"channel": channel, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return False

        logger.debug("notification.published", extra={"channel": channel, "receivers": receivers})
        return True
