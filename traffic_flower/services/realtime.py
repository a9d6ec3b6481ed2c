"""Live traffic push channel using Redis pub/sub."""

import json
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

import redis
import redis.asyncio as aioredis

from traffic_flower.config import get_settings

if TYPE_CHECKING:
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)
settings = get_settings()


class TrafficEventType(StrEnum):
    """Event types pushed to intersection subscribers."""

    TRAFFIC_UPDATE = "traffic_update"


def intersection_channel(intersection_id: int) -> str:
    """Redis channel carrying an intersection's live events."""
    return f"intersection:{intersection_id}"


# Synchronous Redis client for use from workers and API endpoints
_sync_redis: redis.Redis | None = None


def get_sync_redis() -> redis.Redis:
    """Get synchronous Redis client for publishing."""
    global _sync_redis
    if _sync_redis is None:
        _sync_redis = redis.from_url(settings.redis_url)
    return _sync_redis


def publish_intersection_event(
    intersection_id: int, event_type: TrafficEventType, data: dict | None = None
) -> bool:
    """Publish an event to an intersection's Redis channel.

    Telemetry is best-effort: failures are logged and dropped.

    Args:
        intersection_id: The intersection to publish to
        event_type: Type of event
        data: Optional event payload

    Returns:
        True when the message was handed to Redis
    """
    try:
        redis_client = get_sync_redis()
        channel = intersection_channel(intersection_id)
        message = {
            "type": event_type,
            "intersection_id": intersection_id,
            "timestamp": datetime.now(UTC).isoformat(),
            "data": data or {},
        }
        redis_client.publish(channel, json.dumps(message))
        logger.debug(f"Published {event_type} to {channel}")
        return True
    except Exception as e:
        # Live updates are lossy; never fail the caller
        logger.error(f"Failed to publish intersection event: {e}")
        return False


class RealtimeService:
    """Async Redis pub/sub service for WebSocket connections."""

    def __init__(self) -> None:
        self._redis: aioredis.Redis | None = None
        self._pubsub: PubSub | None = None

    async def _get_redis(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = aioredis.from_url(settings.redis_url)
        return self._redis

    async def subscribe(self, channel: str) -> AsyncIterator[dict]:
        """Subscribe to a Redis channel and yield messages."""
        redis_conn = await self._get_redis()
        self._pubsub = redis_conn.pubsub()
        await self._pubsub.subscribe(channel)

        try:
            async for message in self._pubsub.listen():
                if message["type"] == "message":
                    try:
                        data = json.loads(message["data"])
                        yield data
                    except json.JSONDecodeError:
                        logger.warning(f"Invalid JSON in pub/sub message: {message['data']}")
        finally:
            if self._pubsub:
                await self._pubsub.unsubscribe(channel)

    async def cleanup(self) -> None:
        """Clean up Redis connections."""
        if self._pubsub:
            await self._pubsub.close()
        if self._redis:
            await self._redis.close()
