"""
Property lifecycle notifications on a redis pub/sub channel.

Publishing is best-effort: a missing or failing redis is logged and the
operation that triggered the event still succeeds.
"""
import json
from datetime import datetime, timezone
from typing import Any, Dict

from redis.asyncio import Redis
from redis.exceptions import RedisError
from structlog import get_logger

from app.config import settings

logger = get_logger()

PROPERTY_CREATED = "property.created"
PROPERTY_UPDATED = "property.updated"
PROPERTY_DELETED = "property.deleted"


class EventPublisher:
    def __init__(self, redis: Redis = None, channel: str = None):
        self._redis = redis
        self.channel = channel or settings.EVENTS_CHANNEL

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        return self._redis

    async def publish(self, event: str, payload: Dict[str, Any]) -> bool:
        message = json.dumps(
            {"event": event, "occurred_at": datetime.now(timezone.utc).isoformat(), "data": payload},
            default=str,
        )
        try:
            receivers = await self.redis.publish(self.channel, message)
        except (RedisError, OSError) as e:
            logger.warning("Event publish failed", event_name=event, channel=self.channel, error=str(e))
            return False
        logger.info("Event published", event_name=event, channel=self.channel, receivers=receivers)
        return True

    async def aclose(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
