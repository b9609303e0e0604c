"""
Short-TTL cache of premium-access decisions.

Key format: premium:access:{user_id}  value "1" / "0"
Redis failures are treated as a cache miss; correctness never depends on it.
"""

import logging

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class PremiumAccessCache:

    KEY_PREFIX = "premium:access"

    def __init__(self, redis: Redis, ttl_seconds: int):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def _key(self, user_id: int) -> str:
        return f"{self.KEY_PREFIX}:{user_id}"

    def get(self, user_id: int) -> bool | None:
        if not self.enabled:
            return None
        try:
            value = self.redis.get(self._key(user_id))
        except RedisError as e:
            logger.warning("Premium cache read failed for user=%s: %s", user_id, e)
            return None
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode()
        return value == "1"

    def set(self, user_id: int, has_access: bool) -> None:
        if not self.enabled:
            return
        try:
            self.redis.setex(self._key(user_id), self.ttl_seconds, "1" if has_access else "0")
        except RedisError as e:
            logger.warning("Premium cache write failed for user=%s: %s", user_id, e)

    def invalidate(self, user_id: int) -> None:
        try:
            self.redis.delete(self._key(user_id))
        except RedisError as e:
            logger.warning("Premium cache invalidation failed for user=%s: %s", user_id, e)
