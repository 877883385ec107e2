import redis
from redis.exceptions import RedisError

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, CART_COUNT_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartCountCache:
    """
    -cart badge count per user, kept in redis
    -stale for at most ttl seconds (SET ... EX ttl)
    -every cart mutation deletes the key
    -redis errors never reach the caller, the count falls back to the database
    """

    def __init__(self, client=None, url: str | None = None, ttl: int = CART_COUNT_TTL_SECONDS):
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self.ttl = ttl

    @staticmethod
    def _key(user_id: str) -> str:
        return f"cart:{user_id}:count"

    @redis_retry()
    def _get(self, key: str):
        return self.redis.get(key)

    @redis_retry()
    def _set(self, key: str, value: int):
        return self.redis.set(name=key, value=str(value), ex=self.ttl)

    @redis_retry()
    def _delete(self, key: str):
        return self.redis.delete(key)

    def get(self, user_id: str) -> int | None:
        try:
            raw = self._get(self._key(user_id))
        except RedisError as e:
            logger.warning(f"Cart count cache read failed for {user_id}: {e}")
            return None
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Dropping malformed cart count {raw!r} for {user_id}")
            self.invalidate(user_id)
            return None

    def set(self, user_id: str, count: int) -> None:
        try:
            self._set(self._key(user_id), count)
        except RedisError as e:
            logger.warning(f"Cart count cache write failed for {user_id}: {e}")

    def invalidate(self, user_id: str) -> None:
        try:
            self._delete(self._key(user_id))
        except RedisError as e:
            logger.warning(f"Cart count cache invalidation failed for {user_id}: {e}")


def build_count_cache() -> CartCountCache | None:
    if not REDIS_URL:
        logger.info("REDIS_URL not set, cart count cache disabled")
        return None
    return CartCountCache()
