# storefront/cache/persister.py
import json
import time

import redis
from pydantic import ValidationError

from storefront.cache.keys import QUERY_TYPES
from storefront.cache.query_cache import QueryCache
from storefront.utils.logging import get_logger
from storefront.utils.retry import redis_retry
from storefront.utils.settings import CACHE_MAX_AGE_SECONDS, CACHE_PERSIST_KEY, REDIS_URL

logger = get_logger(__name__)


class RedisPersister:
    """
    Saves the query cache to redis and restores it on start.
    Snapshots older than max_age are discarded, redis expires them as well.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str = CACHE_PERSIST_KEY,
        max_age: int = CACHE_MAX_AGE_SECONDS,
        client: redis.Redis | None = None,
    ):
        self.key = key
        self.max_age = max_age
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def persist(self, cache: QueryCache) -> None:
        payload = {
            "timestamp": time.time(),
            "queries": cache.dehydrate(QUERY_TYPES),
        }
        logger.info(f"Persisting {len(payload['queries'])} queries to {self.key}")
        self.redis.set(self.key, json.dumps(payload), ex=self.max_age)

    @redis_retry()
    def restore(self, cache: QueryCache) -> bool:
        raw = self.redis.get(self.key)
        if not raw:
            return False

        try:
            payload = json.loads(raw)
            timestamp = float(payload["timestamp"])
            queries = dict(payload.get("queries", {}))
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Persisted cache {self.key} is corrupt, discarding: {e}")
            self.redis.delete(self.key)
            return False

        age = time.time() - timestamp
        if age > self.max_age:
            logger.info(f"Persisted cache {self.key} is {int(age)}s old, discarding")
            self.redis.delete(self.key)
            return False

        try:
            cache.hydrate(queries, QUERY_TYPES)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Persisted cache {self.key} does not match current schemas, discarding: {e}")
            self.redis.delete(self.key)
            return False

        logger.info(f"Restored query cache from {self.key}")
        return True

    @redis_retry()
    def remove(self) -> None:
        self.redis.delete(self.key)
