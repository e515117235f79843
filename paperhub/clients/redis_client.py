import redis
import json
import logging
from typing import Optional, Any
from paperhub.config import config

logger = logging.getLogger(__name__)

_redis_client = None

def get_redis_client() -> Optional[redis.Redis]:
    """Get or create singleton Redis client"""
    global _redis_client

    if not config.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            client = redis.Redis(
                host=config.REDIS_HOST,
                port=config.REDIS_PORT,
                password=config.REDIS_PASSWORD,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2
            )
            client.ping()
            _redis_client = client
            logger.info(f"Connected to Redis at {config.REDIS_HOST}:{config.REDIS_PORT}")
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {e}")
            return None

    return _redis_client


class ExtractionCache:
    """
    JSON cache for extraction results keyed by PDF content hash.

    The cache is an optimisation only: every error is logged and treated
    as a miss.
    """

    def __init__(self, client: Optional[redis.Redis] = None, ttl: int = None, prefix: str = "extraction"):
        self._client = client
        self.ttl = ttl if ttl is not None else config.CACHE_TTL
        self.prefix = prefix

    @property
    def client(self) -> Optional[redis.Redis]:
        return self._client if self._client is not None else get_redis_client()

    def key(self, model: str, digest: str) -> str:
        return f"{self.prefix}:{model}:{digest}"

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            client = self.client
            if not client:
                return None

            value = client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.warning(f"Cache get error: {e}")
            return None

    def set(self, key: str, value: Any) -> bool:
        """Set value in cache with the configured TTL"""
        try:
            client = self.client
            if not client:
                return False

            client.setex(key, self.ttl, json.dumps(value))
            return True
        except Exception as e:
            logger.warning(f"Cache set error: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        try:
            client = self.client
            if not client:
                return False

            client.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Cache delete error: {e}")
            return False
