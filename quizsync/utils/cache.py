"""
Redis cache utility for public quiz listings
"""
import redis
import json
import logging
import hashlib
from typing import Optional, Any
from quizsync.config import settings

logger = logging.getLogger(__name__)

LISTING_PREFIX = "quizzes:public"


class CacheService:
    """Redis-based caching of public quiz listings, disabled when Redis is down"""

    def __init__(self, url: str = settings.REDIS_URL, enabled: bool = settings.CACHE_ENABLED):
        self.redis_client = None
        if not enabled:
            logger.info("Listing cache disabled by configuration")
            return

        try:
            self.redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    def listing_key(self, category: Optional[str] = None, query: Optional[str] = None) -> str:
        """
        Deterministic key for a filtered listing

        Free-text filters are hashed to keep keys short and safe.
        """
        if not category and not query:
            return f"{LISTING_PREFIX}:all"
        digest = hashlib.sha256(f"{category or ''}|{query or ''}".encode()).hexdigest()[:16]
        return f"{LISTING_PREFIX}:{digest}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.info(f"Cache hit: {key}")
                return json.loads(value)
            logger.info(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds (default from settings)

        Returns:
            Success status
        """
        if not self.redis_client:
            return False

        try:
            ttl = ttl or settings.LIST_CACHE_TTL
            self.redis_client.setex(key, ttl, json.dumps(value))
            logger.info(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def invalidate_listings(self) -> bool:
        """Drop every cached listing; called after any quiz write"""
        if not self.redis_client:
            return False

        try:
            keys = list(self.redis_client.scan_iter(match=f"{LISTING_PREFIX}:*"))
            if keys:
                self.redis_client.delete(*keys)
                logger.info(f"Cleared {len(keys)} cached quiz listings")
            return True
        except Exception as e:
            logger.error(f"Cache clear error: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
