"""
Rate limiting middleware support for API endpoints
"""
import time
from collections import defaultdict, deque
from fastapi import Request, HTTPException
from typing import Deque, Dict
import logging

from quizsync.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window rate limiter keyed by client address
    Limits are per process; a multi-worker deployment needs a shared store
    """

    def __init__(self, requests_per_minute: int = 120, requests_per_hour: int = 2000):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour

        # {client_id: timestamps of requests inside the last hour}
        self.requests: Dict[str, Deque[float]] = defaultdict(deque)

    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request (client headers are not trusted)"""
        return request.client.host if request.client else "unknown"

    def _reject(self, client_id: str, limit: int, window: str, retry_after: int):
        logger.warning(f"Rate limit exceeded ({window}): {client_id}")
        raise HTTPException(
            status_code=429,
            detail={
                "error": "rate_limit_exceeded",
                "message": f"Too many requests. Limit: {limit} requests per {window}",
                "retry_after": retry_after
            }
        )

    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        client_id = self._get_client_id(request)
        now = time.time()
        timestamps = self.requests[client_id]

        # Drop entries older than the hour window
        while timestamps and timestamps[0] <= now - 3600:
            timestamps.popleft()

        minute_requests = sum(1 for ts in timestamps if ts > now - 60)
        if minute_requests >= self.requests_per_minute:
            self._reject(client_id, self.requests_per_minute, "minute", 60)

        if len(timestamps) >= self.requests_per_hour:
            self._reject(client_id, self.requests_per_hour, "hour", 3600)

        timestamps.append(now)
        logger.debug(
            f"Rate limit check passed: {client_id} (minute: {minute_requests + 1}, hour: {len(timestamps)})"
        )

    def reset(self) -> None:
        self.requests.clear()


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)
