"""Rate limiting for sync triggers."""

import time
from typing import Optional

import redis.asyncio as redis
import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from src.config import settings

logger = structlog.get_logger()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limit on sync trigger requests, per user, in Redis.

    Only POSTs under ``/stores/`` are limited; reads and health checks pass
    straight through. If Redis is unreachable the request is allowed.
    """

    def __init__(self, app, redis_url: Optional[str] = None, limit: Optional[int] = None):
        super().__init__(app)
        self.redis_url = redis_url or settings.redis_url
        self.limit = limit or settings.sync_trigger_rate_limit
        self._redis: redis.Redis | None = None

    async def get_redis(self) -> redis.Redis:
        """Get or create Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url)
        return self._redis

    async def dispatch(self, request: Request, call_next):
        """Process request with rate limiting."""
        if not self._is_limited(request):
            return await call_next(request)

        identifier = self._get_identifier(request)

        try:
            allowed, remaining, reset_at = await self._check_rate_limit(identifier)
        except (redis.RedisError, OSError) as e:
            logger.warning("rate_limit_check_failed", error=str(e))
            return await call_next(request)

        if not allowed:
            logger.info("sync_trigger_rate_limited", identifier=identifier, path=request.url.path)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded"},
                headers={
                    "X-RateLimit-Limit": str(self.limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset_at),
                    "Retry-After": str(max(0, reset_at - int(time.time()))),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset_at)

        return response

    @staticmethod
    def _is_limited(request: Request) -> bool:
        return request.method == "POST" and "/stores/" in request.url.path

    @staticmethod
    def _get_identifier(request: Request) -> str:
        """Prefer the gateway user id, fall back to IP."""
        user_id = request.headers.get("X-User-Id")
        if user_id:
            return f"user:{user_id}"

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return f"ip:{forwarded.split(',')[0].strip()}"

        return f"ip:{request.client.host if request.client else 'unknown'}"

    async def _check_rate_limit(self, identifier: str) -> tuple[bool, int, int]:
        """
        Check if request is within rate limit.

        Returns: (allowed, remaining, reset_timestamp)
        """
        r = await self.get_redis()
        window = 60

        now = int(time.time())
        window_start = now - (now % window)
        key = f"ratelimit:sync:{identifier}:{window_start}"

        current = await r.incr(key)

        # Set expiry on first request
        if current == 1:
            await r.expire(key, window + 1)

        remaining = max(0, self.limit - current)
        reset_at = window_start + window

        return current <= self.limit, remaining, reset_at
