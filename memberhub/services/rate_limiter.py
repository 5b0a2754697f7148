"""
Rate Limiter Service using Redis sorted sets (sliding window).

Counters live in Redis so every service instance shares them.
"""
import time
import redis.asyncio as redis
from memberhub.config import settings
from memberhub.logging_config import get_logger


class RateLimiter:
    """Per-client rate limiter using Redis sorted sets."""
    
    def __init__(self, redis_url: str = None, limit: int = None, window: int = None):
        self.redis_url = redis_url or settings.REDIS_URL
        self._redis = None
        self.limit = limit or settings.WEBHOOK_RATE_LIMIT  # requests per window
        self.window = window or settings.WEBHOOK_RATE_WINDOW_SECONDS
    
    async def get_redis(self):
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url)
        return self._redis

    def set_redis(self, client) -> None:
        """Replace the Redis client (used by tests)."""
        self._redis = client
    
    async def is_allowed(self, key: str) -> tuple[bool, int]:
        """
        Check if request is allowed for the client key.
        
        Returns:
            (allowed: bool, retry_after: int)
        """
        r = await self.get_redis()
        key = f"ratelimit:{key}"
        now = time.time()
        window_start = now - self.window
        
        try:
            # First, clean up old entries and count current requests
            pipe = r.pipeline()
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            results = await pipe.execute()
            
            request_count = results[1]
            
            if request_count >= self.limit:
                # Over limit - calculate retry_after
                oldest = await r.zrange(key, 0, 0, withscores=True)
                if oldest:
                    retry_after = int(self.window - (now - oldest[0][1]))
                else:
                    retry_after = self.window
                return False, max(retry_after, 1)
            
            # Under limit - add the request
            await r.zadd(key, {str(now): now})
            await r.expire(key, self.window)
            
            return True, 0
            
        except Exception as e:
            get_logger(rate_limit_key=key).warning("rate_limiter_unavailable", error=str(e))
            # If Redis is down, allow the request (fail open)
            return True, 0


# Singleton instance
rate_limiter = RateLimiter()
