"""
Rate limit dependency for FastAPI routes.
"""
from fastapi import Request
from memberhub.routes.metrics import track_rate_limit_exceeded
from memberhub.services.rate_limiter import rate_limiter


async def check_webhook_rate_limit(request: Request) -> int | None:
    """
    Check the inbound webhook rate limit for the calling client.

    Returns the Retry-After seconds if the limit is exceeded, else None.
    The delivery is still audited, so the route rejects it rather than
    this dependency.
    """
    client = request.client.host if request.client else "unknown"
    allowed, retry_after = await rate_limiter.is_allowed(f"webhook:{client}")

    if allowed:
        return None
    track_rate_limit_exceeded("webhook")
    return retry_after
