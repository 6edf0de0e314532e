"""Rate limiting middleware — Redis-based fixed window.

Learn: One counter per client IP, per bucket, per minute:
    notekeep:rl:{ip}:{bucket}:{minute}
INCR and EXPIRE go out in one pipeline, so a new window's key always
gets its TTL even if the client disconnects mid-request.

The "auth" bucket (captcha, register, login, me) has its own, much
smaller budget: each captcha fetch costs one request, which bounds how
fast a client can cycle through challenges or guess passwords.

No Redis (tests, or Redis down at startup) means no limiting.
"""

import time

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from notekeep.cache.redis import get_redis
from notekeep.schemas.envelope import fail

logger = structlog.get_logger()

AUTH_PREFIX = "/api/auth/"
WINDOW_SECONDS = 60


def bucket_for(path: str) -> str:
    return "auth" if path.startswith(AUTH_PREFIX) else "api"


async def hit(redis, key: str) -> int:
    """Count one request against key; returns the running count."""
    async with redis.pipeline(transaction=True) as pipe:
        pipe.incr(key)
        pipe.expire(key, WINDOW_SECONDS * 2)
        count, _ = await pipe.execute()
    return int(count)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.limits = {"api": default_rpm, "auth": auth_rpm}

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        bucket = bucket_for(request.url.path)
        limit = self.limits[bucket]
        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time() // WINDOW_SECONDS)

        try:
            count = await hit(redis, f"notekeep:rl:{client_ip}:{bucket}:{window}")
        except RedisError as e:
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        if count > limit:
            logger.warning("rate_limit.exceeded", bucket=bucket, client=client_ip)
            return JSONResponse(
                status_code=429,
                content=fail("Too many requests, try again later", "rate_limited"),
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - count))
        return response
