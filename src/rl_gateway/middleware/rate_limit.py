"""Login rate limiting middleware.

PINs are short, so the login endpoint is throttled per client IP with a
Redis fixed window:

    count = INCR ratelimit:login:{ip}
    if count == 1: EXPIRE key 60
    if count > limit: 429 + Retry-After

Only POST /api/v1/auth/login is counted. If Redis is unreachable the request
goes through and a warning is logged; PostgreSQL stays the only hard
dependency of a request.
"""

import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from config.settings import settings
from src.rl_common.errors import RateLimitError
from src.rl_common.redis_client import get_redis
from src.rl_common.response import error_response

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/v1/auth/login"
WINDOW_SECONDS = 60


def _client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limit: int | None = None,
        redis_getter: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
    ) -> None:
        super().__init__(app)
        self._limit = limit if limit is not None else settings.LOGIN_RATE_LIMIT_PER_MINUTE
        self._redis_getter = redis_getter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "POST" or request.url.path != LOGIN_PATH:
            return await call_next(request)

        key = f"ratelimit:login:{_client_ip(request)}"
        try:
            redis = await self._redis_getter()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, WINDOW_SECONDS)
        except RedisError as exc:
            logger.warning("Login rate limiter unavailable, allowing request: %s", exc)
            return await call_next(request)

        if count > self._limit:
            logger.warning("Login rate limit exceeded: key=%s count=%d", key, count)
            err = RateLimitError()
            body = error_response(err.code, err.message)
            body.request_id = getattr(request.state, "request_id", body.request_id)
            return JSONResponse(
                status_code=err.http_status,
                content=body.model_dump(),
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )
        return await call_next(request)
