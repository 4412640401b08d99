"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError

from config.settings import settings
from src.rl_admin.api.router import router as admin_router
from src.rl_common.database import async_session_factory, engine
from src.rl_common.errors import AppError, StoreUnavailableError
from src.rl_common.redis_client import close_redis, get_redis
from src.rl_common.response import error_response
from src.rl_gateway.api.router import router as auth_router
from src.rl_gateway.middleware.rate_limit import RateLimitMiddleware
from src.rl_gateway.middleware.request_log import RequestLogMiddleware
from src.rl_ledger.api.router import router as ledger_router
from src.rl_ledger.application.recalculator import BalanceRecalculator
from src.rl_notification.api.router import router as notification_router
from src.rl_quest.api.router import router as quest_router
from src.rl_shop.api.router import router as shop_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def replay_balances() -> None:
    """Recompute every cached balance from the ledger, in its own transaction."""
    async with async_session_factory() as db:
        try:
            result = await BalanceRecalculator().recalculate_all(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    logger.info(
        "Startup balance replay: %d users checked, %d drifted",
        result.users_checked, len(result.drifts),
    )


async def check_redis() -> bool:
    """Ping Redis. Only login rate limiting needs it, so a failure is not fatal."""
    try:
        redis = await get_redis()
        await redis.ping()
    except RedisError as exc:
        logger.warning("Redis unavailable at startup, login rate limiting fails open: %s", exc)
        return False
    return True


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, check Redis, replay balances. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await check_redis()
    if settings.RECALCULATE_BALANCES_ON_STARTUP:
        await replay_balances()
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Starlette runs the last-added middleware first: request ids are assigned
# before the rate limiter can reject a login.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, {"retryable": True} if exc.retryable else None)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Database unavailable on %s: %s", request.url.path, exc)
    return await app_error_handler(request, StoreUnavailableError())


app.include_router(auth_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")
app.include_router(quest_router, prefix="/api/v1")
app.include_router(shop_router, prefix="/api/v1")
app.include_router(notification_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
