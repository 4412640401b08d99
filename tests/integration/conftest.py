"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Pre-condition: PostgreSQL migrated to head (alembic upgrade head) with the
seed admin from settings. The whole directory is skipped when the database
is unreachable.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from src.main import app
from src.rl_common.database import engine
from src.rl_gateway.auth.jwt_handler import create_access_token


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OSError, SQLAlchemyError) as exc:
        pytest.skip(f"PostgreSQL not reachable: {exc}")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    """Bearer header for the seed admin, obtained through the real login route."""
    resp = await client.post(
        "/api/v1/auth/login",
        json={"name": settings.SEED_ADMIN_NAME, "pin": settings.SEED_ADMIN_PIN},
    )
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


@pytest_asyncio.fixture(loop_scope="session")
async def member(client: AsyncClient, admin_headers: dict[str, str]) -> dict:
    """A fresh member account plus a Bearer header for it.

    The token is minted directly so member setup doesn't count against the
    login rate limit.
    """
    name = f"member_{uuid.uuid4().hex[:8]}"
    resp = await client.post(
        "/api/v1/admin/users",
        json={"name": name, "pin": "4321", "avatar_emoji": "🃏"},
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["data"]["user_id"]
    return {
        "user_id": user_id,
        "name": name,
        "headers": {"Authorization": f"Bearer {create_access_token(user_id)}"},
    }
