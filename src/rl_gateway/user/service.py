"""User service: PIN login, token refresh, admin-only account creation.

All DB operations use the injected AsyncSession. create_user owns its unit
of work and commits; login and refresh only read.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.errors import InvalidCredentialsError, InvalidUserError, UserNameExistsError
from src.rl_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.rl_gateway.auth.pin import hash_pin, verify_pin
from src.rl_gateway.user.db_models import UserModel

logger = logging.getLogger(__name__)


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    async def create_user(
        self,
        db: AsyncSession,
        actor: Actor,
        name: str,
        pin: str,
        avatar_emoji: str = "😀",
        is_admin: bool = False,
    ) -> UserModel:
        """Create a member or admin account. Balance always starts at 0."""
        actor.require_admin()
        name = name.strip()
        if not name or not pin:
            raise InvalidUserError("name and PIN are required")

        # DB UNIQUE constraint is the final guard
        result = await db.execute(select(UserModel).where(UserModel.name == name))
        if result.scalar_one_or_none() is not None:
            raise UserNameExistsError(name)

        user = UserModel(
            name=name,
            pin_hash=hash_pin(pin),
            avatar_emoji=avatar_emoji or "😀",
            is_admin=is_admin,
            balance=0,
        )
        try:
            db.add(user)
            await db.flush()  # populate user.id and server defaults
            await db.refresh(user)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("User created: id=%s admin=%s by=%s", user.id, is_admin, actor.id)
        return user

    async def login(
        self,
        name: str,
        pin: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate by name + PIN and return (user, access_token, refresh_token).

        Unknown name and wrong PIN both raise InvalidCredentialsError.
        """
        result = await db.execute(select(UserModel).where(UserModel.name == name))
        user = result.scalar_one_or_none()

        if user is None or not verify_pin(pin, user.pin_hash):
            raise InvalidCredentialsError()

        return (
            user,
            create_access_token(user.id),
            create_refresh_token(user.id),
        )

    async def refresh(self, refresh_token: str) -> str:
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(int(payload["sub"]))

    async def list_users(self, db: AsyncSession) -> list[UserModel]:
        result = await db.execute(select(UserModel).order_by(UserModel.id))
        return list(result.scalars().all())
