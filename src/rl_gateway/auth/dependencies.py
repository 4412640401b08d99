"""FastAPI dependencies: get_current_user, get_current_actor, require_admin.

Usage in any protected router:
    from src.rl_gateway.auth.dependencies import get_current_actor

    @router.get("/protected")
    async def protected(actor: Actor = Depends(get_current_actor)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.database import get_db_session
from src.rl_common.errors import InvalidCredentialsError
from src.rl_gateway.auth.jwt_handler import decode_token
from src.rl_gateway.user.db_models import UserModel

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Extract and validate the JWT Bearer token, return the UserModel.

    Raises HTTP 401 if the token is missing, invalid, expired, or names a
    user that no longer exists.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    sub = payload.get("sub")
    if not sub or not sub.isdigit():
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == int(sub)))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION
    return user


async def get_current_actor(
    current_user: UserModel = Depends(get_current_user),
) -> Actor:
    return Actor(id=current_user.id, name=current_user.name, is_admin=current_user.is_admin)


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Reject non-admins with AdminRequiredError (403)."""
    actor.require_admin()
    return actor
