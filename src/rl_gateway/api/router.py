"""Auth API router: PIN login, token refresh and the public login picker.

Login is the only route the rate limiter counts. The picker is public on
purpose: the login screen shows every account as a tappable avatar.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.rl_common.database import get_db_session
from src.rl_common.response import ApiResponse, success_response
from src.rl_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    LoginUserItem,
    RefreshRequest,
    RefreshResponse,
    UserInfo,
)
from src.rl_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])

_service = UserService()
_EXPIRES_IN = settings.JWT_EXPIRE_MINUTES * 60


@router.post("/login", summary="Log in with name and PIN")
async def login(
    body: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.name, body.pin, db)
    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=_EXPIRES_IN,
        user=UserInfo(
            user_id=user.id,
            name=user.name,
            avatar_emoji=user.avatar_emoji,
            is_admin=user.is_admin,
        ),
    )
    resp = success_response(data.model_dump(), message="Login successful")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/refresh", summary="Exchange a refresh token for a new access token")
async def refresh(body: RefreshRequest, request: Request) -> ApiResponse:
    access_token = await _service.refresh(body.refresh_token)
    data = RefreshResponse(access_token=access_token, expires_in=_EXPIRES_IN)
    resp = success_response(data.model_dump(), message="Token refreshed")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/users", summary="Accounts shown on the login screen")
async def list_login_users(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    users = await _service.list_users(db)
    resp = success_response(
        [
            LoginUserItem(user_id=u.id, name=u.name, avatar_emoji=u.avatar_emoji).model_dump()
            for u in users
        ]
    )
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
