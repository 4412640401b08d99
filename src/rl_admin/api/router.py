"""Admin REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_admin.application.service import AdminService
from src.rl_common.actor import Actor
from src.rl_common.database import get_db_session
from src.rl_common.response import ApiResponse, success_response
from src.rl_gateway.auth.dependencies import require_admin
from src.rl_gateway.user.schemas import CreateUserRequest

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


@router.get("/dashboard")
async def get_dashboard(
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    resp = success_response(await _service.get_dashboard(db, actor))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/users")
async def list_users(
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    resp = success_response(await _service.list_users(db, actor))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.create_user(
        db, actor, body.name, body.pin, body.avatar_emoji, body.is_admin
    )
    resp = success_response(result, message="User created")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/balances/recalculate")
async def recalculate_balances(
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.recalculate_balances(db, actor)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/invariants")
async def verify_invariants(
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    resp = success_response(await _service.verify_all_invariants(db, actor))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
