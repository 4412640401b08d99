"""rl_ledger REST API — balance, leaderboard, feed, admin grants."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.database import get_db_session
from src.rl_common.enums import GrantKind
from src.rl_common.response import ApiResponse, success_response
from src.rl_gateway.auth.dependencies import get_current_actor, require_admin
from src.rl_ledger.application.schemas import GrantRequest
from src.rl_ledger.application.service import LedgerApplicationService

router = APIRouter(prefix="/ledger", tags=["ledger"])

_service = LedgerApplicationService()


@router.get("/me")
async def get_my_balance(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, actor.id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/leaderboard")
async def get_leaderboard(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_leaderboard(db)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/transactions")
async def list_transactions(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(50, ge=1, le=200, description="Most recent N entries"),
) -> ApiResponse:
    data = await _service.list_recent_transactions(db, limit)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/respect/{user_id}", status_code=status.HTTP_201_CREATED)
async def give_respect(
    user_id: int,
    body: GrantRequest,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.grant(
        db, actor, user_id, GrantKind.RESPECT, body.amount, body.description
    )
    resp = success_response(data.model_dump(), message="Respect given")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/disrespect/{user_id}", status_code=status.HTTP_201_CREATED)
async def give_disrespect(
    user_id: int,
    body: GrantRequest,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.grant(
        db, actor, user_id, GrantKind.DISRESPECT, body.amount, body.description
    )
    resp = success_response(data.model_dump(), message="Disrespect given")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
