"""rl_quest REST API — quest board and completion review."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.database import get_db_session
from src.rl_common.response import ApiResponse, success_response
from src.rl_gateway.auth.dependencies import get_current_actor, require_admin
from src.rl_quest.application.schemas import CreateQuestRequest
from src.rl_quest.application.service import QuestService

router = APIRouter(prefix="/quests", tags=["quests"])

_service = QuestService()


@router.get("")
async def list_quests(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_quests(db, actor)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_quest(
    body: CreateQuestRequest,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_quest(db, actor, body.title, body.reward)
    resp = success_response(data.model_dump(), message="Quest created")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/completions/pending")
async def list_pending_completions(
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_pending(db, actor)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/completions/{completion_id}/approve")
async def approve_completion(
    completion_id: int,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.approve(db, actor, completion_id)
    resp = success_response(data.model_dump(), message="Quest approved")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/completions/{completion_id}/reject")
async def reject_completion(
    completion_id: int,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.reject(db, actor, completion_id)
    resp = success_response(data.model_dump(), message="Quest rejected")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{quest_id}/submit", status_code=status.HTTP_201_CREATED)
async def submit_quest(
    quest_id: int,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.submit(db, actor, quest_id)
    resp = success_response(data.model_dump(), message="Quest submitted for approval")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{quest_id}/toggle")
async def toggle_quest(
    quest_id: int,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.toggle_quest(db, actor, quest_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.delete("/{quest_id}")
async def delete_quest(
    quest_id: int,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.delete_quest(db, actor, quest_id)
    resp = success_response(data.model_dump(), message="Quest deleted")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
