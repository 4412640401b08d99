"""rl_shop REST API — catalog, purchases, purchase review."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.database import get_db_session
from src.rl_common.response import ApiResponse, success_response
from src.rl_gateway.auth.dependencies import get_current_actor, require_admin
from src.rl_shop.application.service import ShopService

router = APIRouter(prefix="/shop", tags=["shop"])

_service = ShopService()


@router.get("/items")
async def list_items(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_items(db)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/items", status_code=status.HTTP_201_CREATED)
async def create_item(
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    name: Annotated[str, Form(min_length=1, max_length=200)],
    price: Annotated[int, Form(gt=0)],
    image: Annotated[UploadFile | None, File()] = None,
) -> ApiResponse:
    content = await image.read() if image is not None else None
    data = await _service.create_item(
        db,
        actor,
        name,
        price,
        image=content,
        filename=image.filename if image is not None else None,
        content_type=image.content_type if image is not None else None,
    )
    resp = success_response(data.model_dump(), message="Item added")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.delete("/items/{item_id}")
async def delete_item(
    item_id: int,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.delete_item(db, actor, item_id)
    resp = success_response(data.model_dump(), message="Item deleted")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/items/{item_id}/buy", status_code=status.HTTP_201_CREATED)
async def buy_item(
    item_id: int,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.buy(db, actor, item_id)
    resp = success_response(data.model_dump(), message="Purchase pending approval")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/purchases/me")
async def list_my_purchases(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_my_purchases(db, actor)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/purchases/pending")
async def list_pending_purchases(
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_pending(db, actor)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/purchases/{purchase_id}/approve")
async def approve_purchase(
    purchase_id: int,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.approve(db, actor, purchase_id)
    resp = success_response(data.model_dump(), message="Purchase approved")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/purchases/{purchase_id}/reject")
async def reject_purchase(
    purchase_id: int,
    actor: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.reject(db, actor, purchase_id)
    message = "Purchase rejected and refunded" if data.refunded else "Purchase rejected"
    resp = success_response(data.model_dump(), message=message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
