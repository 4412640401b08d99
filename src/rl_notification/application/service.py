"""NotificationService — admin fan-out and per-admin read state.

notify_admins() runs inside the caller's transaction (the purchase that
triggered it) and never commits; the read-state operations own their unit
of work.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.enums import NotificationType
from src.rl_common.errors import NotificationNotFoundError
from src.rl_notification.application.schemas import (
    MarkAllReadResponse,
    MarkReadResponse,
    NotificationItem,
    NotificationListResponse,
    UnreadCountResponse,
)
from src.rl_notification.domain.models import Notification
from src.rl_notification.domain.repository import NotificationRepositoryProtocol
from src.rl_notification.infrastructure.persistence import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, repo: NotificationRepositoryProtocol | None = None) -> None:
        self._repo: NotificationRepositoryProtocol = repo or NotificationRepository()

    async def notify_admins(
        self,
        db: AsyncSession,
        type: NotificationType,
        message: str,
        item_id: int | None = None,
    ) -> list[Notification]:
        """Insert one unread notification per administrator. No dedup."""
        admin_ids = await self._repo.list_admin_ids(db)
        created = [
            await self._repo.insert_notification(db, admin_id, type, item_id, message)
            for admin_id in admin_ids
        ]
        logger.info("Notified %d admins: type=%s item=%s", len(created), type.value, item_id)
        return created

    async def list_notifications(
        self,
        db: AsyncSession,
        actor: Actor,
        unread_only: bool = False,
        limit: int = 50,
    ) -> NotificationListResponse:
        actor.require_admin()
        rows = await self._repo.list_notifications(db, actor.id, unread_only, limit)
        unread = await self._repo.count_unread_notifications(db, actor.id)
        return NotificationListResponse(
            items=[NotificationItem.from_domain(n) for n in rows],
            unread_count=unread,
        )

    async def unread_count(self, db: AsyncSession, actor: Actor) -> UnreadCountResponse:
        actor.require_admin()
        return UnreadCountResponse(
            unread_count=await self._repo.count_unread_notifications(db, actor.id)
        )

    async def mark_read(
        self, db: AsyncSession, actor: Actor, notification_id: int
    ) -> MarkReadResponse:
        actor.require_admin()
        try:
            found = await self._repo.mark_notification_read(db, notification_id, actor.id)
            if not found:
                raise NotificationNotFoundError(notification_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return MarkReadResponse(notification_id=notification_id)

    async def mark_all_read(self, db: AsyncSession, actor: Actor) -> MarkAllReadResponse:
        actor.require_admin()
        try:
            updated = await self._repo.mark_all_notifications_read(db, actor.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return MarkAllReadResponse(updated=updated)
