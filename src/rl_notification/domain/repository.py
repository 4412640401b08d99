"""Repository Protocol — dependency inversion for testability.

Unit tests inject a double that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.enums import NotificationType
from src.rl_notification.domain.models import Notification


class NotificationRepositoryProtocol(Protocol):
    async def list_admin_ids(self, db: AsyncSession) -> list[int]: ...

    async def insert_notification(
        self,
        db: AsyncSession,
        user_id: int,
        type: NotificationType,
        item_id: int | None,
        message: str,
    ) -> Notification: ...

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: int,
        unread_only: bool,
        limit: int,
    ) -> list[Notification]: ...

    async def count_unread_notifications(self, db: AsyncSession, user_id: int) -> int: ...

    async def mark_notification_read(
        self, db: AsyncSession, notification_id: int, user_id: int
    ) -> bool: ...

    async def mark_all_notifications_read(self, db: AsyncSession, user_id: int) -> int: ...
