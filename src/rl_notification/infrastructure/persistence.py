"""NotificationRepository — concrete implementation of NotificationRepositoryProtocol.

All queries use raw text() SQL. Nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.enums import NotificationType
from src.rl_common.errors import InternalError
from src.rl_notification.domain.models import Notification

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_LIST_ADMIN_IDS_SQL = text("""
    SELECT id FROM users WHERE is_admin = TRUE ORDER BY id
""")

_INSERT_SQL = text("""
    INSERT INTO notifications (user_id, type, item_id, message)
    VALUES (:user_id, :type, :item_id, :message)
    RETURNING id, user_id, type, item_id, message, is_read, created_at
""")

_LIST_SQL = text("""
    SELECT id, user_id, type, item_id, message, is_read, created_at
    FROM notifications
    WHERE user_id = :user_id
      AND (CAST(:unread_only AS BOOLEAN) = FALSE OR is_read = FALSE)
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_COUNT_UNREAD_SQL = text("""
    SELECT COUNT(*) FROM notifications
    WHERE user_id = :user_id AND is_read = FALSE
""")

_MARK_READ_SQL = text("""
    UPDATE notifications
    SET is_read = TRUE
    WHERE id = :notification_id AND user_id = :user_id
    RETURNING id
""")

_MARK_ALL_READ_SQL = text("""
    UPDATE notifications
    SET is_read = TRUE
    WHERE user_id = :user_id AND is_read = FALSE
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_notification(row: object) -> Notification:
    return Notification(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        type=NotificationType(row.type),  # type: ignore[attr-defined]
        item_id=row.item_id,  # type: ignore[attr-defined]
        message=row.message,  # type: ignore[attr-defined]
        is_read=bool(row.is_read),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class NotificationRepository:
    async def list_admin_ids(self, db: AsyncSession) -> list[int]:
        result = await db.execute(_LIST_ADMIN_IDS_SQL)
        return [row.id for row in result.fetchall()]

    async def insert_notification(
        self,
        db: AsyncSession,
        user_id: int,
        type: NotificationType,
        item_id: int | None,
        message: str,
    ) -> Notification:
        result = await db.execute(
            _INSERT_SQL,
            {"user_id": user_id, "type": type.value, "item_id": item_id, "message": message},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Notification insert returned no rows")
        return _row_to_notification(row)

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: int,
        unread_only: bool,
        limit: int,
    ) -> list[Notification]:
        result = await db.execute(
            _LIST_SQL, {"user_id": user_id, "unread_only": unread_only, "limit": limit}
        )
        return [_row_to_notification(row) for row in result.fetchall()]

    async def count_unread_notifications(self, db: AsyncSession, user_id: int) -> int:
        result = await db.execute(_COUNT_UNREAD_SQL, {"user_id": user_id})
        return int(result.scalar_one())

    async def mark_notification_read(
        self, db: AsyncSession, notification_id: int, user_id: int
    ) -> bool:
        """Scoped to the recipient: another admin's notification is reported as missing."""
        result = await db.execute(
            _MARK_READ_SQL, {"notification_id": notification_id, "user_id": user_id}
        )
        return result.fetchone() is not None

    async def mark_all_notifications_read(self, db: AsyncSession, user_id: int) -> int:
        result = await db.execute(_MARK_ALL_READ_SQL, {"user_id": user_id})
        return result.rowcount or 0
