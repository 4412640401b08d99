"""Pydantic schemas for rl_notification API."""

from pydantic import BaseModel

from src.rl_common.datetime_utils import to_iso
from src.rl_notification.domain.models import Notification


class NotificationItem(BaseModel):
    id: int
    type: str
    item_id: int | None
    message: str
    is_read: bool
    created_at: str | None

    @classmethod
    def from_domain(cls, n: Notification) -> "NotificationItem":
        return cls(
            id=n.id,
            type=n.type.value,
            item_id=n.item_id,
            message=n.message,
            is_read=n.is_read,
            created_at=to_iso(n.created_at),
        )


class NotificationListResponse(BaseModel):
    items: list[NotificationItem]
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkReadResponse(BaseModel):
    notification_id: int
    is_read: bool = True


class MarkAllReadResponse(BaseModel):
    updated: int
