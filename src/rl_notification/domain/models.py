"""Domain models for rl_notification — pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.rl_common.enums import NotificationType


@dataclass
class Notification:
    id: int
    user_id: int              # recipient admin
    type: NotificationType
    item_id: int | None       # NULL once the referenced shop item is deleted
    message: str
    is_read: bool
    created_at: datetime | None = None
