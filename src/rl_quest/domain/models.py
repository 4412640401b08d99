"""Domain models for rl_quest — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.rl_common.enums import CompletionStatus


@dataclass
class Quest:
    id: int
    title: str
    reward: int
    is_active: bool
    created_at: datetime | None = None


@dataclass
class QuestCompletion:
    id: int
    quest_id: int
    user_id: int
    status: CompletionStatus
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: int | None = None


@dataclass
class QuestWithStatus:
    """A quest as one user sees it: their own completion status, if any."""

    quest: Quest
    status: CompletionStatus | None


@dataclass
class PendingCompletionView:
    """A pending completion joined with quest and submitter display fields."""

    completion: QuestCompletion
    quest_title: str
    reward: int
    user_name: str
    user_emoji: str
