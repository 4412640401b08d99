"""Pydantic schemas for rl_quest API."""

from pydantic import BaseModel, Field, field_validator

from src.rl_common.datetime_utils import to_iso
from src.rl_quest.domain.models import (
    PendingCompletionView,
    Quest,
    QuestCompletion,
    QuestWithStatus,
)

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateQuestRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    reward: int = Field(1, gt=0, description="Respect points awarded on approval")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class QuestItem(BaseModel):
    id: int
    title: str
    reward: int
    is_active: bool
    my_status: str | None = None  # caller's completion status, if any

    @classmethod
    def from_domain(cls, quest: Quest, status: str | None = None) -> "QuestItem":
        return cls(
            id=quest.id,
            title=quest.title,
            reward=quest.reward,
            is_active=quest.is_active,
            my_status=status,
        )

    @classmethod
    def from_view(cls, view: QuestWithStatus) -> "QuestItem":
        return cls.from_domain(view.quest, view.status.value if view.status else None)


class QuestListResponse(BaseModel):
    items: list[QuestItem]


class CompletionResponse(BaseModel):
    completion_id: int
    quest_id: int
    user_id: int
    status: str
    submitted_at: str | None
    reviewed_at: str | None

    @classmethod
    def from_domain(cls, c: QuestCompletion) -> "CompletionResponse":
        return cls(
            completion_id=c.id,
            quest_id=c.quest_id,
            user_id=c.user_id,
            status=c.status.value,
            submitted_at=to_iso(c.submitted_at),
            reviewed_at=to_iso(c.reviewed_at),
        )


class CompletionReviewResponse(CompletionResponse):
    reward: int = 0
    balance: int | None = None  # submitter's balance after an approval


class PendingCompletionItem(BaseModel):
    completion_id: int
    quest_id: int
    quest_title: str
    reward: int
    user_id: int
    user_name: str
    user_emoji: str
    submitted_at: str | None

    @classmethod
    def from_view(cls, view: PendingCompletionView) -> "PendingCompletionItem":
        c = view.completion
        return cls(
            completion_id=c.id,
            quest_id=c.quest_id,
            quest_title=view.quest_title,
            reward=view.reward,
            user_id=c.user_id,
            user_name=view.user_name,
            user_emoji=view.user_emoji,
            submitted_at=to_iso(c.submitted_at),
        )


class PendingCompletionListResponse(BaseModel):
    items: list[PendingCompletionItem]


class DeleteQuestResponse(BaseModel):
    quest_id: int
    deleted: bool = True
