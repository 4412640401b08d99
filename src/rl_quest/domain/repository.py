"""Repository Protocol — dependency inversion for testability.

Unit tests inject a double that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.enums import CompletionStatus
from src.rl_quest.domain.models import (
    PendingCompletionView,
    Quest,
    QuestCompletion,
    QuestWithStatus,
)


class QuestRepositoryProtocol(Protocol):
    # --- quests ---

    async def get_quest(self, db: AsyncSession, quest_id: int) -> Quest | None: ...

    async def list_quests_for_user(
        self, db: AsyncSession, user_id: int, include_inactive: bool
    ) -> list[QuestWithStatus]: ...

    async def insert_quest(self, db: AsyncSession, title: str, reward: int) -> Quest: ...

    async def toggle_quest_active(self, db: AsyncSession, quest_id: int) -> Quest | None: ...

    async def delete_quest(self, db: AsyncSession, quest_id: int) -> bool: ...

    # --- completions ---

    async def get_completion(
        self, db: AsyncSession, completion_id: int
    ) -> QuestCompletion | None: ...

    async def find_completion(
        self, db: AsyncSession, quest_id: int, user_id: int
    ) -> QuestCompletion | None: ...

    async def insert_completion(
        self, db: AsyncSession, quest_id: int, user_id: int
    ) -> QuestCompletion | None: ...

    async def reopen_completion(
        self, db: AsyncSession, completion_id: int
    ) -> QuestCompletion | None: ...

    async def review_completion(
        self,
        db: AsyncSession,
        completion_id: int,
        status: CompletionStatus,
        reviewer_id: int,
    ) -> QuestCompletion | None: ...

    async def list_pending_completions(
        self, db: AsyncSession
    ) -> list[PendingCompletionView]: ...
