"""QuestRepository — concrete implementation of QuestRepositoryProtocol.

All queries use raw text() SQL with bound parameters. State transitions are
conditional UPDATE ... RETURNING statements: a None result means the row was
not in the expected state, and the caller maps that to a domain error.
Nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.enums import CompletionStatus
from src.rl_common.errors import InternalError
from src.rl_quest.domain.models import (
    PendingCompletionView,
    Quest,
    QuestCompletion,
    QuestWithStatus,
)

# ---------------------------------------------------------------------------
# SQL: quests
# ---------------------------------------------------------------------------

_GET_QUEST_SQL = text("""
    SELECT id, title, reward, is_active, created_at
    FROM quests
    WHERE id = :quest_id
""")

_LIST_QUESTS_FOR_USER_SQL = text("""
    SELECT q.id, q.title, q.reward, q.is_active, q.created_at,
           qc.status AS completion_status
    FROM quests q
    LEFT JOIN quest_completions qc
           ON qc.quest_id = q.id AND qc.user_id = :user_id
    WHERE CAST(:include_inactive AS BOOLEAN) = TRUE OR q.is_active = TRUE
    ORDER BY q.reward DESC, q.id
""")

_INSERT_QUEST_SQL = text("""
    INSERT INTO quests (title, reward)
    VALUES (:title, :reward)
    RETURNING id, title, reward, is_active, created_at
""")

_TOGGLE_QUEST_SQL = text("""
    UPDATE quests
    SET is_active = NOT is_active
    WHERE id = :quest_id
    RETURNING id, title, reward, is_active, created_at
""")

# quest_completions rows go with it (ON DELETE CASCADE)
_DELETE_QUEST_SQL = text("""
    DELETE FROM quests WHERE id = :quest_id RETURNING id
""")

# ---------------------------------------------------------------------------
# SQL: quest_completions
# ---------------------------------------------------------------------------

_COMPLETION_COLUMNS = "id, quest_id, user_id, status, submitted_at, reviewed_at, reviewed_by"

_GET_COMPLETION_SQL = text(f"""
    SELECT {_COMPLETION_COLUMNS}
    FROM quest_completions
    WHERE id = :completion_id
""")

_FIND_COMPLETION_SQL = text(f"""
    SELECT {_COMPLETION_COLUMNS}
    FROM quest_completions
    WHERE quest_id = :quest_id AND user_id = :user_id
    FOR UPDATE
""")

_INSERT_COMPLETION_SQL = text(f"""
    INSERT INTO quest_completions (quest_id, user_id, status)
    VALUES (:quest_id, :user_id, 'PENDING')
    ON CONFLICT (quest_id, user_id) DO NOTHING
    RETURNING {_COMPLETION_COLUMNS}
""")

_REOPEN_COMPLETION_SQL = text(f"""
    UPDATE quest_completions
    SET status = 'PENDING', submitted_at = NOW(), reviewed_at = NULL, reviewed_by = NULL
    WHERE id = :completion_id AND status = 'REJECTED'
    RETURNING {_COMPLETION_COLUMNS}
""")

_REVIEW_COMPLETION_SQL = text(f"""
    UPDATE quest_completions
    SET status = :status, reviewed_at = NOW(), reviewed_by = :reviewer_id
    WHERE id = :completion_id AND status = 'PENDING'
    RETURNING {_COMPLETION_COLUMNS}
""")

_LIST_PENDING_SQL = text("""
    SELECT qc.id, qc.quest_id, qc.user_id, qc.status,
           qc.submitted_at, qc.reviewed_at, qc.reviewed_by,
           q.title AS quest_title, q.reward,
           u.name AS user_name, u.avatar_emoji AS user_emoji
    FROM quest_completions qc
    JOIN quests q ON q.id = qc.quest_id
    JOIN users u ON u.id = qc.user_id
    WHERE qc.status = 'PENDING'
    ORDER BY qc.submitted_at ASC, qc.id ASC
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_quest(row: object) -> Quest:
    return Quest(
        id=row.id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        reward=row.reward,  # type: ignore[attr-defined]
        is_active=bool(row.is_active),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_completion(row: object) -> QuestCompletion:
    return QuestCompletion(
        id=row.id,  # type: ignore[attr-defined]
        quest_id=row.quest_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        status=CompletionStatus(row.status),  # type: ignore[attr-defined]
        submitted_at=row.submitted_at,  # type: ignore[attr-defined]
        reviewed_at=row.reviewed_at,  # type: ignore[attr-defined]
        reviewed_by=row.reviewed_by,  # type: ignore[attr-defined]
    )


class QuestRepository:
    """Concrete repository over the quests and quest_completions tables."""

    async def get_quest(self, db: AsyncSession, quest_id: int) -> Quest | None:
        result = await db.execute(_GET_QUEST_SQL, {"quest_id": quest_id})
        row = result.fetchone()
        return _row_to_quest(row) if row else None

    async def list_quests_for_user(
        self, db: AsyncSession, user_id: int, include_inactive: bool
    ) -> list[QuestWithStatus]:
        result = await db.execute(
            _LIST_QUESTS_FOR_USER_SQL,
            {"user_id": user_id, "include_inactive": include_inactive},
        )
        return [
            QuestWithStatus(
                quest=_row_to_quest(row),
                status=(
                    CompletionStatus(row.completion_status)
                    if row.completion_status
                    else None
                ),
            )
            for row in result.fetchall()
        ]

    async def insert_quest(self, db: AsyncSession, title: str, reward: int) -> Quest:
        result = await db.execute(_INSERT_QUEST_SQL, {"title": title, "reward": reward})
        row = result.fetchone()
        if row is None:
            raise InternalError("Quest insert returned no rows")
        return _row_to_quest(row)

    async def toggle_quest_active(self, db: AsyncSession, quest_id: int) -> Quest | None:
        result = await db.execute(_TOGGLE_QUEST_SQL, {"quest_id": quest_id})
        row = result.fetchone()
        return _row_to_quest(row) if row else None

    async def delete_quest(self, db: AsyncSession, quest_id: int) -> bool:
        result = await db.execute(_DELETE_QUEST_SQL, {"quest_id": quest_id})
        return result.fetchone() is not None

    async def get_completion(
        self, db: AsyncSession, completion_id: int
    ) -> QuestCompletion | None:
        result = await db.execute(_GET_COMPLETION_SQL, {"completion_id": completion_id})
        row = result.fetchone()
        return _row_to_completion(row) if row else None

    async def find_completion(
        self, db: AsyncSession, quest_id: int, user_id: int
    ) -> QuestCompletion | None:
        result = await db.execute(
            _FIND_COMPLETION_SQL, {"quest_id": quest_id, "user_id": user_id}
        )
        row = result.fetchone()
        return _row_to_completion(row) if row else None

    async def insert_completion(
        self, db: AsyncSession, quest_id: int, user_id: int
    ) -> QuestCompletion | None:
        """None when a concurrent submission already created the row."""
        result = await db.execute(
            _INSERT_COMPLETION_SQL, {"quest_id": quest_id, "user_id": user_id}
        )
        row = result.fetchone()
        return _row_to_completion(row) if row else None

    async def reopen_completion(
        self, db: AsyncSession, completion_id: int
    ) -> QuestCompletion | None:
        result = await db.execute(_REOPEN_COMPLETION_SQL, {"completion_id": completion_id})
        row = result.fetchone()
        return _row_to_completion(row) if row else None

    async def review_completion(
        self,
        db: AsyncSession,
        completion_id: int,
        status: CompletionStatus,
        reviewer_id: int,
    ) -> QuestCompletion | None:
        result = await db.execute(
            _REVIEW_COMPLETION_SQL,
            {
                "completion_id": completion_id,
                "status": status.value,
                "reviewer_id": reviewer_id,
            },
        )
        row = result.fetchone()
        return _row_to_completion(row) if row else None

    async def list_pending_completions(
        self, db: AsyncSession
    ) -> list[PendingCompletionView]:
        result = await db.execute(_LIST_PENDING_SQL)
        return [
            PendingCompletionView(
                completion=_row_to_completion(row),
                quest_title=row.quest_title,
                reward=row.reward,
                user_name=row.user_name,
                user_emoji=row.user_emoji,
            )
            for row in result.fetchall()
        ]
