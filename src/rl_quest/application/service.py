"""QuestService — quest catalog and the completion approval workflow.

    (none) → PENDING → APPROVED            reward credited, terminal
                     → REJECTED → PENDING  resubmission reopens the same row

Submission has no balance effect. Approval marks the completion, appends the
QUEST_REWARD entry and recalculates the submitter's balance as one unit,
under the submitter's lock.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.enums import CompletionStatus, TransactionKind
from src.rl_common.errors import (
    AdminParticipationError,
    CompletionNotFoundError,
    InvalidQuestError,
    QuestAlreadyCompletedError,
    QuestAlreadyPendingError,
    QuestNotFoundError,
    UserNotFoundError,
)
from src.rl_common.locks import UserLocks, get_user_locks
from src.rl_ledger.application.recalculator import BalanceRecalculator
from src.rl_ledger.domain.models import NewTransaction
from src.rl_ledger.domain.repository import LedgerRepositoryProtocol
from src.rl_ledger.infrastructure.persistence import LedgerRepository
from src.rl_quest.application.schemas import (
    CompletionResponse,
    CompletionReviewResponse,
    DeleteQuestResponse,
    PendingCompletionItem,
    PendingCompletionListResponse,
    QuestItem,
    QuestListResponse,
)
from src.rl_quest.domain.repository import QuestRepositoryProtocol
from src.rl_quest.infrastructure.persistence import QuestRepository

logger = logging.getLogger(__name__)


class QuestService:
    def __init__(
        self,
        repo: QuestRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        locks: UserLocks | None = None,
    ) -> None:
        self._repo: QuestRepositoryProtocol = repo or QuestRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._recalculator = BalanceRecalculator(self._ledger)
        self._locks = locks or get_user_locks()

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_quests(self, db: AsyncSession, actor: Actor) -> QuestListResponse:
        """Members see active quests only; admins also see deactivated ones."""
        views = await self._repo.list_quests_for_user(
            db, actor.id, include_inactive=actor.is_admin
        )
        return QuestListResponse(items=[QuestItem.from_view(v) for v in views])

    async def create_quest(
        self, db: AsyncSession, actor: Actor, title: str, reward: int
    ) -> QuestItem:
        actor.require_admin()
        title = (title or "").strip()
        if not title:
            raise InvalidQuestError("title is required")
        if reward is None or reward <= 0:
            raise InvalidQuestError(f"reward must be positive, got {reward}")
        try:
            quest = await self._repo.insert_quest(db, title, reward)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Quest created: id=%s reward=%s by=%s", quest.id, reward, actor.id)
        return QuestItem.from_domain(quest)

    async def toggle_quest(self, db: AsyncSession, actor: Actor, quest_id: int) -> QuestItem:
        actor.require_admin()
        try:
            quest = await self._repo.toggle_quest_active(db, quest_id)
            if quest is None:
                raise QuestNotFoundError(quest_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Quest %s active=%s", quest_id, quest.is_active)
        return QuestItem.from_domain(quest)

    async def delete_quest(
        self, db: AsyncSession, actor: Actor, quest_id: int
    ) -> DeleteQuestResponse:
        actor.require_admin()
        try:
            if not await self._repo.delete_quest(db, quest_id):
                raise QuestNotFoundError(quest_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Quest deleted: id=%s by=%s", quest_id, actor.id)
        return DeleteQuestResponse(quest_id=quest_id)

    # ------------------------------------------------------------------
    # Completion workflow
    # ------------------------------------------------------------------

    async def submit(
        self, db: AsyncSession, actor: Actor, quest_id: int
    ) -> CompletionResponse:
        if actor.is_admin:
            raise AdminParticipationError("submit quests")
        try:
            quest = await self._repo.get_quest(db, quest_id)
            if quest is None or not quest.is_active:
                raise QuestNotFoundError(quest_id)

            existing = await self._repo.find_completion(db, quest_id, actor.id)
            if existing is None:
                completion = await self._repo.insert_completion(db, quest_id, actor.id)
            elif existing.status == CompletionStatus.PENDING:
                raise QuestAlreadyPendingError(quest_id)
            elif existing.status == CompletionStatus.APPROVED:
                raise QuestAlreadyCompletedError(quest_id)
            else:
                completion = await self._repo.reopen_completion(db, existing.id)
            if completion is None:
                # lost a race with a concurrent submission of the same quest
                raise QuestAlreadyPendingError(quest_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Quest submitted: completion=%s quest=%s user=%s",
            completion.id, quest_id, actor.id,
        )
        return CompletionResponse.from_domain(completion)

    async def approve(
        self, db: AsyncSession, actor: Actor, completion_id: int
    ) -> CompletionReviewResponse:
        actor.require_admin()
        pending = await self._repo.get_completion(db, completion_id)
        if pending is None or pending.status != CompletionStatus.PENDING:
            raise CompletionNotFoundError(completion_id)

        async with self._locks.for_user(pending.user_id):
            try:
                if await self._ledger.lock_user(db, pending.user_id) is None:
                    raise UserNotFoundError(pending.user_id)
                completion = await self._repo.review_completion(
                    db, completion_id, CompletionStatus.APPROVED, actor.id
                )
                if completion is None:
                    raise CompletionNotFoundError(completion_id)
                quest = await self._repo.get_quest(db, completion.quest_id)
                if quest is None:
                    raise QuestNotFoundError(completion.quest_id)
                await self._ledger.insert_transaction(
                    db,
                    NewTransaction(
                        kind=TransactionKind.QUEST_REWARD,
                        amount=quest.reward,
                        from_user_id=None,
                        to_user_id=completion.user_id,
                        description=f"Completed quest: {quest.title}",
                    ),
                )
                balance = await self._recalculator.recalculate(db, completion.user_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Quest approved: completion=%s user=%s reward=%s balance=%s by=%s",
            completion_id, completion.user_id, quest.reward, balance, actor.id,
        )
        base = CompletionResponse.from_domain(completion)
        return CompletionReviewResponse(**base.model_dump(), reward=quest.reward, balance=balance)

    async def reject(
        self, db: AsyncSession, actor: Actor, completion_id: int
    ) -> CompletionReviewResponse:
        actor.require_admin()
        try:
            completion = await self._repo.review_completion(
                db, completion_id, CompletionStatus.REJECTED, actor.id
            )
            if completion is None:
                raise CompletionNotFoundError(completion_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Quest rejected: completion=%s by=%s", completion_id, actor.id)
        return CompletionReviewResponse(**CompletionResponse.from_domain(completion).model_dump())

    async def list_pending(
        self, db: AsyncSession, actor: Actor
    ) -> PendingCompletionListResponse:
        actor.require_admin()
        views = await self._repo.list_pending_completions(db)
        return PendingCompletionListResponse(
            items=[PendingCompletionItem.from_view(v) for v in views]
        )
