"""LedgerApplicationService — grants and read views over the transaction log.

Grants lock the recipient (in-process lock + row lock), append one entry,
recalculate and commit as a single unit. Read views run without an explicit
transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.enums import GrantKind, TransactionKind
from src.rl_common.errors import (
    AdminTargetError,
    InvalidAmountError,
    SelfTargetError,
    UserNotFoundError,
)
from src.rl_common.locks import UserLocks, get_user_locks
from src.rl_ledger.application.recalculator import BalanceRecalculator
from src.rl_ledger.application.schemas import (
    BalanceResponse,
    GrantResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    TransactionItem,
    TransactionListResponse,
)
from src.rl_ledger.domain.balance import calculate_balance, summarize
from src.rl_ledger.domain.models import NewTransaction
from src.rl_ledger.domain.repository import LedgerRepositoryProtocol
from src.rl_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)

_DEFAULT_DESCRIPTIONS = {
    GrantKind.RESPECT: "Gave respect",
    GrantKind.DISRESPECT: "Gave disrespect",
}


class LedgerApplicationService:
    def __init__(
        self,
        repo: LedgerRepositoryProtocol | None = None,
        locks: UserLocks | None = None,
    ) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()
        self._recalculator = BalanceRecalculator(self._repo)
        self._locks = locks or get_user_locks()

    async def grant(
        self,
        db: AsyncSession,
        actor: Actor,
        target_user_id: int,
        kind: GrantKind,
        amount: int,
        description: str | None = None,
    ) -> GrantResponse:
        actor.require_admin()
        if amount is None or amount <= 0:
            raise InvalidAmountError(amount)
        if target_user_id == actor.id:
            raise SelfTargetError()

        signed = amount if kind == GrantKind.RESPECT else -amount
        async with self._locks.for_user(target_user_id):
            try:
                target = await self._repo.lock_user(db, target_user_id)
                if target is None:
                    raise UserNotFoundError(target_user_id)
                if target.is_admin:
                    raise AdminTargetError()
                tx = await self._repo.insert_transaction(
                    db,
                    NewTransaction(
                        kind=TransactionKind(kind.value),
                        amount=signed,
                        from_user_id=actor.id,
                        to_user_id=target_user_id,
                        description=description or _DEFAULT_DESCRIPTIONS[kind],
                    ),
                )
                balance = await self._recalculator.recalculate(db, target_user_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "%s granted: admin=%s user=%s amount=%s balance=%s",
            kind.value, actor.id, target_user_id, signed, balance,
        )
        return GrantResponse(
            transaction_id=tx.id,
            kind=tx.kind.value,
            amount=tx.amount,
            to_user_id=target.id,
            to_user_name=target.name,
            balance=balance,
        )

    async def get_balance(self, db: AsyncSession, user_id: int) -> BalanceResponse:
        user = await self._repo.get_user(db, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        history = await self._repo.list_user_transactions(db, user_id)
        return BalanceResponse.from_breakdown(
            user_id=user_id,
            balance=calculate_balance(user.id, user.is_admin, history),
            breakdown=summarize(user.id, history),
        )

    async def get_leaderboard(self, db: AsyncSession) -> LeaderboardResponse:
        members = await self._repo.list_users(db, is_admin=False)
        ledger = await self._repo.list_all_transactions(db)
        members.sort(key=lambda u: (-u.balance, u.id))

        items = []
        for rank, member in enumerate(members, start=1):
            stats = summarize(member.id, ledger)
            items.append(
                LeaderboardEntry(
                    rank=rank,
                    user_id=member.id,
                    name=member.name,
                    avatar_emoji=member.avatar_emoji,
                    balance=member.balance,
                    respects=stats.respects,
                    disrespects=stats.disrespects,
                )
            )
        return LeaderboardResponse(items=items)

    async def list_recent_transactions(
        self, db: AsyncSession, limit: int
    ) -> TransactionListResponse:
        views = await self._repo.list_recent_transactions(db, limit)
        return TransactionListResponse(items=[TransactionItem.from_view(v) for v in views])
