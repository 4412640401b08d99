"""BalanceRecalculator — derive and persist a user's balance from the ledger.

Runs inside the caller's transaction and never commits; every workflow that
appends a balance-affecting entry calls recalculate() before committing.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.errors import UserNotFoundError
from src.rl_ledger.domain.balance import calculate_balance
from src.rl_ledger.domain.repository import LedgerRepositoryProtocol
from src.rl_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceDrift:
    user_id: int
    cached: int
    recalculated: int


@dataclass(frozen=True)
class ReplayResult:
    users_checked: int
    drifts: list[BalanceDrift]


class BalanceRecalculator:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def recalculate(self, db: AsyncSession, user_id: int) -> int:
        user = await self._repo.get_user(db, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        history = (
            [] if user.is_admin else await self._repo.list_user_transactions(db, user_id)
        )
        balance = calculate_balance(user.id, user.is_admin, history)
        await self._repo.set_balance(db, user_id, balance)
        return balance

    async def recalculate_all(self, db: AsyncSession) -> ReplayResult:
        """Full-ledger replay over every user, reporting the balances that had drifted.

        Each user row is locked before its history is read, so a concurrent
        writer can't slip an entry in between read and write.
        """
        users = await self._repo.list_users(db)
        drifts: list[BalanceDrift] = []
        for listed in users:
            user = await self._repo.lock_user(db, listed.id)
            if user is None:
                continue
            balance = await self.recalculate(db, user.id)
            if balance != user.balance:
                logger.warning(
                    "Balance drift repaired: user=%s cached=%s recalculated=%s",
                    user.id, user.balance, balance,
                )
                drifts.append(BalanceDrift(user.id, user.balance, balance))
        return ReplayResult(users_checked=len(users), drifts=drifts)
