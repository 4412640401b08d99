"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock or an in-memory double that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_ledger.domain.models import NewTransaction, Transaction, TransactionView, User


class LedgerRepositoryProtocol(Protocol):
    async def get_user(self, db: AsyncSession, user_id: int) -> User | None: ...

    async def lock_user(self, db: AsyncSession, user_id: int) -> User | None: ...

    async def list_users(
        self, db: AsyncSession, is_admin: bool | None = None
    ) -> list[User]: ...

    async def set_balance(self, db: AsyncSession, user_id: int, balance: int) -> None: ...

    async def insert_transaction(
        self, db: AsyncSession, entry: NewTransaction
    ) -> Transaction: ...

    async def get_transaction(
        self, db: AsyncSession, transaction_id: int
    ) -> Transaction | None: ...

    async def list_user_transactions(
        self, db: AsyncSession, user_id: int
    ) -> list[Transaction]: ...

    async def list_all_transactions(self, db: AsyncSession) -> list[Transaction]: ...

    async def list_recent_transactions(
        self, db: AsyncSession, limit: int
    ) -> list[TransactionView]: ...
