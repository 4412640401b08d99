"""LedgerRepository — concrete implementation of LedgerRepositoryProtocol.

All queries use raw text() SQL with bound parameters.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Transaction ownership: the CALLER (application service) commits or rolls back.
Nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.enums import TransactionKind
from src.rl_common.errors import InternalError
from src.rl_ledger.domain.models import NewTransaction, Transaction, TransactionView, User

# ---------------------------------------------------------------------------
# SQL: users
# ---------------------------------------------------------------------------

_GET_USER_SQL = text("""
    SELECT id, name, avatar_emoji, is_admin, balance, created_at
    FROM users
    WHERE id = :user_id
""")

_LOCK_USER_SQL = text("""
    SELECT id, name, avatar_emoji, is_admin, balance, created_at
    FROM users
    WHERE id = :user_id
    FOR UPDATE
""")

_LIST_USERS_SQL = text("""
    SELECT id, name, avatar_emoji, is_admin, balance, created_at
    FROM users
    WHERE CAST(:is_admin AS BOOLEAN) IS NULL OR is_admin = CAST(:is_admin AS BOOLEAN)
    ORDER BY id
""")

_SET_BALANCE_SQL = text("""
    UPDATE users
    SET balance = :balance
    WHERE id = :user_id
""")

# ---------------------------------------------------------------------------
# SQL: transactions (append-only)
# ---------------------------------------------------------------------------

_INSERT_TRANSACTION_SQL = text("""
    INSERT INTO transactions (from_user_id, to_user_id, kind, amount, description)
    VALUES (:from_user_id, :to_user_id, :kind, :amount, :description)
    RETURNING id, from_user_id, to_user_id, kind, amount, description, created_at
""")

_GET_TRANSACTION_SQL = text("""
    SELECT id, from_user_id, to_user_id, kind, amount, description, created_at
    FROM transactions
    WHERE id = :transaction_id
""")

_LIST_USER_TRANSACTIONS_SQL = text("""
    SELECT id, from_user_id, to_user_id, kind, amount, description, created_at
    FROM transactions
    WHERE to_user_id = :user_id OR from_user_id = :user_id
    ORDER BY id
""")

_LIST_ALL_TRANSACTIONS_SQL = text("""
    SELECT id, from_user_id, to_user_id, kind, amount, description, created_at
    FROM transactions
    ORDER BY id
""")

_LIST_RECENT_SQL = text("""
    SELECT t.id, t.from_user_id, t.to_user_id, t.kind, t.amount, t.description, t.created_at,
           fu.name AS from_user_name, fu.avatar_emoji AS from_user_emoji,
           tu.name AS to_user_name, tu.avatar_emoji AS to_user_emoji
    FROM transactions t
    LEFT JOIN users fu ON t.from_user_id = fu.id
    LEFT JOIN users tu ON t.to_user_id = tu.id
    ORDER BY t.created_at DESC, t.id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_user(row: object) -> User:
    return User(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        avatar_emoji=row.avatar_emoji,  # type: ignore[attr-defined]
        is_admin=bool(row.is_admin),  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_transaction(row: object) -> Transaction:
    return Transaction(
        id=row.id,  # type: ignore[attr-defined]
        from_user_id=row.from_user_id,  # type: ignore[attr-defined]
        to_user_id=row.to_user_id,  # type: ignore[attr-defined]
        kind=TransactionKind(row.kind),  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class LedgerRepository:
    """Concrete repository over the users and transactions tables."""

    async def get_user(self, db: AsyncSession, user_id: int) -> User | None:
        result = await db.execute(_GET_USER_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def lock_user(self, db: AsyncSession, user_id: int) -> User | None:
        """Read the user row and hold its lock until the caller's transaction ends."""
        result = await db.execute(_LOCK_USER_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def list_users(
        self, db: AsyncSession, is_admin: bool | None = None
    ) -> list[User]:
        result = await db.execute(_LIST_USERS_SQL, {"is_admin": is_admin})
        return [_row_to_user(row) for row in result.fetchall()]

    async def set_balance(self, db: AsyncSession, user_id: int, balance: int) -> None:
        await db.execute(_SET_BALANCE_SQL, {"user_id": user_id, "balance": balance})

    async def insert_transaction(
        self, db: AsyncSession, entry: NewTransaction
    ) -> Transaction:
        result = await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "from_user_id": entry.from_user_id,
                "to_user_id": entry.to_user_id,
                "kind": entry.kind.value,
                "amount": entry.amount,
                "description": entry.description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows")
        return _row_to_transaction(row)

    async def get_transaction(
        self, db: AsyncSession, transaction_id: int
    ) -> Transaction | None:
        result = await db.execute(_GET_TRANSACTION_SQL, {"transaction_id": transaction_id})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def list_user_transactions(
        self, db: AsyncSession, user_id: int
    ) -> list[Transaction]:
        result = await db.execute(_LIST_USER_TRANSACTIONS_SQL, {"user_id": user_id})
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def list_all_transactions(self, db: AsyncSession) -> list[Transaction]:
        result = await db.execute(_LIST_ALL_TRANSACTIONS_SQL)
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def list_recent_transactions(
        self, db: AsyncSession, limit: int
    ) -> list[TransactionView]:
        result = await db.execute(_LIST_RECENT_SQL, {"limit": limit})
        return [
            TransactionView(
                transaction=_row_to_transaction(row),
                from_user_name=row.from_user_name,
                from_user_emoji=row.from_user_emoji,
                to_user_name=row.to_user_name,
                to_user_emoji=row.to_user_emoji,
            )
            for row in result.fetchall()
        ]
