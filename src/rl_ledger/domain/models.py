"""Domain models for rl_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.rl_common.enums import TransactionKind
from src.rl_common.errors import LedgerInvariantError


@dataclass
class User:
    id: int
    name: str
    avatar_emoji: str
    is_admin: bool
    balance: int
    created_at: datetime | None = None


@dataclass
class Transaction:
    id: int
    from_user_id: int | None
    to_user_id: int | None
    kind: TransactionKind
    amount: int              # signed; see NewTransaction for the sign rules
    description: str | None
    created_at: datetime | None = None


@dataclass
class TransactionView:
    """Transaction joined with both parties' display fields."""

    transaction: Transaction
    from_user_name: str | None
    from_user_emoji: str | None
    to_user_name: str | None
    to_user_emoji: str | None


@dataclass(frozen=True)
class NewTransaction:
    """A ledger entry about to be appended.

    Rejects shapes the balance rules can't account for, before anything
    reaches the store.
    """

    kind: TransactionKind
    amount: int
    from_user_id: int | None
    to_user_id: int | None
    description: str

    def __post_init__(self) -> None:
        if self.kind in (TransactionKind.RESPECT, TransactionKind.QUEST_REWARD):
            if self.amount <= 0 or self.to_user_id is None:
                raise LedgerInvariantError(
                    f"{self.kind.value} needs a positive amount and a recipient"
                )
        elif self.kind == TransactionKind.DISRESPECT:
            if self.amount >= 0 or self.to_user_id is None:
                raise LedgerInvariantError(
                    "DISRESPECT needs a negative amount and a recipient"
                )
        elif self.amount < 0:
            # SHOP_PURCHASE debit: from the purchaser, to nobody
            if self.from_user_id is None or self.to_user_id is not None:
                raise LedgerInvariantError("purchase debit must originate from the buyer only")
        elif self.amount > 0:
            # SHOP_PURCHASE refund: to the purchaser, from nobody
            if self.to_user_id is None or self.from_user_id is not None:
                raise LedgerInvariantError("purchase refund must be addressed to the buyer only")
