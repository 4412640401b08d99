"""Pydantic schemas for rl_ledger API."""

from pydantic import BaseModel, Field

from src.rl_common.datetime_utils import to_iso
from src.rl_ledger.domain.balance import BalanceBreakdown
from src.rl_ledger.domain.models import TransactionView

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class GrantRequest(BaseModel):
    amount: int = Field(1, gt=0, description="Points to grant (sign is set by the endpoint)")
    description: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class GrantResponse(BaseModel):
    transaction_id: int
    kind: str
    amount: int
    to_user_id: int
    to_user_name: str
    balance: int


class BalanceResponse(BaseModel):
    user_id: int
    balance: int
    respects: int
    disrespects: int
    spent: int
    refunded: int

    @classmethod
    def from_breakdown(
        cls, user_id: int, balance: int, breakdown: BalanceBreakdown
    ) -> "BalanceResponse":
        return cls(
            user_id=user_id,
            balance=balance,
            respects=breakdown.respects,
            disrespects=breakdown.disrespects,
            spent=breakdown.spent,
            refunded=breakdown.refunded,
        )


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    name: str
    avatar_emoji: str
    balance: int
    respects: int
    disrespects: int


class LeaderboardResponse(BaseModel):
    items: list[LeaderboardEntry]


class TransactionItem(BaseModel):
    id: int
    kind: str
    amount: int
    description: str | None
    from_user_id: int | None
    from_user_name: str | None
    from_user_emoji: str | None
    to_user_id: int | None
    to_user_name: str | None
    to_user_emoji: str | None
    created_at: str | None  # ISO8601 string

    @classmethod
    def from_view(cls, view: TransactionView) -> "TransactionItem":
        tx = view.transaction
        return cls(
            id=tx.id,
            kind=tx.kind.value,
            amount=tx.amount,
            description=tx.description,
            from_user_id=tx.from_user_id,
            from_user_name=view.from_user_name,
            from_user_emoji=view.from_user_emoji,
            to_user_id=tx.to_user_id,
            to_user_name=view.to_user_name,
            to_user_emoji=view.to_user_emoji,
            created_at=to_iso(tx.created_at),
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionItem]


class BalanceDriftItem(BaseModel):
    user_id: int
    cached: int
    recalculated: int


class RecalculationResponse(BaseModel):
    users_checked: int
    drifted: list[BalanceDriftItem]
