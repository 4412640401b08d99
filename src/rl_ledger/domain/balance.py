"""Balance derivation — the one place that turns ledger history into a balance.

Balances are always recomputed from the full transaction history and never
patched incrementally, so a late correction or an earlier bug self-heals on
the next recalculation and a full replay repairs any accumulated drift.

    balance = Σ RESPECT + QUEST_REWARD addressed to the user
            − Σ |DISRESPECT| addressed to the user
            − Σ |SHOP_PURCHASE| originating from the user      (debits)
            + Σ SHOP_PURCHASE > 0 addressed to the user        (refunds)

Admins are not economic participants: their balance is 0 whatever the log says.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from src.rl_common.enums import TransactionKind
from src.rl_ledger.domain.models import Transaction

_EARNING_KINDS = (TransactionKind.RESPECT, TransactionKind.QUEST_REWARD)


@dataclass(frozen=True)
class BalanceBreakdown:
    respects: int = 0      # RESPECT + QUEST_REWARD received
    disrespects: int = 0   # absolute DISRESPECT received
    spent: int = 0         # absolute purchase debits
    refunded: int = 0      # purchase refunds received

    @property
    def balance(self) -> int:
        return self.respects - self.disrespects - self.spent + self.refunded


def summarize(user_id: int, transactions: Iterable[Transaction]) -> BalanceBreakdown:
    """Fold every entry touching ``user_id`` into a breakdown.

    Entries that don't name the user on the relevant side are ignored, so the
    caller may pass the whole ledger.
    """
    respects = disrespects = spent = refunded = 0
    for tx in transactions:
        if tx.to_user_id == user_id:
            if tx.kind in _EARNING_KINDS:
                respects += tx.amount
            elif tx.kind == TransactionKind.DISRESPECT:
                disrespects += abs(tx.amount)
            elif tx.kind == TransactionKind.SHOP_PURCHASE and tx.amount > 0:
                refunded += tx.amount
        if tx.from_user_id == user_id and tx.kind == TransactionKind.SHOP_PURCHASE:
            spent += abs(tx.amount)
    return BalanceBreakdown(
        respects=respects,
        disrespects=disrespects,
        spent=spent,
        refunded=refunded,
    )


def calculate_balance(
    user_id: int, is_admin: bool, transactions: Iterable[Transaction]
) -> int:
    if is_admin:
        return 0
    return summarize(user_id, transactions).balance
