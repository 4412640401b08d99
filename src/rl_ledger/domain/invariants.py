"""Ledger-wide consistency check: cached balances vs. the transaction log."""

import logging
from collections.abc import Iterable

from src.rl_ledger.domain.balance import calculate_balance
from src.rl_ledger.domain.models import Transaction, User

logger = logging.getLogger(__name__)


def verify_balance_invariants(
    users: Iterable[User], transactions: list[Transaction]
) -> list[str]:
    """Every cached balance equals its replay; admins hold exactly 0.

    Returns a list of violation strings, empty when the ledger is consistent.
    """
    violations: list[str] = []
    for user in users:
        if user.is_admin and user.balance != 0:
            violations.append(f"admin {user.id} holds balance {user.balance}, expected 0")
            continue
        expected = calculate_balance(user.id, user.is_admin, transactions)
        if user.balance != expected:
            violations.append(
                f"user {user.id} cached balance {user.balance} != ledger {expected}"
            )
    for msg in violations:
        logger.error("Ledger invariant violated: %s", msg)
    return violations
