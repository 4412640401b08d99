"""Closed enumerations for every status/kind column.

Values must match the CHECK constraints in alembic/versions exactly; the
database constraint is a mirror, these enums are the primary guarantee.
"""

from enum import Enum


class TransactionKind(str, Enum):
    RESPECT = "RESPECT"
    DISRESPECT = "DISRESPECT"
    QUEST_REWARD = "QUEST_REWARD"
    # Debit (negative, from purchaser), refund (positive, to purchaser)
    # and the zero-amount approval log all share this kind.
    SHOP_PURCHASE = "SHOP_PURCHASE"


class CompletionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PurchaseStatus(str, Enum):
    PENDING = "PENDING"
    BOUGHT = "BOUGHT"
    REJECTED = "REJECTED"


class NotificationType(str, Enum):
    SHOP_PURCHASE = "SHOP_PURCHASE"
    QUEST_APPROVAL = "QUEST_APPROVAL"


class GrantKind(str, Enum):
    """Admin-issued grants; a subset of TransactionKind."""

    RESPECT = "RESPECT"
    DISRESPECT = "DISRESPECT"
