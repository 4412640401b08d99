"""Admin application service: dashboard, accounts, ledger maintenance."""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.datetime_utils import to_iso
from src.rl_gateway.user.service import UserService
from src.rl_ledger.application.recalculator import BalanceRecalculator
from src.rl_ledger.application.schemas import BalanceDriftItem, RecalculationResponse
from src.rl_ledger.domain.invariants import verify_balance_invariants
from src.rl_ledger.domain.models import User
from src.rl_ledger.domain.repository import LedgerRepositoryProtocol
from src.rl_ledger.infrastructure.persistence import LedgerRepository
from src.rl_notification.application.service import NotificationService
from src.rl_quest.application.service import QuestService
from src.rl_shop.application.service import ShopService

logger = logging.getLogger(__name__)

# A REJECTED purchase must carry its refund unless the debit went missing;
# a PENDING or BOUGHT one must not carry any.
_PURCHASE_REFUND_MISMATCH_SQL = text("""
    SELECT sp.id, sp.status, sp.refund_transaction_id
    FROM shop_purchases sp
    WHERE (sp.status = 'REJECTED' AND sp.refund_transaction_id IS NULL
           AND EXISTS (SELECT 1 FROM transactions t WHERE t.id = sp.debit_transaction_id))
       OR (sp.status <> 'REJECTED' AND sp.refund_transaction_id IS NOT NULL)
    ORDER BY sp.id
""")


def _user_dict(user: User) -> dict[str, Any]:
    return {
        "user_id": user.id,
        "name": user.name,
        "avatar_emoji": user.avatar_emoji,
        "is_admin": user.is_admin,
        "balance": user.balance,
        "created_at": to_iso(user.created_at),
    }


class AdminService:
    def __init__(
        self,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        quests: QuestService | None = None,
        shop: ShopService | None = None,
        notifications: NotificationService | None = None,
        users: UserService | None = None,
    ) -> None:
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._recalculator = BalanceRecalculator(self._ledger)
        self._quests = quests or QuestService(ledger_repo=self._ledger)
        self._shop = shop or ShopService(ledger_repo=self._ledger)
        self._notifications = notifications or NotificationService()
        self._users = users or UserService()

    async def get_dashboard(self, db: AsyncSession, actor: Actor) -> dict[str, Any]:
        """Everything waiting on an admin, in one payload."""
        actor.require_admin()
        completions = await self._quests.list_pending(db, actor)
        purchases = await self._shop.list_pending(db, actor)
        inbox = await self._notifications.list_notifications(
            db, actor, unread_only=True, limit=20
        )
        users = await self._ledger.list_users(db)
        return {
            "pending_completions": completions.model_dump()["items"],
            "pending_purchases": purchases.model_dump()["items"],
            "notifications": inbox.model_dump()["items"],
            "counts": {
                "pending_completions": len(completions.items),
                "pending_purchases": len(purchases.items),
                "unread_notifications": inbox.unread_count,
            },
            "users": [_user_dict(u) for u in users],
        }

    async def list_users(self, db: AsyncSession, actor: Actor) -> list[dict[str, Any]]:
        actor.require_admin()
        return [_user_dict(u) for u in await self._ledger.list_users(db)]

    async def create_user(
        self,
        db: AsyncSession,
        actor: Actor,
        name: str,
        pin: str,
        avatar_emoji: str,
        is_admin: bool,
    ) -> dict[str, Any]:
        user = await self._users.create_user(db, actor, name, pin, avatar_emoji, is_admin)
        return {
            "user_id": user.id,
            "name": user.name,
            "avatar_emoji": user.avatar_emoji,
            "is_admin": user.is_admin,
            "balance": user.balance,
            "created_at": to_iso(user.created_at),
        }

    async def recalculate_balances(
        self, db: AsyncSession, actor: Actor
    ) -> RecalculationResponse:
        """Full-ledger replay; repairs and reports every drifted balance."""
        actor.require_admin()
        try:
            result = await self._recalculator.recalculate_all(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Balance replay by admin %s: %d users, %d drifted",
            actor.id, result.users_checked, len(result.drifts),
        )
        return RecalculationResponse(
            users_checked=result.users_checked,
            drifted=[
                BalanceDriftItem(
                    user_id=d.user_id, cached=d.cached, recalculated=d.recalculated
                )
                for d in result.drifts
            ],
        )

    async def verify_all_invariants(self, db: AsyncSession, actor: Actor) -> dict[str, object]:
        """Read-only check of balances and purchase refund links."""
        actor.require_admin()
        users = await self._ledger.list_users(db)
        ledger = await self._ledger.list_all_transactions(db)
        violations = verify_balance_invariants(users, ledger)

        rows = (await db.execute(_PURCHASE_REFUND_MISMATCH_SQL)).fetchall()
        for row in rows:
            msg = (
                f"purchase {row.id} status={row.status} "
                f"refund_transaction_id={row.refund_transaction_id}"
            )
            logger.error("Ledger invariant violated: %s", msg)
            violations.append(msg)
        return {
            "ok": len(violations) == 0,
            "users_checked": len(users),
            "violations": violations,
        }
