"""Unit tests for LedgerApplicationService over the in-memory store."""

import pytest

from src.rl_common.enums import GrantKind, TransactionKind
from src.rl_common.errors import (
    AdminRequiredError,
    AdminTargetError,
    InvalidAmountError,
    SelfTargetError,
    UserNotFoundError,
)


class TestGrant:
    async def test_respect_raises_balance(self, store, db, ledger_service) -> None:
        admin = store.add_user("admin", is_admin=True)
        alice = store.add_user("alice")

        resp = await ledger_service.grant(
            db, store.actor(admin), alice.id, GrantKind.RESPECT, 3
        )

        assert resp.balance == 3
        assert resp.kind == "RESPECT"
        assert resp.amount == 3
        assert store.users[alice.id].balance == 3
        db.commit.assert_awaited_once()

    async def test_disrespect_is_stored_negative(self, store, db, ledger_service) -> None:
        admin = store.add_user("admin", is_admin=True)
        alice = store.add_user("alice")
        await ledger_service.grant(db, store.actor(admin), alice.id, GrantKind.RESPECT, 3)

        resp = await ledger_service.grant(
            db, store.actor(admin), alice.id, GrantKind.DISRESPECT, 1
        )

        assert resp.amount == -1
        assert resp.balance == 2
        tx = store.transactions[resp.transaction_id]
        assert tx.kind == TransactionKind.DISRESPECT
        assert tx.description == "Gave disrespect"

    async def test_custom_description_is_kept(self, store, db, ledger_service) -> None:
        admin = store.add_user("admin", is_admin=True)
        alice = store.add_user("alice")
        resp = await ledger_service.grant(
            db, store.actor(admin), alice.id, GrantKind.RESPECT, 1, "Helped a neighbour"
        )
        assert store.transactions[resp.transaction_id].description == "Helped a neighbour"

    async def test_member_cannot_grant(self, store, db, ledger_service) -> None:
        alice = store.add_user("alice")
        bob = store.add_user("bob")
        with pytest.raises(AdminRequiredError):
            await ledger_service.grant(db, store.actor(alice), bob.id, GrantKind.RESPECT, 1)
        assert store.transactions == {}

    async def test_self_target_is_forbidden(self, store, db, ledger_service) -> None:
        admin = store.add_user("admin", is_admin=True)
        with pytest.raises(SelfTargetError):
            await ledger_service.grant(db, store.actor(admin), admin.id, GrantKind.RESPECT, 1)
        assert store.transactions == {}

    async def test_admin_target_is_forbidden(self, store, db, ledger_service) -> None:
        admin = store.add_user("admin", is_admin=True)
        other_admin = store.add_user("root", is_admin=True)
        with pytest.raises(AdminTargetError):
            await ledger_service.grant(
                db, store.actor(admin), other_admin.id, GrantKind.DISRESPECT, 1
            )
        assert store.transactions == {}
        assert store.users[other_admin.id].balance == 0
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    @pytest.mark.parametrize("amount", [0, -2])
    async def test_non_positive_amount_rejected(self, store, db, ledger_service, amount) -> None:
        admin = store.add_user("admin", is_admin=True)
        alice = store.add_user("alice")
        with pytest.raises(InvalidAmountError):
            await ledger_service.grant(
                db, store.actor(admin), alice.id, GrantKind.RESPECT, amount
            )

    async def test_unknown_target(self, store, db, ledger_service) -> None:
        admin = store.add_user("admin", is_admin=True)
        with pytest.raises(UserNotFoundError):
            await ledger_service.grant(db, store.actor(admin), 999, GrantKind.RESPECT, 1)


class TestReadViews:
    async def test_balance_breakdown(self, store, db, ledger_service) -> None:
        admin = store.add_user("admin", is_admin=True)
        alice = store.add_user("alice")
        await ledger_service.grant(db, store.actor(admin), alice.id, GrantKind.RESPECT, 4)
        await ledger_service.grant(db, store.actor(admin), alice.id, GrantKind.DISRESPECT, 1)

        resp = await ledger_service.get_balance(db, alice.id)

        assert resp.balance == 3
        assert resp.respects == 4
        assert resp.disrespects == 1
        assert resp.spent == 0

    async def test_balance_of_unknown_user(self, db, ledger_service) -> None:
        with pytest.raises(UserNotFoundError):
            await ledger_service.get_balance(db, 42)

    async def test_leaderboard_excludes_admins_and_sorts_by_balance(
        self, store, db, ledger_service
    ) -> None:
        admin = store.add_user("admin", is_admin=True)
        alice = store.add_user("alice")
        bob = store.add_user("bob")
        carol = store.add_user("carol")
        await ledger_service.grant(db, store.actor(admin), bob.id, GrantKind.RESPECT, 5)
        await ledger_service.grant(db, store.actor(admin), alice.id, GrantKind.RESPECT, 2)
        await ledger_service.grant(db, store.actor(admin), carol.id, GrantKind.RESPECT, 2)
        await ledger_service.grant(db, store.actor(admin), carol.id, GrantKind.DISRESPECT, 1)

        board = await ledger_service.get_leaderboard(db)

        assert [e.name for e in board.items] == ["bob", "alice", "carol"]
        assert [e.rank for e in board.items] == [1, 2, 3]
        assert board.items[2].respects == 2
        assert board.items[2].disrespects == 1

    async def test_recent_transactions_carry_names(self, store, db, ledger_service) -> None:
        admin = store.add_user("admin", is_admin=True, emoji="👑")
        alice = store.add_user("alice")
        await ledger_service.grant(db, store.actor(admin), alice.id, GrantKind.RESPECT, 1)

        feed = await ledger_service.list_recent_transactions(db, limit=10)

        assert len(feed.items) == 1
        assert feed.items[0].from_user_name == "admin"
        assert feed.items[0].from_user_emoji == "👑"
        assert feed.items[0].to_user_name == "alice"
