"""Unit tests for ShopService — catalog, purchases, refunds."""

import asyncio
import logging

import pytest

from src.rl_common.enums import GrantKind, NotificationType, PurchaseStatus, TransactionKind
from src.rl_common.errors import (
    AdminParticipationError,
    ImageUploadError,
    InsufficientBalanceError,
    InvalidItemError,
    ItemInUseError,
    ItemNotFoundError,
    PurchaseNotFoundError,
)


@pytest.fixture
def world(store):
    admin = store.add_user("admin", is_admin=True, emoji="👑")
    alice = store.add_user("alice", emoji="🃏")
    item = store.add_item("Pizza night", price=2)
    return store.actor(admin), store.actor(alice), item


async def _fund(store, db, ledger_service, admin, user_id: int, amount: int) -> None:
    await ledger_service.grant(db, admin, user_id, GrantKind.RESPECT, amount)


class TestBuy:
    async def test_debits_and_creates_pending_purchase(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 5)

        resp = await shop_service.buy(db, alice, item.id)

        assert resp.status == "PENDING"
        assert resp.balance == 3
        assert store.users[alice.id].balance == 3
        debit = store.transactions[resp.debit_transaction_id]
        assert debit.kind == TransactionKind.SHOP_PURCHASE
        assert debit.amount == -2
        assert debit.from_user_id == alice.id
        assert debit.to_user_id is None
        assert debit.description == "Pending purchase: Pizza night"

    async def test_insufficient_balance_writes_nothing(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 1)
        before = dict(store.transactions)

        with pytest.raises(InsufficientBalanceError):
            await shop_service.buy(db, alice, item.id)

        assert store.transactions == before
        assert store.purchases == {}
        assert store.notifications == {}
        assert store.users[alice.id].balance == 1

    async def test_exact_balance_is_enough(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 2)
        resp = await shop_service.buy(db, alice, item.id)
        assert resp.balance == 0

    async def test_admin_cannot_buy(self, db, shop_service, world) -> None:
        admin, _, item = world
        with pytest.raises(AdminParticipationError):
            await shop_service.buy(db, admin, item.id)

    async def test_unknown_item(self, db, shop_service, world) -> None:
        _, alice, _ = world
        with pytest.raises(ItemNotFoundError):
            await shop_service.buy(db, alice, 999)

    async def test_every_admin_is_notified(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        second = store.add_user("root", is_admin=True)
        third = store.add_user("boss", is_admin=True)
        store.add_user("bob")
        await _fund(store, db, ledger_service, admin, alice.id, 5)

        resp = await shop_service.buy(db, alice, item.id)

        assert resp.admins_notified == 3
        recipients = sorted(n.user_id for n in store.notifications.values())
        assert recipients == sorted([admin.id, second.id, third.id])
        for n in store.notifications.values():
            assert n.type == NotificationType.SHOP_PURCHASE
            assert n.item_id == item.id
            assert n.is_read is False
            assert n.message == 'alice (🃏) wants to buy "Pizza night" for 2 🥚'

    async def test_concurrent_buys_cannot_overspend(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 3)

        results = await asyncio.gather(
            shop_service.buy(db, alice, item.id),
            shop_service.buy(db, alice, item.id),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, InsufficientBalanceError)]
        assert len(failures) == 1
        assert store.users[alice.id].balance == 1
        assert len(store.purchases) == 1


class TestApprove:
    async def test_keeps_debit_and_logs_zero_entry(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 5)
        bought = await shop_service.buy(db, alice, item.id)

        resp = await shop_service.approve(db, admin, bought.purchase_id)

        assert resp.status == "BOUGHT"
        assert resp.refunded is False
        assert store.purchases[bought.purchase_id].status == PurchaseStatus.BOUGHT
        log = max(store.transactions.values(), key=lambda t: t.id)
        assert log.amount == 0
        assert log.from_user_id == admin.id
        assert log.to_user_id == alice.id
        assert log.description == 'admin bought "Pizza night" for alice'
        assert store.users[alice.id].balance == 3

    async def test_cannot_approve_twice(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 5)
        bought = await shop_service.buy(db, alice, item.id)
        await shop_service.approve(db, admin, bought.purchase_id)

        with pytest.raises(PurchaseNotFoundError):
            await shop_service.approve(db, admin, bought.purchase_id)
        with pytest.raises(PurchaseNotFoundError):
            await shop_service.reject(db, admin, bought.purchase_id)


class TestReject:
    async def test_refunds_exactly_once(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 5)
        bought = await shop_service.buy(db, alice, item.id)

        resp = await shop_service.reject(db, admin, bought.purchase_id)

        assert resp.status == "REJECTED"
        assert resp.refunded is True
        assert resp.balance == 5
        refunds = [
            t for t in store.transactions.values()
            if t.kind == TransactionKind.SHOP_PURCHASE and t.amount > 0
        ]
        assert len(refunds) == 1
        assert refunds[0].amount == 2
        assert refunds[0].to_user_id == alice.id
        assert refunds[0].from_user_id is None
        assert refunds[0].description == "Refund: Pizza night (rejected)"
        assert store.purchases[bought.purchase_id].refund_transaction_id == refunds[0].id

        with pytest.raises(PurchaseNotFoundError):
            await shop_service.reject(db, admin, bought.purchase_id)
        assert store.users[alice.id].balance == 5

    async def test_missing_debit_rejects_without_refund(
        self, store, db, ledger_service, shop_service, world, caplog
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 5)
        bought = await shop_service.buy(db, alice, item.id)
        del store.transactions[bought.debit_transaction_id]  # out-of-band corruption

        with caplog.at_level(logging.WARNING):
            resp = await shop_service.reject(db, admin, bought.purchase_id)

        assert resp.status == "REJECTED"
        assert resp.refunded is False
        assert store.purchases[bought.purchase_id].refund_transaction_id is None
        assert f"Purchase {bought.purchase_id} rejected without refund" in caplog.text

    async def test_end_to_end_scenario(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world

        r1 = await ledger_service.grant(db, admin, alice.id, GrantKind.RESPECT, 3)
        assert r1.balance == 3
        r2 = await ledger_service.grant(db, admin, alice.id, GrantKind.DISRESPECT, 1)
        assert r2.balance == 2
        bought = await shop_service.buy(db, alice, item.id)
        assert bought.balance == 0
        assert bought.status == "PENDING"
        rejected = await shop_service.reject(db, admin, bought.purchase_id)
        assert rejected.balance == 2
        assert store.users[admin.id].balance == 0


class TestCatalog:
    async def test_items_sorted_by_price(self, store, db, shop_service, world) -> None:
        store.add_item("Expensive", price=10)
        store.add_item("Cheap", price=1)
        resp = await shop_service.list_items(db)
        assert [i.price for i in resp.items] == [1, 2, 10]

    async def test_create_uploads_image_first(
        self, store, db, shop_service, images, world
    ) -> None:
        admin, _, _ = world
        resp = await shop_service.create_item(
            db, admin, "Cinema", 4, image=b"\x89PNG", filename="cinema.png",
            content_type="image/png",
        )
        assert resp.image_url == "https://img.example/items/cinema.png"
        assert images.uploaded == ["items/cinema.png"]
        assert store.items[resp.id].image_public_id == "items/cinema.png"

    async def test_upload_failure_writes_nothing(
        self, store, db, shop_service, images, world
    ) -> None:
        admin, _, _ = world
        images.fail_upload = True
        with pytest.raises(ImageUploadError):
            await shop_service.create_item(db, admin, "Cinema", 4, image=b"x", filename="c.png")
        assert len(store.items) == 1
        db.commit.assert_not_awaited()

    async def test_create_validates_price(self, db, shop_service, world) -> None:
        admin, _, _ = world
        with pytest.raises(InvalidItemError):
            await shop_service.create_item(db, admin, "Free lunch", 0)

    async def test_delete_removes_hosted_image(
        self, store, db, shop_service, images, world
    ) -> None:
        admin, _, _ = world
        item = store.add_item("Poster", price=3, image_public_id="items/poster")

        resp = await shop_service.delete_item(db, admin, item.id)

        assert resp.deleted is True
        assert resp.image_removed is True
        assert images.destroyed == ["items/poster"]
        assert item.id not in store.items

    async def test_delete_survives_image_host_failure(
        self, store, db, shop_service, images, world, caplog
    ) -> None:
        admin, _, _ = world
        item = store.add_item("Poster", price=3, image_public_id="items/poster")
        images.fail_destroy = True

        with caplog.at_level(logging.WARNING):
            resp = await shop_service.delete_item(db, admin, item.id)

        assert resp.deleted is True
        assert resp.image_removed is False
        assert "Could not remove hosted image" in caplog.text

    async def test_delete_item_with_purchases_conflicts(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 5)
        await shop_service.buy(db, alice, item.id)

        with pytest.raises(ItemInUseError):
            await shop_service.delete_item(db, admin, item.id)
        assert item.id in store.items

    async def test_purchase_lists(
        self, store, db, ledger_service, shop_service, world
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 5)
        await shop_service.buy(db, alice, item.id)

        mine = await shop_service.list_my_purchases(db, alice)
        pending = await shop_service.list_pending(db, admin)

        assert [p.item_name for p in mine.items] == ["Pizza night"]
        assert pending.items[0].user_name == "alice"
        assert pending.items[0].price == 2


class TestAtomicity:
    """A failure after the first write leaves the committed state untouched."""

    async def test_buy_failing_after_debit_writes_nothing(
        self, store, db, ledger_service, shop_service, world, monkeypatch
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 5)
        before = dict(store.transactions)
        commits = db.commit.await_count

        async def broken(*args, **kwargs):
            raise RuntimeError("notification insert failed")

        monkeypatch.setattr(store, "insert_notification", broken)

        with pytest.raises(RuntimeError):
            await shop_service.buy(db, alice, item.id)

        assert db.commit.await_count == commits
        db.rollback.assert_awaited_once()
        assert store.purchases == {}
        assert store.transactions == before
        assert store.users[alice.id].balance == 5

    async def test_reject_failing_after_refund_writes_nothing(
        self, store, db, ledger_service, shop_service, world, monkeypatch
    ) -> None:
        admin, alice, item = world
        await _fund(store, db, ledger_service, admin, alice.id, 2)
        bought = await shop_service.buy(db, alice, item.id)
        before = dict(store.transactions)

        async def broken(*args, **kwargs):
            raise RuntimeError("balance write failed")

        monkeypatch.setattr(store, "set_balance", broken)

        with pytest.raises(RuntimeError):
            await shop_service.reject(db, admin, bought.purchase_id)

        db.rollback.assert_awaited_once()
        purchase = store.purchases[bought.purchase_id]
        assert purchase.status == PurchaseStatus.PENDING
        assert purchase.refund_transaction_id is None
        assert store.transactions == before
        assert store.users[alice.id].balance == 0
