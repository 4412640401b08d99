"""Unit tests for NotificationService — fan-out and per-admin read state."""

import pytest

from src.rl_common.enums import NotificationType
from src.rl_common.errors import AdminRequiredError, NotificationNotFoundError


@pytest.fixture
def admins(store):
    first = store.add_user("admin", is_admin=True)
    second = store.add_user("root", is_admin=True)
    return store.actor(first), store.actor(second)


async def test_notify_admins_creates_one_per_admin(
    store, db, notification_service, admins
) -> None:
    store.add_user("alice")
    created = await notification_service.notify_admins(
        db, NotificationType.SHOP_PURCHASE, "alice wants pizza", item_id=7
    )
    assert sorted(n.user_id for n in created) == sorted(a.id for a in admins)
    assert all(not n.is_read for n in created)
    db.commit.assert_not_awaited()


async def test_notify_without_admins_is_a_noop(store, db, notification_service) -> None:
    store.add_user("alice")
    created = await notification_service.notify_admins(
        db, NotificationType.SHOP_PURCHASE, "nobody listens"
    )
    assert created == []


async def test_no_dedup_for_repeated_events(store, db, notification_service, admins) -> None:
    for _ in range(2):
        await notification_service.notify_admins(db, NotificationType.SHOP_PURCHASE, "same")
    assert len(store.notifications) == 4


async def test_mark_read_is_scoped_to_recipient(
    store, db, notification_service, admins
) -> None:
    first, second = admins
    created = await notification_service.notify_admins(
        db, NotificationType.SHOP_PURCHASE, "hello"
    )
    theirs = next(n for n in created if n.user_id == second.id)

    with pytest.raises(NotificationNotFoundError):
        await notification_service.mark_read(db, first, theirs.id)
    assert store.notifications[theirs.id].is_read is False

    resp = await notification_service.mark_read(db, second, theirs.id)
    assert resp.is_read is True
    assert store.notifications[theirs.id].is_read is True


async def test_unread_count_and_mark_all(store, db, notification_service, admins) -> None:
    first, second = admins
    for i in range(3):
        await notification_service.notify_admins(db, NotificationType.SHOP_PURCHASE, f"m{i}")

    assert (await notification_service.unread_count(db, first)).unread_count == 3
    resp = await notification_service.mark_all_read(db, first)
    assert resp.updated == 3
    assert (await notification_service.unread_count(db, first)).unread_count == 0
    # the other admin's inbox is untouched
    assert (await notification_service.unread_count(db, second)).unread_count == 3


async def test_list_newest_first_with_unread_filter(
    store, db, notification_service, admins
) -> None:
    first, _ = admins
    for i in range(3):
        await notification_service.notify_admins(db, NotificationType.SHOP_PURCHASE, f"m{i}")
    listing = await notification_service.list_notifications(db, first)
    assert [n.message for n in listing.items] == ["m2", "m1", "m0"]

    await notification_service.mark_read(db, first, listing.items[0].id)
    unread = await notification_service.list_notifications(db, first, unread_only=True)
    assert [n.message for n in unread.items] == ["m1", "m0"]
    assert unread.unread_count == 2


async def test_members_have_no_inbox(store, db, notification_service) -> None:
    alice = store.actor(store.add_user("alice"))
    with pytest.raises(AdminRequiredError):
        await notification_service.list_notifications(db, alice)
    with pytest.raises(AdminRequiredError):
        await notification_service.mark_all_read(db, alice)
