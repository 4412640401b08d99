"""Unit-test fixtures: an in-memory store that satisfies every repository Protocol.

FakeStore keeps users, transactions, quests, completions, shop items,
purchases and notifications in dicts, with the same conditional-update
semantics as the SQL repositories (None when the row isn't in the expected
state). Services get it as every repo at once. `db` is an AsyncMock whose
commit/rollback snapshot and restore the store, so a failed operation
leaves nothing behind.
"""

import asyncio
import copy
from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from src.rl_common.actor import Actor
from src.rl_common.datetime_utils import utc_now
from src.rl_common.enums import CompletionStatus, NotificationType, PurchaseStatus
from src.rl_common.errors import ImageUploadError
from src.rl_common.locks import UserLocks
from src.rl_ledger.application.service import LedgerApplicationService
from src.rl_ledger.domain.models import NewTransaction, Transaction, TransactionView, User
from src.rl_notification.application.service import NotificationService
from src.rl_notification.domain.models import Notification
from src.rl_quest.application.service import QuestService
from src.rl_quest.domain.models import (
    PendingCompletionView,
    Quest,
    QuestCompletion,
    QuestWithStatus,
)
from src.rl_shop.application.service import ShopService
from src.rl_shop.domain.image_store import StoredImage
from src.rl_shop.domain.models import PurchaseView, ShopItem, ShopPurchase


class FakeStore:
    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.transactions: dict[int, Transaction] = {}
        self.quests: dict[int, Quest] = {}
        self.completions: dict[int, QuestCompletion] = {}
        self.items: dict[int, ShopItem] = {}
        self.purchases: dict[int, ShopPurchase] = {}
        self.notifications: dict[int, Notification] = {}
        self._seq = 0
        self._committed: dict[str, dict] = {}
        self.commit()

    def _next_id(self) -> int:
        self._seq += 1
        return self._seq

    # --- unit of work ------------------------------------------------------

    _TABLES = (
        "users", "transactions", "quests", "completions", "items", "purchases", "notifications",
    )

    def commit(self) -> None:
        self._committed = {t: copy.deepcopy(getattr(self, t)) for t in self._TABLES}

    def rollback(self) -> None:
        for t in self._TABLES:
            setattr(self, t, copy.deepcopy(self._committed[t]))

    # --- test helpers ---------------------------------------------------

    def add_user(self, name: str, is_admin: bool = False, emoji: str = "😀") -> User:
        user = User(
            id=self._next_id(),
            name=name,
            avatar_emoji=emoji,
            is_admin=is_admin,
            balance=0,
            created_at=utc_now(),
        )
        self.users[user.id] = user
        self.commit()
        return user

    def add_quest(self, title: str, reward: int, is_active: bool = True) -> Quest:
        quest = Quest(self._next_id(), title, reward, is_active, utc_now())
        self.quests[quest.id] = quest
        self.commit()
        return quest

    def add_item(self, name: str, price: int, image_public_id: str | None = None) -> ShopItem:
        item = ShopItem(
            id=self._next_id(),
            name=name,
            price=price,
            image_url=f"https://img.example/{image_public_id}" if image_public_id else None,
            image_public_id=image_public_id,
            created_at=utc_now(),
        )
        self.items[item.id] = item
        self.commit()
        return item

    def actor(self, user: User) -> Actor:
        return Actor(id=user.id, name=user.name, is_admin=user.is_admin)

    # --- LedgerRepositoryProtocol ---------------------------------------

    async def get_user(self, db, user_id):
        user = self.users.get(user_id)
        return replace(user) if user else None

    async def lock_user(self, db, user_id):
        user = await self.get_user(db, user_id)
        # a real row lock round-trips to the server; let other tasks run here
        await asyncio.sleep(0)
        return user

    async def list_users(self, db, is_admin=None):
        return [
            replace(u)
            for u in sorted(self.users.values(), key=lambda u: u.id)
            if is_admin is None or u.is_admin == is_admin
        ]

    async def set_balance(self, db, user_id, balance):
        self.users[user_id].balance = balance

    async def insert_transaction(self, db, entry: NewTransaction):
        tx = Transaction(
            id=self._next_id(),
            from_user_id=entry.from_user_id,
            to_user_id=entry.to_user_id,
            kind=entry.kind,
            amount=entry.amount,
            description=entry.description,
            created_at=utc_now(),
        )
        self.transactions[tx.id] = tx
        return tx

    async def get_transaction(self, db, transaction_id):
        return self.transactions.get(transaction_id)

    async def list_user_transactions(self, db, user_id):
        return [
            t
            for t in self.transactions.values()
            if t.to_user_id == user_id or t.from_user_id == user_id
        ]

    async def list_all_transactions(self, db):
        return list(self.transactions.values())

    async def list_recent_transactions(self, db, limit):
        views = []
        for t in sorted(self.transactions.values(), key=lambda t: t.id, reverse=True)[:limit]:
            fu = self.users.get(t.from_user_id) if t.from_user_id else None
            tu = self.users.get(t.to_user_id) if t.to_user_id else None
            views.append(
                TransactionView(
                    transaction=t,
                    from_user_name=fu.name if fu else None,
                    from_user_emoji=fu.avatar_emoji if fu else None,
                    to_user_name=tu.name if tu else None,
                    to_user_emoji=tu.avatar_emoji if tu else None,
                )
            )
        return views

    # --- QuestRepositoryProtocol ----------------------------------------

    async def get_quest(self, db, quest_id):
        return self.quests.get(quest_id)

    async def list_quests_for_user(self, db, user_id, include_inactive):
        out = []
        for q in sorted(self.quests.values(), key=lambda q: (-q.reward, q.id)):
            if not include_inactive and not q.is_active:
                continue
            mine = next(
                (c for c in self.completions.values()
                 if c.quest_id == q.id and c.user_id == user_id),
                None,
            )
            out.append(QuestWithStatus(quest=q, status=mine.status if mine else None))
        return out

    async def insert_quest(self, db, title, reward):
        quest = Quest(self._next_id(), title, reward, True, utc_now())
        self.quests[quest.id] = quest
        return quest

    async def toggle_quest_active(self, db, quest_id):
        quest = self.quests.get(quest_id)
        if quest is None:
            return None
        quest.is_active = not quest.is_active
        return quest

    async def delete_quest(self, db, quest_id):
        if self.quests.pop(quest_id, None) is None:
            return False
        for cid in [c.id for c in self.completions.values() if c.quest_id == quest_id]:
            del self.completions[cid]
        return True

    async def get_completion(self, db, completion_id):
        c = self.completions.get(completion_id)
        return replace(c) if c else None

    async def find_completion(self, db, quest_id, user_id):
        for c in self.completions.values():
            if c.quest_id == quest_id and c.user_id == user_id:
                return replace(c)
        return None

    async def insert_completion(self, db, quest_id, user_id):
        if await self.find_completion(db, quest_id, user_id) is not None:
            return None
        c = QuestCompletion(
            id=self._next_id(),
            quest_id=quest_id,
            user_id=user_id,
            status=CompletionStatus.PENDING,
            submitted_at=utc_now(),
        )
        self.completions[c.id] = c
        return replace(c)

    async def reopen_completion(self, db, completion_id):
        c = self.completions.get(completion_id)
        if c is None or c.status != CompletionStatus.REJECTED:
            return None
        c.status = CompletionStatus.PENDING
        c.submitted_at = utc_now()
        c.reviewed_at = None
        c.reviewed_by = None
        return replace(c)

    async def review_completion(self, db, completion_id, status, reviewer_id):
        c = self.completions.get(completion_id)
        if c is None or c.status != CompletionStatus.PENDING:
            return None
        c.status = status
        c.reviewed_at = utc_now()
        c.reviewed_by = reviewer_id
        return replace(c)

    async def list_pending_completions(self, db):
        return [
            PendingCompletionView(
                completion=replace(c),
                quest_title=self.quests[c.quest_id].title,
                reward=self.quests[c.quest_id].reward,
                user_name=self.users[c.user_id].name,
                user_emoji=self.users[c.user_id].avatar_emoji,
            )
            for c in sorted(self.completions.values(), key=lambda c: c.id)
            if c.status == CompletionStatus.PENDING
        ]

    # --- ShopRepositoryProtocol -----------------------------------------

    async def get_item(self, db, item_id):
        return self.items.get(item_id)

    async def list_items(self, db):
        return sorted(self.items.values(), key=lambda i: (i.price, i.id))

    async def insert_item(self, db, name, price, image_url, image_public_id):
        item = ShopItem(self._next_id(), name, price, image_url, image_public_id, utc_now())
        self.items[item.id] = item
        return item

    async def delete_item(self, db, item_id):
        if self.items.pop(item_id, None) is None:
            return False
        for n in self.notifications.values():
            if n.item_id == item_id:
                n.item_id = None
        return True

    async def count_item_purchases(self, db, item_id):
        return sum(1 for p in self.purchases.values() if p.item_id == item_id)

    async def insert_purchase(self, db, item_id, user_id, debit_transaction_id):
        p = ShopPurchase(
            id=self._next_id(),
            item_id=item_id,
            user_id=user_id,
            status=PurchaseStatus.PENDING,
            debit_transaction_id=debit_transaction_id,
            purchased_at=utc_now(),
        )
        self.purchases[p.id] = p
        return replace(p)

    async def get_purchase(self, db, purchase_id):
        p = self.purchases.get(purchase_id)
        return replace(p) if p else None

    async def review_purchase(self, db, purchase_id, status, reviewer_id):
        p = self.purchases.get(purchase_id)
        if p is None or p.status != PurchaseStatus.PENDING:
            return None
        p.status = status
        p.reviewed_at = utc_now()
        p.reviewed_by = reviewer_id
        return replace(p)

    async def set_refund_transaction(self, db, purchase_id, transaction_id):
        self.purchases[purchase_id].refund_transaction_id = transaction_id

    def _purchase_view(self, p: ShopPurchase) -> PurchaseView:
        item = self.items[p.item_id]
        user = self.users[p.user_id]
        return PurchaseView(
            purchase=replace(p),
            item_name=item.name,
            price=item.price,
            item_image_url=item.image_url,
            user_name=user.name,
            user_emoji=user.avatar_emoji,
        )

    async def list_user_purchases(self, db, user_id):
        return [
            self._purchase_view(p)
            for p in sorted(self.purchases.values(), key=lambda p: -p.id)
            if p.user_id == user_id
        ]

    async def list_pending_purchases(self, db):
        return [
            self._purchase_view(p)
            for p in sorted(self.purchases.values(), key=lambda p: p.id)
            if p.status == PurchaseStatus.PENDING
        ]

    # --- NotificationRepositoryProtocol ---------------------------------

    async def list_admin_ids(self, db):
        return sorted(u.id for u in self.users.values() if u.is_admin)

    async def insert_notification(self, db, user_id, type: NotificationType, item_id, message):
        n = Notification(
            id=self._next_id(),
            user_id=user_id,
            type=type,
            item_id=item_id,
            message=message,
            is_read=False,
            created_at=utc_now(),
        )
        self.notifications[n.id] = n
        return n

    async def list_notifications(self, db, user_id, unread_only, limit):
        mine = [
            n
            for n in sorted(self.notifications.values(), key=lambda n: -n.id)
            if n.user_id == user_id and (not unread_only or not n.is_read)
        ]
        return mine[:limit]

    async def count_unread_notifications(self, db, user_id):
        return sum(
            1 for n in self.notifications.values() if n.user_id == user_id and not n.is_read
        )

    async def mark_notification_read(self, db, notification_id, user_id):
        n = self.notifications.get(notification_id)
        if n is None or n.user_id != user_id:
            return False
        n.is_read = True
        return True

    async def mark_all_notifications_read(self, db, user_id):
        updated = 0
        for n in self.notifications.values():
            if n.user_id == user_id and not n.is_read:
                n.is_read = True
                updated += 1
        return updated


class FakeImageStore:
    def __init__(self, fail_upload: bool = False, fail_destroy: bool = False) -> None:
        self.fail_upload = fail_upload
        self.fail_destroy = fail_destroy
        self.uploaded: list[str] = []
        self.destroyed: list[str] = []

    async def upload(self, content, filename, content_type=None):
        if self.fail_upload:
            raise ImageUploadError("host unreachable")
        public_id = f"items/{filename}"
        self.uploaded.append(public_id)
        return StoredImage(url=f"https://img.example/{public_id}", public_id=public_id)

    async def destroy(self, public_id):
        if self.fail_destroy:
            raise ImageUploadError("host unreachable")
        self.destroyed.append(public_id)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def images() -> FakeImageStore:
    return FakeImageStore()


@pytest.fixture
def locks() -> UserLocks:
    return UserLocks()


@pytest.fixture
def db(store: FakeStore) -> AsyncMock:
    """Session double whose commit/rollback drive the store's unit of work."""
    session = AsyncMock()
    session.commit.side_effect = store.commit
    session.rollback.side_effect = store.rollback
    return session


@pytest.fixture
def ledger_service(store: FakeStore, locks: UserLocks) -> LedgerApplicationService:
    return LedgerApplicationService(repo=store, locks=locks)


@pytest.fixture
def notification_service(store: FakeStore) -> NotificationService:
    return NotificationService(repo=store)


@pytest.fixture
def quest_service(store: FakeStore, locks: UserLocks) -> QuestService:
    return QuestService(repo=store, ledger_repo=store, locks=locks)


@pytest.fixture
def shop_service(
    store: FakeStore,
    images: FakeImageStore,
    notification_service: NotificationService,
    locks: UserLocks,
) -> ShopService:
    return ShopService(
        repo=store,
        ledger_repo=store,
        notifications=notification_service,
        image_store=images,
        locks=locks,
    )
