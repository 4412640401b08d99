"""ShopService — item catalog and the purchase approval workflow.

    (none) → PENDING → BOUGHT      debit stands, zero-amount log entry
                     → REJECTED    compensating refund of the debit

The purchase is debited optimistically at submission time: the debit, the
PENDING purchase, the balance recalculation and the admin notifications are
one unit, taken under the purchaser's lock so two concurrent purchases can't
both pass the affordability check on the same balance.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.actor import Actor
from src.rl_common.enums import NotificationType, PurchaseStatus, TransactionKind
from src.rl_common.errors import (
    AdminParticipationError,
    ImageUploadError,
    InsufficientBalanceError,
    InvalidItemError,
    ItemInUseError,
    ItemNotFoundError,
    PurchaseNotFoundError,
    UserNotFoundError,
)
from src.rl_common.locks import UserLocks, get_user_locks
from src.rl_ledger.application.recalculator import BalanceRecalculator
from src.rl_ledger.domain.models import NewTransaction
from src.rl_ledger.domain.repository import LedgerRepositoryProtocol
from src.rl_ledger.infrastructure.persistence import LedgerRepository
from src.rl_notification.application.service import NotificationService
from src.rl_shop.application.schemas import (
    BuyResponse,
    DeleteItemResponse,
    PurchaseItem,
    PurchaseListResponse,
    PurchaseResponse,
    PurchaseReviewResponse,
    ShopItemListResponse,
    ShopItemResponse,
)
from src.rl_shop.domain.image_store import ImageStoreProtocol, StoredImage
from src.rl_shop.domain.repository import ShopRepositoryProtocol
from src.rl_shop.infrastructure.cloudinary import CloudinaryImageStore
from src.rl_shop.infrastructure.persistence import ShopRepository

logger = logging.getLogger(__name__)


def purchase_notice(user_name: str, user_emoji: str, item_name: str, price: int) -> str:
    return f'{user_name} ({user_emoji}) wants to buy "{item_name}" for {price} 🥚'


class ShopService:
    def __init__(
        self,
        repo: ShopRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        notifications: NotificationService | None = None,
        image_store: ImageStoreProtocol | None = None,
        locks: UserLocks | None = None,
    ) -> None:
        self._repo: ShopRepositoryProtocol = repo or ShopRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._recalculator = BalanceRecalculator(self._ledger)
        self._notifications = notifications or NotificationService()
        self._images: ImageStoreProtocol = image_store or CloudinaryImageStore.from_settings()
        self._locks = locks or get_user_locks()

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_items(self, db: AsyncSession) -> ShopItemListResponse:
        items = await self._repo.list_items(db)
        return ShopItemListResponse(items=[ShopItemResponse.from_domain(i) for i in items])

    async def create_item(
        self,
        db: AsyncSession,
        actor: Actor,
        name: str,
        price: int,
        image: bytes | None = None,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> ShopItemResponse:
        """Upload the image first (if any), then insert the item.

        An upload failure aborts before anything is written. If the insert
        fails after a successful upload, the orphaned image is removed.
        """
        actor.require_admin()
        name = (name or "").strip()
        if not name:
            raise InvalidItemError("name is required")
        if price is None or price <= 0:
            raise InvalidItemError(f"price must be positive, got {price}")

        stored: StoredImage | None = None
        if image:
            stored = await self._images.upload(image, filename or "item", content_type)

        try:
            item = await self._repo.insert_item(
                db,
                name,
                price,
                stored.url if stored else None,
                stored.public_id if stored else None,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            if stored is not None:
                await self._discard_image(stored.public_id)
            raise

        logger.info("Shop item created: id=%s price=%s by=%s", item.id, price, actor.id)
        return ShopItemResponse.from_domain(item)

    async def delete_item(
        self, db: AsyncSession, actor: Actor, item_id: int
    ) -> DeleteItemResponse:
        actor.require_admin()
        try:
            item = await self._repo.get_item(db, item_id)
            if item is None:
                raise ItemNotFoundError(item_id)
            # purchase history references the item and must stay intact
            if await self._repo.count_item_purchases(db, item_id) > 0:
                raise ItemInUseError(item_id)
            if not await self._repo.delete_item(db, item_id):
                raise ItemNotFoundError(item_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        image_removed = False
        if item.image_public_id:
            image_removed = await self._discard_image(item.image_public_id)
        logger.info("Shop item deleted: id=%s by=%s", item_id, actor.id)
        return DeleteItemResponse(item_id=item_id, image_removed=image_removed)

    async def _discard_image(self, public_id: str) -> bool:
        try:
            await self._images.destroy(public_id)
        except ImageUploadError as exc:
            logger.warning("Could not remove hosted image %s: %s", public_id, exc.message)
            return False
        return True

    # ------------------------------------------------------------------
    # Purchase workflow
    # ------------------------------------------------------------------

    async def buy(self, db: AsyncSession, actor: Actor, item_id: int) -> BuyResponse:
        if actor.is_admin:
            raise AdminParticipationError("buy items")

        async with self._locks.for_user(actor.id):
            try:
                item = await self._repo.get_item(db, item_id)
                if item is None:
                    raise ItemNotFoundError(item_id)
                buyer = await self._ledger.lock_user(db, actor.id)
                if buyer is None:
                    raise UserNotFoundError(actor.id)
                if buyer.balance < item.price:
                    raise InsufficientBalanceError(item.price, buyer.balance)

                debit = await self._ledger.insert_transaction(
                    db,
                    NewTransaction(
                        kind=TransactionKind.SHOP_PURCHASE,
                        amount=-item.price,
                        from_user_id=buyer.id,
                        to_user_id=None,
                        description=f"Pending purchase: {item.name}",
                    ),
                )
                purchase = await self._repo.insert_purchase(db, item.id, buyer.id, debit.id)
                balance = await self._recalculator.recalculate(db, buyer.id)
                notified = await self._notifications.notify_admins(
                    db,
                    NotificationType.SHOP_PURCHASE,
                    purchase_notice(buyer.name, buyer.avatar_emoji, item.name, item.price),
                    item_id=item.id,
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Purchase submitted: purchase=%s item=%s user=%s price=%s balance=%s",
            purchase.id, item.id, buyer.id, item.price, balance,
        )
        return BuyResponse(
            **PurchaseResponse.from_domain(purchase).model_dump(),
            item_name=item.name,
            price=item.price,
            balance=balance,
            admins_notified=len(notified),
        )

    async def approve(
        self, db: AsyncSession, actor: Actor, purchase_id: int
    ) -> PurchaseReviewResponse:
        """Mark BOUGHT and log a zero-amount entry. The debit stands as is."""
        actor.require_admin()
        try:
            purchase = await self._repo.review_purchase(
                db, purchase_id, PurchaseStatus.BOUGHT, actor.id
            )
            if purchase is None:
                raise PurchaseNotFoundError(purchase_id)
            item = await self._repo.get_item(db, purchase.item_id)
            buyer = await self._ledger.get_user(db, purchase.user_id)
            item_name = item.name if item else f"item #{purchase.item_id}"
            buyer_name = buyer.name if buyer else f"user #{purchase.user_id}"
            await self._ledger.insert_transaction(
                db,
                NewTransaction(
                    kind=TransactionKind.SHOP_PURCHASE,
                    amount=0,
                    from_user_id=actor.id,
                    to_user_id=purchase.user_id,
                    description=f'{actor.name} bought "{item_name}" for {buyer_name}',
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Purchase approved: purchase=%s by=%s", purchase_id, actor.id)
        return PurchaseReviewResponse(**PurchaseResponse.from_domain(purchase).model_dump())

    async def reject(
        self, db: AsyncSession, actor: Actor, purchase_id: int
    ) -> PurchaseReviewResponse:
        """Mark REJECTED and credit back the original debit.

        The debit is found through the purchase's own reference. If it is gone
        the rejection still goes through, without a refund, and says so.
        """
        actor.require_admin()
        pending = await self._repo.get_purchase(db, purchase_id)
        if pending is None or pending.status != PurchaseStatus.PENDING:
            raise PurchaseNotFoundError(purchase_id)

        async with self._locks.for_user(pending.user_id):
            try:
                if await self._ledger.lock_user(db, pending.user_id) is None:
                    raise UserNotFoundError(pending.user_id)
                purchase = await self._repo.review_purchase(
                    db, purchase_id, PurchaseStatus.REJECTED, actor.id
                )
                if purchase is None:
                    raise PurchaseNotFoundError(purchase_id)

                refunded = False
                debit = await self._ledger.get_transaction(db, purchase.debit_transaction_id)
                if debit is None:
                    logger.warning(
                        "Purchase %s rejected without refund: debit transaction %s not found",
                        purchase_id, purchase.debit_transaction_id,
                    )
                else:
                    item = await self._repo.get_item(db, purchase.item_id)
                    item_name = item.name if item else f"item #{purchase.item_id}"
                    refund = await self._ledger.insert_transaction(
                        db,
                        NewTransaction(
                            kind=TransactionKind.SHOP_PURCHASE,
                            amount=abs(debit.amount),
                            from_user_id=None,
                            to_user_id=purchase.user_id,
                            description=f"Refund: {item_name} (rejected)",
                        ),
                    )
                    await self._repo.set_refund_transaction(db, purchase.id, refund.id)
                    purchase.refund_transaction_id = refund.id
                    refunded = True
                balance = await self._recalculator.recalculate(db, purchase.user_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Purchase rejected: purchase=%s refunded=%s balance=%s by=%s",
            purchase_id, refunded, balance, actor.id,
        )
        return PurchaseReviewResponse(
            **PurchaseResponse.from_domain(purchase).model_dump(),
            refunded=refunded,
            balance=balance,
        )

    async def list_my_purchases(self, db: AsyncSession, actor: Actor) -> PurchaseListResponse:
        views = await self._repo.list_user_purchases(db, actor.id)
        return PurchaseListResponse(items=[PurchaseItem.from_view(v) for v in views])

    async def list_pending(self, db: AsyncSession, actor: Actor) -> PurchaseListResponse:
        actor.require_admin()
        views = await self._repo.list_pending_purchases(db)
        return PurchaseListResponse(items=[PurchaseItem.from_view(v) for v in views])
