"""Repository Protocol — dependency inversion for testability.

Unit tests inject a double that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.enums import PurchaseStatus
from src.rl_shop.domain.models import PurchaseView, ShopItem, ShopPurchase


class ShopRepositoryProtocol(Protocol):
    # --- items ---

    async def get_item(self, db: AsyncSession, item_id: int) -> ShopItem | None: ...

    async def list_items(self, db: AsyncSession) -> list[ShopItem]: ...

    async def insert_item(
        self,
        db: AsyncSession,
        name: str,
        price: int,
        image_url: str | None,
        image_public_id: str | None,
    ) -> ShopItem: ...

    async def delete_item(self, db: AsyncSession, item_id: int) -> bool: ...

    async def count_item_purchases(self, db: AsyncSession, item_id: int) -> int: ...

    # --- purchases ---

    async def insert_purchase(
        self,
        db: AsyncSession,
        item_id: int,
        user_id: int,
        debit_transaction_id: int,
    ) -> ShopPurchase: ...

    async def get_purchase(
        self, db: AsyncSession, purchase_id: int
    ) -> ShopPurchase | None: ...

    async def review_purchase(
        self,
        db: AsyncSession,
        purchase_id: int,
        status: PurchaseStatus,
        reviewer_id: int,
    ) -> ShopPurchase | None: ...

    async def set_refund_transaction(
        self, db: AsyncSession, purchase_id: int, transaction_id: int
    ) -> None: ...

    async def list_user_purchases(
        self, db: AsyncSession, user_id: int
    ) -> list[PurchaseView]: ...

    async def list_pending_purchases(self, db: AsyncSession) -> list[PurchaseView]: ...
