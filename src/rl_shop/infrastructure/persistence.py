"""ShopRepository — concrete implementation of ShopRepositoryProtocol.

All queries use raw text() SQL with bound parameters. Review transitions are
conditional on status = 'PENDING'; a None result means another reviewer got
there first. Nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rl_common.enums import PurchaseStatus
from src.rl_common.errors import InternalError
from src.rl_shop.domain.models import PurchaseView, ShopItem, ShopPurchase

# ---------------------------------------------------------------------------
# SQL: shop_items
# ---------------------------------------------------------------------------

_ITEM_COLUMNS = "id, name, price, image_url, image_public_id, created_at"

_GET_ITEM_SQL = text(f"""
    SELECT {_ITEM_COLUMNS} FROM shop_items WHERE id = :item_id
""")

_LIST_ITEMS_SQL = text(f"""
    SELECT {_ITEM_COLUMNS} FROM shop_items ORDER BY price ASC, id ASC
""")

_INSERT_ITEM_SQL = text(f"""
    INSERT INTO shop_items (name, price, image_url, image_public_id)
    VALUES (:name, :price, :image_url, :image_public_id)
    RETURNING {_ITEM_COLUMNS}
""")

_DELETE_ITEM_SQL = text("""
    DELETE FROM shop_items WHERE id = :item_id RETURNING id
""")

_COUNT_ITEM_PURCHASES_SQL = text("""
    SELECT COUNT(*) FROM shop_purchases WHERE item_id = :item_id
""")

# ---------------------------------------------------------------------------
# SQL: shop_purchases
# ---------------------------------------------------------------------------

_PURCHASE_COLUMNS = (
    "id, item_id, user_id, status, debit_transaction_id, refund_transaction_id, "
    "purchased_at, reviewed_at, reviewed_by"
)

_INSERT_PURCHASE_SQL = text(f"""
    INSERT INTO shop_purchases (item_id, user_id, status, debit_transaction_id)
    VALUES (:item_id, :user_id, 'PENDING', :debit_transaction_id)
    RETURNING {_PURCHASE_COLUMNS}
""")

_GET_PURCHASE_SQL = text(f"""
    SELECT {_PURCHASE_COLUMNS} FROM shop_purchases WHERE id = :purchase_id
""")

_REVIEW_PURCHASE_SQL = text(f"""
    UPDATE shop_purchases
    SET status = :status, reviewed_at = NOW(), reviewed_by = :reviewer_id
    WHERE id = :purchase_id AND status = 'PENDING'
    RETURNING {_PURCHASE_COLUMNS}
""")

_SET_REFUND_SQL = text("""
    UPDATE shop_purchases
    SET refund_transaction_id = :transaction_id
    WHERE id = :purchase_id
""")

_PURCHASE_VIEW_SELECT = """
    SELECT sp.id, sp.item_id, sp.user_id, sp.status,
           sp.debit_transaction_id, sp.refund_transaction_id,
           sp.purchased_at, sp.reviewed_at, sp.reviewed_by,
           si.name AS item_name, si.price, si.image_url AS item_image_url,
           u.name AS user_name, u.avatar_emoji AS user_emoji
    FROM shop_purchases sp
    JOIN shop_items si ON si.id = sp.item_id
    JOIN users u ON u.id = sp.user_id
"""

_LIST_USER_PURCHASES_SQL = text(_PURCHASE_VIEW_SELECT + """
    WHERE sp.user_id = :user_id
    ORDER BY sp.purchased_at DESC, sp.id DESC
""")

_LIST_PENDING_PURCHASES_SQL = text(_PURCHASE_VIEW_SELECT + """
    WHERE sp.status = 'PENDING'
    ORDER BY sp.purchased_at ASC, sp.id ASC
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_item(row: object) -> ShopItem:
    return ShopItem(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        price=row.price,  # type: ignore[attr-defined]
        image_url=row.image_url,  # type: ignore[attr-defined]
        image_public_id=row.image_public_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_purchase(row: object) -> ShopPurchase:
    return ShopPurchase(
        id=row.id,  # type: ignore[attr-defined]
        item_id=row.item_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        status=PurchaseStatus(row.status),  # type: ignore[attr-defined]
        debit_transaction_id=row.debit_transaction_id,  # type: ignore[attr-defined]
        refund_transaction_id=row.refund_transaction_id,  # type: ignore[attr-defined]
        purchased_at=row.purchased_at,  # type: ignore[attr-defined]
        reviewed_at=row.reviewed_at,  # type: ignore[attr-defined]
        reviewed_by=row.reviewed_by,  # type: ignore[attr-defined]
    )


def _row_to_purchase_view(row: object) -> PurchaseView:
    return PurchaseView(
        purchase=_row_to_purchase(row),
        item_name=row.item_name,  # type: ignore[attr-defined]
        price=row.price,  # type: ignore[attr-defined]
        item_image_url=row.item_image_url,  # type: ignore[attr-defined]
        user_name=row.user_name,  # type: ignore[attr-defined]
        user_emoji=row.user_emoji,  # type: ignore[attr-defined]
    )


class ShopRepository:
    """Concrete repository over the shop_items and shop_purchases tables."""

    async def get_item(self, db: AsyncSession, item_id: int) -> ShopItem | None:
        result = await db.execute(_GET_ITEM_SQL, {"item_id": item_id})
        row = result.fetchone()
        return _row_to_item(row) if row else None

    async def list_items(self, db: AsyncSession) -> list[ShopItem]:
        result = await db.execute(_LIST_ITEMS_SQL)
        return [_row_to_item(row) for row in result.fetchall()]

    async def insert_item(
        self,
        db: AsyncSession,
        name: str,
        price: int,
        image_url: str | None,
        image_public_id: str | None,
    ) -> ShopItem:
        result = await db.execute(
            _INSERT_ITEM_SQL,
            {
                "name": name,
                "price": price,
                "image_url": image_url,
                "image_public_id": image_public_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Shop item insert returned no rows")
        return _row_to_item(row)

    async def delete_item(self, db: AsyncSession, item_id: int) -> bool:
        result = await db.execute(_DELETE_ITEM_SQL, {"item_id": item_id})
        return result.fetchone() is not None

    async def count_item_purchases(self, db: AsyncSession, item_id: int) -> int:
        result = await db.execute(_COUNT_ITEM_PURCHASES_SQL, {"item_id": item_id})
        return int(result.scalar_one())

    async def insert_purchase(
        self,
        db: AsyncSession,
        item_id: int,
        user_id: int,
        debit_transaction_id: int,
    ) -> ShopPurchase:
        result = await db.execute(
            _INSERT_PURCHASE_SQL,
            {
                "item_id": item_id,
                "user_id": user_id,
                "debit_transaction_id": debit_transaction_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Purchase insert returned no rows")
        return _row_to_purchase(row)

    async def get_purchase(
        self, db: AsyncSession, purchase_id: int
    ) -> ShopPurchase | None:
        result = await db.execute(_GET_PURCHASE_SQL, {"purchase_id": purchase_id})
        row = result.fetchone()
        return _row_to_purchase(row) if row else None

    async def review_purchase(
        self,
        db: AsyncSession,
        purchase_id: int,
        status: PurchaseStatus,
        reviewer_id: int,
    ) -> ShopPurchase | None:
        result = await db.execute(
            _REVIEW_PURCHASE_SQL,
            {"purchase_id": purchase_id, "status": status.value, "reviewer_id": reviewer_id},
        )
        row = result.fetchone()
        return _row_to_purchase(row) if row else None

    async def set_refund_transaction(
        self, db: AsyncSession, purchase_id: int, transaction_id: int
    ) -> None:
        await db.execute(
            _SET_REFUND_SQL, {"purchase_id": purchase_id, "transaction_id": transaction_id}
        )

    async def list_user_purchases(
        self, db: AsyncSession, user_id: int
    ) -> list[PurchaseView]:
        result = await db.execute(_LIST_USER_PURCHASES_SQL, {"user_id": user_id})
        return [_row_to_purchase_view(row) for row in result.fetchall()]

    async def list_pending_purchases(self, db: AsyncSession) -> list[PurchaseView]:
        result = await db.execute(_LIST_PENDING_PURCHASES_SQL)
        return [_row_to_purchase_view(row) for row in result.fetchall()]
