"""Pydantic schemas for rl_shop API.

Item creation is multipart (name, price, optional image), so it has no
request model here; the router reads Form/File fields directly.
"""

from pydantic import BaseModel

from src.rl_common.datetime_utils import to_iso
from src.rl_shop.domain.models import PurchaseView, ShopItem, ShopPurchase


class ShopItemResponse(BaseModel):
    id: int
    name: str
    price: int
    image_url: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, item: ShopItem) -> "ShopItemResponse":
        return cls(
            id=item.id,
            name=item.name,
            price=item.price,
            image_url=item.image_url,
            created_at=to_iso(item.created_at),
        )


class ShopItemListResponse(BaseModel):
    items: list[ShopItemResponse]


class DeleteItemResponse(BaseModel):
    item_id: int
    deleted: bool = True
    image_removed: bool = False


class PurchaseResponse(BaseModel):
    purchase_id: int
    item_id: int
    user_id: int
    status: str
    debit_transaction_id: int
    refund_transaction_id: int | None
    purchased_at: str | None
    reviewed_at: str | None

    @classmethod
    def from_domain(cls, p: ShopPurchase) -> "PurchaseResponse":
        return cls(
            purchase_id=p.id,
            item_id=p.item_id,
            user_id=p.user_id,
            status=p.status.value,
            debit_transaction_id=p.debit_transaction_id,
            refund_transaction_id=p.refund_transaction_id,
            purchased_at=to_iso(p.purchased_at),
            reviewed_at=to_iso(p.reviewed_at),
        )


class BuyResponse(PurchaseResponse):
    item_name: str
    price: int
    balance: int          # purchaser's balance after the debit
    admins_notified: int


class PurchaseReviewResponse(PurchaseResponse):
    refunded: bool = False
    balance: int | None = None  # purchaser's balance after a refund


class PurchaseItem(BaseModel):
    purchase_id: int
    item_id: int
    item_name: str
    item_image_url: str | None
    price: int
    user_id: int
    user_name: str
    user_emoji: str
    status: str
    purchased_at: str | None
    reviewed_at: str | None

    @classmethod
    def from_view(cls, view: PurchaseView) -> "PurchaseItem":
        p = view.purchase
        return cls(
            purchase_id=p.id,
            item_id=p.item_id,
            item_name=view.item_name,
            item_image_url=view.item_image_url,
            price=view.price,
            user_id=p.user_id,
            user_name=view.user_name,
            user_emoji=view.user_emoji,
            status=p.status.value,
            purchased_at=to_iso(p.purchased_at),
            reviewed_at=to_iso(p.reviewed_at),
        )


class PurchaseListResponse(BaseModel):
    items: list[PurchaseItem]
