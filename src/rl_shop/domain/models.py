"""Domain models for rl_shop — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.rl_common.enums import PurchaseStatus


@dataclass
class ShopItem:
    id: int
    name: str
    price: int
    image_url: str | None = None
    image_public_id: str | None = None  # image host handle, needed to delete the image
    created_at: datetime | None = None


@dataclass
class ShopPurchase:
    id: int
    item_id: int
    user_id: int
    status: PurchaseStatus
    debit_transaction_id: int
    refund_transaction_id: int | None = None
    purchased_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: int | None = None


@dataclass
class PurchaseView:
    """A purchase joined with item and purchaser display fields."""

    purchase: ShopPurchase
    item_name: str
    price: int
    item_image_url: str | None
    user_name: str
    user_emoji: str
