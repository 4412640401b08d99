"""005: create shop_items and shop_purchases tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE shop_items (
            id                  BIGSERIAL       PRIMARY KEY,
            name                VARCHAR(200)    NOT NULL,
            price               INTEGER         NOT NULL,
            image_url           VARCHAR(1000),
            image_public_id     VARCHAR(255),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_shop_items_price_positive CHECK (price > 0)
        );
    """)
    # Items with purchase history can't be deleted (RESTRICT)
    op.execute("""
        CREATE TABLE shop_purchases (
            id                      BIGSERIAL       PRIMARY KEY,
            item_id                 BIGINT          NOT NULL REFERENCES shop_items (id) ON DELETE RESTRICT,
            user_id                 BIGINT          NOT NULL REFERENCES users (id),
            status                  VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            debit_transaction_id    BIGINT          NOT NULL REFERENCES transactions (id),
            refund_transaction_id   BIGINT          REFERENCES transactions (id),
            purchased_at            TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            reviewed_at             TIMESTAMPTZ,
            reviewed_by             BIGINT          REFERENCES users (id),
            CONSTRAINT uq_shop_purchases_debit  UNIQUE (debit_transaction_id),
            CONSTRAINT uq_shop_purchases_refund UNIQUE (refund_transaction_id),
            CONSTRAINT ck_shop_purchases_status CHECK (
                status IN ('PENDING', 'BOUGHT', 'REJECTED')
            ),
            CONSTRAINT ck_shop_purchases_refund_only_rejected CHECK (
                refund_transaction_id IS NULL OR status = 'REJECTED'
            )
        );
    """)
    op.execute("CREATE INDEX idx_shop_purchases_user ON shop_purchases (user_id, purchased_at DESC);")
    op.execute("""
        CREATE INDEX idx_shop_purchases_pending
        ON shop_purchases (purchased_at)
        WHERE status = 'PENDING';
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS shop_purchases CASCADE;")
    op.execute("DROP TABLE IF EXISTS shop_items CASCADE;")
