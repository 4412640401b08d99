"""006: create notifications table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE notifications (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         BIGINT          NOT NULL REFERENCES users (id),
            type            VARCHAR(20)     NOT NULL,
            item_id         BIGINT          REFERENCES shop_items (id) ON DELETE SET NULL,
            message         VARCHAR(1000)   NOT NULL,
            is_read         BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_notifications_type CHECK (
                type IN ('SHOP_PURCHASE', 'QUEST_APPROVAL')
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_notifications_user_unread
        ON notifications (user_id, created_at DESC)
        WHERE is_read = FALSE;
    """)
    op.execute("CREATE INDEX idx_notifications_user_time ON notifications (user_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notifications CASCADE;")
