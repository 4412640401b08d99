"""003: create transactions table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id              BIGSERIAL       PRIMARY KEY,
            from_user_id    BIGINT          REFERENCES users (id),
            to_user_id      BIGINT          REFERENCES users (id),
            kind            VARCHAR(20)     NOT NULL,
            amount          BIGINT          NOT NULL,
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transactions_kind CHECK (
                kind IN ('RESPECT', 'DISRESPECT', 'QUEST_REWARD', 'SHOP_PURCHASE')
            ),
            CONSTRAINT ck_transactions_shape CHECK (
                (kind IN ('RESPECT', 'QUEST_REWARD')
                    AND amount > 0 AND to_user_id IS NOT NULL)
                OR (kind = 'DISRESPECT'
                    AND amount < 0 AND to_user_id IS NOT NULL)
                OR (kind = 'SHOP_PURCHASE' AND (
                    (amount < 0 AND from_user_id IS NOT NULL AND to_user_id IS NULL)
                    OR (amount > 0 AND to_user_id IS NOT NULL AND from_user_id IS NULL)
                    OR amount = 0
                ))
            )
        );
    """)
    op.execute("CREATE INDEX idx_transactions_to_user ON transactions (to_user_id, kind);")
    op.execute("CREATE INDEX idx_transactions_from_user ON transactions (from_user_id, kind);")
    op.execute("CREATE INDEX idx_transactions_created ON transactions (created_at DESC, id DESC);")
    op.execute("""
        CREATE TRIGGER trg_transactions_append_only
            BEFORE UPDATE OR DELETE ON transactions
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute("COMMENT ON TABLE transactions IS 'Point movements — append-only, source of truth for balances';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
