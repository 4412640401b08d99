"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id              BIGSERIAL       PRIMARY KEY,
            name            VARCHAR(64)     NOT NULL,
            pin_hash        VARCHAR(255)    NOT NULL,
            avatar_emoji    VARCHAR(16)     NOT NULL DEFAULT '😀',
            is_admin        BOOLEAN         NOT NULL DEFAULT FALSE,
            balance         BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_name            UNIQUE (name),
            CONSTRAINT ck_users_name_len        CHECK (LENGTH(TRIM(name)) >= 1),
            CONSTRAINT ck_users_admin_balance   CHECK (NOT is_admin OR balance = 0)
        );
    """)
    op.execute("CREATE INDEX idx_users_admin ON users (is_admin);")
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE users IS 'Members and admins; balance is a cache of the transaction log';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
