"""004: create quests and quest_completions tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE quests (
            id              BIGSERIAL       PRIMARY KEY,
            title           VARCHAR(200)    NOT NULL,
            reward          INTEGER         NOT NULL DEFAULT 1,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_quests_reward_positive CHECK (reward > 0)
        );
    """)
    op.execute("""
        CREATE TABLE quest_completions (
            id              BIGSERIAL       PRIMARY KEY,
            quest_id        BIGINT          NOT NULL REFERENCES quests (id) ON DELETE CASCADE,
            user_id         BIGINT          NOT NULL REFERENCES users (id),
            status          VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            submitted_at    TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            reviewed_at     TIMESTAMPTZ,
            reviewed_by     BIGINT          REFERENCES users (id),
            CONSTRAINT uq_quest_completions_quest_user UNIQUE (quest_id, user_id),
            CONSTRAINT ck_quest_completions_status CHECK (
                status IN ('PENDING', 'APPROVED', 'REJECTED')
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_quest_completions_pending
        ON quest_completions (submitted_at)
        WHERE status = 'PENDING';
    """)
    op.execute("COMMENT ON TABLE quest_completions IS 'One row per (quest, user); REJECTED rows reopen on resubmission';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS quest_completions CASCADE;")
    op.execute("DROP TABLE IF EXISTS quests CASCADE;")
