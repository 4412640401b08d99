"""007: seed initial data

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import bcrypt
import sqlalchemy as sa
from alembic import op

from config.settings import settings

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Bootstrap admin; every other account is created by an admin
    pin_hash = bcrypt.hashpw(settings.SEED_ADMIN_PIN.encode("utf-8"), bcrypt.gensalt())
    op.execute(
        sa.text("""
            INSERT INTO users (name, pin_hash, avatar_emoji, is_admin, balance)
            VALUES (:name, :pin_hash, '👑', TRUE, 0)
            ON CONFLICT (name) DO NOTHING;
        """).bindparams(name=settings.SEED_ADMIN_NAME, pin_hash=pin_hash.decode("utf-8"))
    )

    # Starter quest board
    op.execute("""
        INSERT INTO quests (title, reward) VALUES
            ('Wash the dishes', 1),
            ('Take out the trash', 1),
            ('Clean your room', 2),
            ('Help with the weekly groceries', 3),
            ('Read a book and tell us about it', 5);
    """)

    # Starter shop (images can be added by an admin later)
    op.execute("""
        INSERT INTO shop_items (name, price) VALUES
            ('Choose the movie tonight', 3),
            ('Extra hour of screen time', 5),
            ('Pizza night', 10);
    """)


def downgrade() -> None:
    op.execute("DELETE FROM shop_items WHERE image_public_id IS NULL;")
    op.execute("DELETE FROM quests;")
    op.execute(
        sa.text("DELETE FROM users WHERE name = :name AND is_admin;").bindparams(
            name=settings.SEED_ADMIN_NAME
        )
    )
