"""Initial schema — telegram_users.

Revision ID: 001_telegram_users
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_telegram_users"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "telegram_users",
        sa.Column(
            "user_id", sa.BigInteger().with_variant(sa.Integer, "sqlite"),
            primary_key=True, autoincrement=False,
        ),
        sa.Column("telegram_id", sa.BigInteger, nullable=False),
        sa.Column("is_bot", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("first_name", sa.String(255), nullable=False, server_default="Unknown"),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("username", sa.String(255), nullable=False, server_default=""),
        sa.Column("language_code", sa.String(16), nullable=False, server_default="en"),
        sa.Column("is_premium", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("photo_url", sa.String(1024), nullable=False, server_default=""),
        sa.Column("bpm", sa.Integer, nullable=False, server_default="90"),
        sa.Column("is_subbed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("telegram_users")
