"""TelegramUser ORM — one persisted record per Telegram user id.

Invariants:
    - user_id is the primary key: at most one row per Telegram user
    - bpm starts at 90 and is only changed by the preference update
    - is_subbed starts at 0 and is never touched by the launch sync
    - first_name, username, photo_url are the only fields refreshed on re-sync

Design Decisions:
    - BigInteger id: Telegram ids exceed 32 bits
    - telegram_id duplicated from user_id to keep the original table shape
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from miniapp.core.domain_types import DEFAULT_BPM, DEFAULT_IS_SUBBED
from miniapp.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TelegramUser(Base):
    """Telegram user record with the mini app's stored preference."""
    __tablename__ = "telegram_users"

    user_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True, autoincrement=False,
    )
    telegram_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_bot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    first_name: Mapped[str] = mapped_column(
        String(255), nullable=False, default="Unknown",
    )
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    username: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    language_code: Mapped[str] = mapped_column(
        String(16), nullable=False, default="en",
    )
    is_premium: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    photo_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    bpm: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_BPM)
    is_subbed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_IS_SUBBED,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
