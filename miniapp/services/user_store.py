"""User Store — keyed record access for telegram_users (get / insert / update).

Invariants:
    - insert is atomic per user id: a duplicate key raises StoreConflictError, never a second row
    - get always re-reads from the database (populate_existing), never a stale identity-map copy
    - update returns the number of rows matched; 0 means the id is unknown

Design Decisions:
    - INSERT ... ON CONFLICT DO NOTHING on sqlite/postgresql: the losing writer sees
      rowcount 0 instead of an aborted transaction
    - Other dialects: plain INSERT inside a SAVEPOINT, IntegrityError mapped to StoreConflictError
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import insert, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from miniapp.core.domain_types import DEFAULT_BPM, DEFAULT_IS_SUBBED, UserId
from miniapp.core.errors import StoreConflictError
from miniapp.core.user_identity import UserIdentity
from miniapp.models.telegram_user import TelegramUser

logger = logging.getLogger(__name__)

_CONFLICT_AWARE_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


def new_record_values(identity: UserIdentity) -> dict:
    """Column values for a first-seen user."""
    now = datetime.now(timezone.utc)
    return {
        "user_id": identity.id,
        "telegram_id": identity.id,
        "is_bot": identity.is_bot,
        "first_name": identity.first_name,
        "last_name": identity.last_name,
        "username": identity.username,
        "language_code": identity.language_code,
        "is_premium": identity.is_premium,
        "photo_url": identity.photo_url,
        "bpm": DEFAULT_BPM,
        "is_subbed": DEFAULT_IS_SUBBED,
        "created_at": now,
        "updated_at": now,
    }


class UserStore:
    """telegram_users access bound to one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: UserId) -> TelegramUser | None:
        result = await self.db.execute(
            select(TelegramUser)
            .where(TelegramUser.user_id == user_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def insert(self, identity: UserIdentity) -> None:
        """Insert a new record. Raises StoreConflictError if the id already exists."""
        values = new_record_values(identity)
        dialect = self.db.get_bind().dialect.name
        conflict_aware_insert = _CONFLICT_AWARE_INSERTS.get(dialect)

        if conflict_aware_insert is not None:
            result = await self.db.execute(
                conflict_aware_insert(TelegramUser)
                .values(**values)
                .on_conflict_do_nothing(index_elements=[TelegramUser.user_id]),
            )
            if result.rowcount == 0:
                raise StoreConflictError(identity.id)
            return

        try:
            async with self.db.begin_nested():
                await self.db.execute(insert(TelegramUser).values(**values))
        except IntegrityError:
            raise StoreConflictError(identity.id)

    async def update(self, user_id: UserId, **fields) -> int:
        """Overwrite the given columns. Returns rows matched."""
        result = await self.db.execute(
            update(TelegramUser)
            .where(TelegramUser.user_id == user_id)
            .values(**fields),
        )
        return result.rowcount

    async def commit(self) -> None:
        await self.db.commit()
