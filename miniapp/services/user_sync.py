"""User State Sync — reconciles a verified launch identity with its stored record.

Invariants:
    - A record is created at most once per user id, even under concurrent launches
    - Re-sync refreshes only first_name, username, photo_url; bpm and is_subbed untouched
    - The returned bpm is read back from the store after the upsert
    - Either the whole sync commits and a view is returned, or an error propagates

Design Decisions:
    - Insert first, update on StoreConflictError: no check-then-insert window
    - Store injected via constructor: the route wires UserStore(db), tests can do the same
      against any AsyncSession
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from miniapp.core.domain_types import SyncPath, UserId
from miniapp.core.errors import DatabaseError, StoreConflictError, UserNotFoundError
from miniapp.core.user_identity import UserIdentity, parse_user_identity
from miniapp.services.user_store import UserStore

logger = logging.getLogger(__name__)

# Fields a returning user may change from the client side
REFRESHED_FIELDS = ("first_name", "username", "photo_url")


@dataclass(frozen=True)
class SyncResult:
    """Identity as launched plus the authoritative stored preference."""
    identity: UserIdentity
    bpm: int
    path: SyncPath


class UserStateSync:
    """Upserts users from verified launch data and manages their bpm preference."""

    def __init__(self, store: UserStore):
        self.store = store

    async def sync(self, verified_fields: Mapping[str, str]) -> SyncResult:
        """Decode the user, upsert it, and return the current bpm."""
        identity = parse_user_identity(verified_fields)
        path = await self._upsert(identity)

        record = await self.store.get(identity.id)
        if record is None:
            raise DatabaseError("record missing after upsert", "query")
        await self.store.commit()

        logger.info(
            f"User {path.value}", extra={"user_id": identity.id},
        )
        return SyncResult(identity=identity, bpm=record.bpm, path=path)

    async def _upsert(self, identity: UserIdentity) -> SyncPath:
        try:
            await self.store.insert(identity)
            return SyncPath.CREATED
        except StoreConflictError:
            await self.store.update(
                identity.id,
                **{name: getattr(identity, name) for name in REFRESHED_FIELDS},
            )
            return SyncPath.UPDATED

    async def update_bpm(self, user_id: UserId, bpm: int) -> None:
        """Overwrite the stored bpm. Raises UserNotFoundError for unknown ids."""
        matched = await self.store.update(user_id, bpm=bpm)
        if matched == 0:
            raise UserNotFoundError(user_id)
        await self.store.commit()
        logger.debug(
            f"Updated bpm to {bpm}", extra={"user_id": user_id},
        )
