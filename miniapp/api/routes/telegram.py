"""Telegram Mini App Routes — launch authentication and preference updates.

Invariants:
    - POST /init_telegram verifies initData before touching the database
    - Signature failures are logged with their precise Rejection but answered generically
    - POST /update_user_prefs requires integer user_id (signed 64-bit) and bpm (1-1000); anything else -> 400
    - Unknown user on preference update -> 404 USER_NOT_FOUND

Design Decisions:
    - Verifier and UserStateSync built by dependencies: tests override get_verifier
      and get_db without patching module state
"""

import logging

from fastapi import APIRouter, Depends, Form
from sqlalchemy.ext.asyncio import AsyncSession

from miniapp.config import get_settings
from miniapp.core.domain_types import (
    BPM_MAX, BPM_MIN, USER_ID_MAX, USER_ID_MIN, UserId,
)
from miniapp.core.init_data import InitDataVerifier, rejection_error
from miniapp.infrastructure.database import get_db
from miniapp.schemas.telegram import PreferencesUpdated, UserView
from miniapp.services.user_store import UserStore
from miniapp.services.user_sync import UserStateSync

logger = logging.getLogger(__name__)
router = APIRouter(tags=["telegram"])


def get_verifier() -> InitDataVerifier:
    settings = get_settings()
    return InitDataVerifier(
        settings.telegram_bot_token, settings.init_data_max_age_seconds,
    )


def get_user_sync(db: AsyncSession = Depends(get_db)) -> UserStateSync:
    return UserStateSync(UserStore(db))


@router.post("/init_telegram", response_model=UserView)
async def init_telegram(
    init_data: str = Form("", alias="initData"),
    verifier: InitDataVerifier = Depends(get_verifier),
    user_sync: UserStateSync = Depends(get_user_sync),
):
    """Authenticate launch data, upsert the user, return identity and bpm."""
    result = verifier.verify(init_data)
    if not result.ok:
        logger.warning(
            "Launch data rejected",
            extra={"rejection": result.rejection.value, "path": "/init_telegram"},
        )
        raise rejection_error(result.rejection, verifier.max_age_seconds)

    synced = await user_sync.sync(result.fields)
    identity = synced.identity
    return UserView(
        user_id=identity.id,
        first_name=identity.first_name,
        username=identity.username,
        photo_url=identity.photo_url,
        bpm=synced.bpm,
    )


@router.post("/update_user_prefs", response_model=PreferencesUpdated)
async def update_user_prefs(
    user_id: int = Form(..., ge=USER_ID_MIN, le=USER_ID_MAX),
    bpm: int = Form(..., ge=BPM_MIN, le=BPM_MAX),
    user_sync: UserStateSync = Depends(get_user_sync),
):
    """Overwrite the stored bpm for a known user."""
    await user_sync.update_bpm(UserId(user_id), bpm)
    return PreferencesUpdated()
