"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId wraps the Telegram integer id — the primary identity of a record
    - Rejection encodes every way a launch payload can fail verification
    - Record defaults (bpm, is_subbed) live here, not in the ORM or routes

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", int)


# ─── Record Defaults ─────────────────────────────────────────────

DEFAULT_BPM = 90
DEFAULT_IS_SUBBED = 0

# Storage bounds: ids are signed 64-bit columns
USER_ID_MIN = -(2 ** 63)
USER_ID_MAX = 2 ** 63 - 1
BPM_MIN = 1
BPM_MAX = 1000


# ─── Enums ───────────────────────────────────────────────────────

class Rejection(str, Enum):
    """Why a launch payload was not accepted."""
    EMPTY = "empty"
    MALFORMED = "malformed"
    MISSING_HASH = "missing_hash"
    MISSING_TOKEN = "missing_token"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"


class SyncPath(str, Enum):
    """Which branch of the upsert a sync took."""
    CREATED = "created"
    UPDATED = "updated"
