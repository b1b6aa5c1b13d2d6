"""User Identity — decodes the `user` JSON carried inside verified launch data.

Invariants:
    - id is required and must be a signed 64-bit integer (bools rejected)
    - Falsy optional values fall back to their defaults (first_name -> "Unknown", language_code -> "en")
    - PURE: no IO, no DB

Design Decisions:
    - Frozen dataclass over Pydantic: core stays free of framework types,
      schemas/ owns the API-facing models
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass

from miniapp.core.domain_types import USER_ID_MAX, USER_ID_MIN, UserId
from miniapp.core.errors import InvalidUserDataError, MissingUserError

USER_FIELD = "user"


@dataclass(frozen=True)
class UserIdentity:
    """Telegram user as described by the launch payload."""
    id: UserId
    first_name: str = "Unknown"
    last_name: str = ""
    username: str = ""
    language_code: str = "en"
    is_premium: bool = False
    is_bot: bool = False
    photo_url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping) -> "UserIdentity":
        user_id = data.get("id")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise InvalidUserDataError("User id missing or not an integer")
        if not USER_ID_MIN <= user_id <= USER_ID_MAX:
            raise InvalidUserDataError("User id out of range")
        return cls(
            id=UserId(user_id),
            first_name=str(data.get("first_name") or "Unknown"),
            last_name=str(data.get("last_name") or ""),
            username=str(data.get("username") or ""),
            language_code=str(data.get("language_code") or "en"),
            is_premium=bool(data.get("is_premium") or False),
            is_bot=bool(data.get("is_bot") or False),
            photo_url=str(data.get("photo_url") or ""),
        )


def parse_user_identity(fields: Mapping[str, str]) -> UserIdentity:
    """Decode the user field of verified launch data.

    Raises MissingUserError when absent/empty, InvalidUserDataError when not a
    JSON object with an integer id.
    """
    raw_user = fields.get(USER_FIELD)
    if not raw_user:
        raise MissingUserError()
    try:
        data = json.loads(raw_user)
    except json.JSONDecodeError:
        raise InvalidUserDataError()
    if not isinstance(data, dict):
        raise InvalidUserDataError("User data is not a JSON object")
    return UserIdentity.from_dict(data)
