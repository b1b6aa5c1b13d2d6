"""Launch Data Verification — authenticates the initData string a Telegram client hands the mini app.

Invariants:
    - Module-level functions do no IO, no async, no DB, no network (pass `now` for full determinism)
    - Every key except `hash` participates in the data-check string, sorted by key
    - Duplicate keys: last occurrence wins
    - Secret key = HMAC-SHA256(key=b"WebAppData", msg=bot_token); the token never signs data directly
    - Signature comparison is constant-time and case-insensitive on the received hex
    - Rejection is a return value (VerificationResult), never an exception

Design Decisions:
    - verify_init_data returns a result object so callers can log the precise
      Rejection while InitDataVerifier.authenticate collapses hash/signature
      failures into one public InvalidSignatureError
    - auth_date freshness is opt-in (max_age_seconds > 0); off by default
"""

import hashlib
import hmac
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlencode

from miniapp.core.domain_types import Rejection
from miniapp.core.errors import (
    InitDataExpiredError,
    InvalidSignatureError,
    MalformedPayloadError,
    MissingInitDataError,
)

SECRET_KEY_LABEL = b"WebAppData"
HASH_FIELD = "hash"
AUTH_DATE_FIELD = "auth_date"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verify_init_data: accepted fields, or the reason for rejection."""
    fields: dict[str, str] = field(default_factory=dict)
    rejection: Rejection | None = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


def parse_init_data(raw: str) -> dict[str, str]:
    """Parse a flat urlencoded string into a dict. Raises ValueError if malformed."""
    pairs = parse_qsl(
        raw, keep_blank_values=True, strict_parsing=True, errors="strict",
    )
    return dict(pairs)


def build_data_check_string(fields: Mapping[str, str]) -> str:
    """Sorted `key=value` lines joined by newline, no trailing newline."""
    return "\n".join(f"{key}={fields[key]}" for key in sorted(fields))


def derive_secret_key(bot_token: str) -> bytes:
    return hmac.new(
        SECRET_KEY_LABEL, bot_token.encode("utf-8"), hashlib.sha256,
    ).digest()


def compute_signature(data_check_string: str, bot_token: str) -> str:
    """Lowercase hex HMAC-SHA256 of the data-check string under the derived secret."""
    return hmac.new(
        derive_secret_key(bot_token),
        data_check_string.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def signatures_match(expected: str, received: str) -> bool:
    return hmac.compare_digest(
        expected.encode("ascii"), received.lower().encode("utf-8"),
    )


def check_auth_date(
    fields: Mapping[str, str], max_age_seconds: int, now: float,
) -> Rejection | None:
    """Reject when auth_date is missing, non-numeric, or older than the window."""
    raw_auth_date = fields.get(AUTH_DATE_FIELD, "")
    if not (raw_auth_date.isascii() and raw_auth_date.isdigit()):
        return Rejection.EXPIRED
    if now - int(raw_auth_date) > max_age_seconds:
        return Rejection.EXPIRED
    return None


def verify_init_data(
    raw: str,
    bot_token: str,
    max_age_seconds: int = 0,
    now: float | None = None,
) -> VerificationResult:
    """Authenticate a raw launch payload against the bot token.

    On success the returned fields exclude `hash` and keep `user` as raw JSON text.
    """
    if not raw:
        return VerificationResult(rejection=Rejection.EMPTY)
    try:
        fields = parse_init_data(raw)
    except ValueError:
        return VerificationResult(rejection=Rejection.MALFORMED)

    received_hash = fields.pop(HASH_FIELD, "")
    if not bot_token:
        return VerificationResult(rejection=Rejection.MISSING_TOKEN)
    if not received_hash:
        return VerificationResult(rejection=Rejection.MISSING_HASH)

    expected_hash = compute_signature(build_data_check_string(fields), bot_token)
    if not signatures_match(expected_hash, received_hash):
        return VerificationResult(rejection=Rejection.INVALID_SIGNATURE)

    if max_age_seconds > 0:
        rejection = check_auth_date(
            fields, max_age_seconds, time.time() if now is None else now,
        )
        if rejection:
            return VerificationResult(rejection=rejection)

    return VerificationResult(fields=fields)


def sign_init_data(fields: Mapping[str, str], bot_token: str) -> str:
    """Produce a urlencoded payload carrying a valid hash (test clients, local tooling)."""
    unsigned = {k: v for k, v in fields.items() if k != HASH_FIELD}
    signature = compute_signature(build_data_check_string(unsigned), bot_token)
    return urlencode({**unsigned, HASH_FIELD: signature})


class InitDataVerifier:
    """Binds verify_init_data to one bot token and freshness window."""

    def __init__(self, bot_token: str, max_age_seconds: int = 0):
        self._bot_token = bot_token
        self.max_age_seconds = max_age_seconds

    def verify(self, raw: str, now: float | None = None) -> VerificationResult:
        return verify_init_data(
            raw, self._bot_token, self.max_age_seconds, now,
        )

    def authenticate(self, raw: str, now: float | None = None) -> dict[str, str]:
        """Return verified fields or raise the public error for the rejection."""
        result = self.verify(raw, now)
        if result.ok:
            return result.fields
        raise rejection_error(result.rejection, self.max_age_seconds)


def rejection_error(rejection: Rejection, max_age_seconds: int = 0):
    """Map a Rejection to the error reported to the caller."""
    if rejection is Rejection.EMPTY:
        return MissingInitDataError()
    if rejection is Rejection.MALFORMED:
        return MalformedPayloadError()
    if rejection is Rejection.EXPIRED:
        return InitDataExpiredError(max_age_seconds)
    # missing hash, missing token, bad signature: indistinguishable to the caller
    return InvalidSignatureError()
