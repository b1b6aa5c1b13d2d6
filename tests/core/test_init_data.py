"""Launch Data Verification — fixed vectors, tamper sensitivity, and rejection reasons.

Tests cover:
    - Secret derivation and signature match precomputed HMAC-SHA256 vectors
    - Correct hash accepted (any case); every single-character flip rejected
    - Field order and duplicate keys never change the outcome
    - Empty, malformed, hash-less, and token-less inputs rejected without raising
    - Optional auth_date window
    - authenticate() collapses hash/signature failures into one public error
"""

from urllib.parse import urlencode

import pytest

from miniapp.core.domain_types import Rejection
from miniapp.core.errors import (
    InitDataExpiredError,
    InvalidSignatureError,
    MalformedPayloadError,
    MissingInitDataError,
)
from miniapp.core.init_data import (
    InitDataVerifier,
    build_data_check_string,
    compute_signature,
    derive_secret_key,
    rejection_error,
    sign_init_data,
    verify_init_data,
)

TOKEN = "TEST_TOKEN"
USER_JSON = '{"id":42,"first_name":"Ann"}'
FIELDS = {"auth_date": "1700000000", "query_id": "AAA", "user": USER_JSON}
DATA_CHECK_STRING = 'auth_date=1700000000\nquery_id=AAA\nuser={"id":42,"first_name":"Ann"}'
SECRET_KEY_HEX = "8da6e49bb637d76bceafc6001dae6e45a5e39ed92712ee21a8f1e5446da84681"
EXPECTED_HASH = "23f8ca6038aba86b996759af2ad82086ed9e84a31ebf63415f74947b644c6ae9"


def _raw(fields: dict, hash_value: str = EXPECTED_HASH) -> str:
    return urlencode({**fields, "hash": hash_value})


# ─── fixed vectors ───────────────────────────────────────────────

def test_data_check_string_is_sorted_and_newline_joined():
    assert build_data_check_string(FIELDS) == DATA_CHECK_STRING


def test_secret_key_matches_vector():
    secret = derive_secret_key(TOKEN)
    assert len(secret) == 32
    assert secret.hex() == SECRET_KEY_HEX


def test_signature_matches_vector():
    assert compute_signature(DATA_CHECK_STRING, TOKEN) == EXPECTED_HASH


def test_sign_init_data_produces_vector_hash():
    result = verify_init_data(sign_init_data(FIELDS, TOKEN), TOKEN)
    assert result.ok
    assert "hash=" + EXPECTED_HASH in sign_init_data(FIELDS, TOKEN)


# ─── accept ──────────────────────────────────────────────────────

def test_correct_hash_accepted_and_fields_returned():
    result = verify_init_data(_raw(FIELDS), TOKEN)
    assert result.ok
    assert result.rejection is None
    assert result.fields == FIELDS
    assert "hash" not in result.fields


def test_uppercase_hash_accepted():
    result = verify_init_data(_raw(FIELDS, EXPECTED_HASH.upper()), TOKEN)
    assert result.ok


def test_user_field_stays_raw_json_text():
    result = verify_init_data(_raw(FIELDS), TOKEN)
    assert result.fields["user"] == USER_JSON


def test_field_order_does_not_matter():
    reordered = urlencode([
        ("hash", EXPECTED_HASH),
        ("user", USER_JSON),
        ("query_id", "AAA"),
        ("auth_date", "1700000000"),
    ])
    result = verify_init_data(reordered, TOKEN)
    assert result.ok
    assert result.fields == FIELDS


def test_duplicate_key_last_value_wins():
    raw = urlencode([
        ("query_id", "ZZZ"),
        ("auth_date", "1700000000"),
        ("user", USER_JSON),
        ("query_id", "AAA"),
        ("hash", EXPECTED_HASH),
    ])
    result = verify_init_data(raw, TOKEN)
    assert result.ok
    assert result.fields["query_id"] == "AAA"


def test_verification_is_deterministic():
    raw = _raw(FIELDS)
    assert verify_init_data(raw, TOKEN) == verify_init_data(raw, TOKEN)


# ─── reject ──────────────────────────────────────────────────────

@pytest.mark.parametrize("position", range(len(EXPECTED_HASH)))
def test_any_flipped_hash_character_rejected(position):
    original = EXPECTED_HASH[position]
    flipped = "0" if original != "0" else "1"
    bad_hash = EXPECTED_HASH[:position] + flipped + EXPECTED_HASH[position + 1:]
    result = verify_init_data(_raw(FIELDS, bad_hash), TOKEN)
    assert result.rejection is Rejection.INVALID_SIGNATURE


def test_tampered_auth_date_rejected():
    tampered = {**FIELDS, "auth_date": "1700000001"}
    result = verify_init_data(_raw(tampered), TOKEN)
    assert not result.ok
    assert result.rejection is Rejection.INVALID_SIGNATURE


def test_added_field_rejected():
    result = verify_init_data(_raw({**FIELDS, "start_param": "x"}), TOKEN)
    assert result.rejection is Rejection.INVALID_SIGNATURE


def test_wrong_token_rejected():
    result = verify_init_data(_raw(FIELDS), "OTHER_TOKEN")
    assert result.rejection is Rejection.INVALID_SIGNATURE


def test_truncated_hash_rejected():
    result = verify_init_data(_raw(FIELDS, EXPECTED_HASH[:-2]), TOKEN)
    assert result.rejection is Rejection.INVALID_SIGNATURE


def test_missing_hash_rejected():
    result = verify_init_data(urlencode(FIELDS), TOKEN)
    assert result.rejection is Rejection.MISSING_HASH
    assert result.fields == {}


def test_empty_hash_rejected():
    result = verify_init_data(_raw(FIELDS, ""), TOKEN)
    assert result.rejection is Rejection.MISSING_HASH


def test_empty_payload_rejected():
    assert verify_init_data("", TOKEN).rejection is Rejection.EMPTY


@pytest.mark.parametrize("raw", [
    "no_equals_sign",
    "auth_date=1700000000&&hash=abc",
    "user=%FF%FE&hash=abc",
])
def test_malformed_payload_rejected(raw):
    assert verify_init_data(raw, TOKEN).rejection is Rejection.MALFORMED


def test_empty_bot_token_rejects_without_raising():
    result = verify_init_data(_raw(FIELDS), "")
    assert result.rejection is Rejection.MISSING_TOKEN


# ─── auth_date window ────────────────────────────────────────────

def test_window_disabled_by_default_accepts_old_payload():
    assert verify_init_data(_raw(FIELDS), TOKEN, now=2_000_000_000).ok


def test_fresh_payload_within_window_accepted():
    result = verify_init_data(
        _raw(FIELDS), TOKEN, max_age_seconds=3600, now=1_700_000_010,
    )
    assert result.ok


def test_stale_payload_outside_window_rejected():
    result = verify_init_data(
        _raw(FIELDS), TOKEN, max_age_seconds=3600, now=1_700_003_601,
    )
    assert result.rejection is Rejection.EXPIRED


def test_window_requires_auth_date():
    fields = {"query_id": "AAA", "user": USER_JSON}
    result = verify_init_data(
        sign_init_data(fields, TOKEN), TOKEN, max_age_seconds=3600, now=0,
    )
    assert result.rejection is Rejection.EXPIRED


def test_window_rejects_non_ascii_digit_auth_date():
    fields = {**FIELDS, "auth_date": "\u00b2"}
    result = verify_init_data(
        sign_init_data(fields, TOKEN), TOKEN, max_age_seconds=3600, now=0,
    )
    assert result.rejection is Rejection.EXPIRED


def test_window_checked_only_after_signature():
    result = verify_init_data(
        _raw(FIELDS, "0" * 64), TOKEN, max_age_seconds=1, now=2_000_000_000,
    )
    assert result.rejection is Rejection.INVALID_SIGNATURE


# ─── InitDataVerifier / error mapping ────────────────────────────

def test_authenticate_returns_fields():
    verifier = InitDataVerifier(TOKEN)
    assert verifier.authenticate(_raw(FIELDS)) == FIELDS


def test_missing_hash_and_bad_signature_look_identical():
    verifier = InitDataVerifier(TOKEN)
    with pytest.raises(InvalidSignatureError) as missing:
        verifier.authenticate(urlencode(FIELDS))
    with pytest.raises(InvalidSignatureError) as bad:
        verifier.authenticate(_raw(FIELDS, "0" * 64))
    assert missing.value.to_response()["error"]["message"] == (
        bad.value.to_response()["error"]["message"]
    )
    assert missing.value.http_status == bad.value.http_status == 401


@pytest.mark.parametrize("rejection, error_type", [
    (Rejection.EMPTY, MissingInitDataError),
    (Rejection.MALFORMED, MalformedPayloadError),
    (Rejection.MISSING_HASH, InvalidSignatureError),
    (Rejection.MISSING_TOKEN, InvalidSignatureError),
    (Rejection.INVALID_SIGNATURE, InvalidSignatureError),
    (Rejection.EXPIRED, InitDataExpiredError),
])
def test_rejection_error_mapping(rejection, error_type):
    assert isinstance(rejection_error(rejection, 60), error_type)
