"""Request signing and canonical serialization."""

from __future__ import annotations

import re

from okrhub import __version__
from okrhub.signing import (
    HEADER_KEY_PREFIX,
    HEADER_SIGNATURE,
    HEADER_VERSION,
    build_headers,
    canonical_json,
    sign,
    verify_signature,
)

SECRET = "s3cret"
PAYLOAD = b'{"objectives":[{"externalId":"myapp:objective:x"}]}'


def test_signature_is_64_lowercase_hex():
    assert re.fullmatch(r"[0-9a-f]{64}", sign(PAYLOAD, SECRET))


def test_signature_is_deterministic():
    assert sign(PAYLOAD, SECRET) == sign(PAYLOAD, SECRET)


def test_single_byte_change_changes_signature():
    tampered = PAYLOAD[:-1] + b"]"
    assert sign(PAYLOAD, SECRET) != sign(tampered, SECRET)
    assert sign(PAYLOAD, SECRET) != sign(PAYLOAD, SECRET + "x")


def test_known_vector():
    # RFC 4231 test case 2
    assert sign(b"what do ya want for nothing?", "Jefe") == (
        "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"
    )


def test_verify_round_trip():
    signature = sign(PAYLOAD, SECRET)
    assert verify_signature(PAYLOAD, signature, SECRET)
    assert verify_signature(PAYLOAD, f"sha256={signature}", SECRET)
    assert not verify_signature(PAYLOAD, signature, "other")
    assert not verify_signature(PAYLOAD + b" ", signature, SECRET)


def test_build_headers():
    headers = build_headers(PAYLOAD, "lh_live", SECRET)
    assert headers["Content-Type"] == "application/json"
    assert headers[HEADER_VERSION] == __version__
    assert headers[HEADER_KEY_PREFIX] == "lh_live"
    assert headers[HEADER_SIGNATURE] == sign(PAYLOAD, SECRET)
    assert SECRET not in "".join(headers.values())


def test_canonical_json_is_sorted_and_compact():
    body = canonical_json({"b": 1, "a": {"d": "é", "c": [1, 2]}})
    assert body == '{"a":{"c":[1,2],"d":"é"},"b":1}'.encode("utf-8")
