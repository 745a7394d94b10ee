"""HMAC request signing for LinkHub ingest calls."""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any

from . import __version__

PROTOCOL_VERSION = __version__

HEADER_VERSION = "X-Version"
HEADER_KEY_PREFIX = "X-Key-Prefix"
HEADER_SIGNATURE = "X-Signature"


def canonical_json(obj: Any) -> bytes:
    """Serialize to the byte form that is both signed and transmitted."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def sign(payload: bytes, signing_secret: str) -> str:
    """HMAC-SHA256 over the exact payload bytes, as lowercase hex."""
    return hmac.new(signing_secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: str, signing_secret: str) -> bool:
    provided = signature.strip()
    if provided.startswith("sha256="):
        provided = provided.split("=", 1)[1]
    return hmac.compare_digest(provided, sign(payload, signing_secret))


def build_headers(
    payload: bytes,
    api_key_prefix: str,
    signing_secret: str,
    protocol_version: str = PROTOCOL_VERSION,
) -> dict[str, str]:
    # The secret itself never leaves this function; only the prefix identifies it.
    return {
        "Content-Type": "application/json",
        HEADER_VERSION: protocol_version,
        HEADER_KEY_PREFIX: api_key_prefix,
        HEADER_SIGNATURE: sign(payload, signing_secret),
    }
