"""External identifiers shared between the host app and LinkHub.

Format: ``{sourceApp}:{entityType}:{uuid}``, for example
``mycrm:objective:550e8400-e29b-41d4-a716-446655440000``.

Random ids are used when the caller has no natural dedup key. Deterministic
ids are derived from normalized content so that replaying the same create
resolves to the same id without asking LinkHub first.
"""

from __future__ import annotations

import hashlib
import re
import secrets
import uuid
from dataclasses import dataclass

from .errors import ValidationError

ENTITY_TYPES: tuple[str, ...] = (
    "objective",
    "keyResult",
    "risk",
    "initiative",
    "indicator",
    "indicatorValue",
    "indicatorForecast",
    "milestone",
    "team",
    "company",
    "user",
)

SEPARATOR = ":"
EXPECTED_FORMAT = "{sourceApp}:{entityType}:{uuid}"

_SOURCE_APP_RE = re.compile(r"^[a-z0-9-]{2,32}$")
_UUID_PATTERN = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
_EXTERNAL_ID_RE = re.compile(
    r"^(?P<source_app>[a-z0-9-]{2,32}):"
    r"(?P<entity_type>" + "|".join(ENTITY_TYPES) + r"):"
    r"(?P<uuid>" + _UUID_PATTERN + r")$"
)


@dataclass(frozen=True)
class ParsedExternalId:
    source_app: str
    entity_type: str
    uuid: str


def validate_source_app(source_app: str) -> bool:
    return bool(source_app) and _SOURCE_APP_RE.match(source_app) is not None


def validate_external_id(external_id: str) -> bool:
    """Structural check only; remote existence is never consulted."""
    if not isinstance(external_id, str):
        return False
    return _EXTERNAL_ID_RE.match(external_id) is not None


def assert_valid_external_id(external_id: str, field_name: str = "externalId") -> None:
    if not validate_external_id(external_id):
        raise ValidationError(
            f'Invalid {field_name} format: "{external_id}". Expected format: {EXPECTED_FORMAT}',
            field=field_name,
        )


def _check_namespace(source_app: str, entity_type: str) -> None:
    if not validate_source_app(source_app):
        raise ValidationError(
            f'Invalid sourceApp format: "{source_app}". '
            "Must be 2-32 lowercase alphanumeric characters or hyphens.",
            field="sourceApp",
        )
    if entity_type not in ENTITY_TYPES:
        raise ValidationError(f'Unknown entityType: "{entity_type}"', field="entityType")


def generate_external_id(source_app: str, entity_type: str) -> str:
    """Build a random-mode external id."""
    _check_namespace(source_app, entity_type)
    return f"{source_app}{SEPARATOR}{entity_type}{SEPARATOR}{uuid.uuid4()}"


def normalize_part(value: str) -> str:
    """Trim, lower-case and collapse internal whitespace."""
    return " ".join(str(value).split()).lower()


def deterministic_uuid(seed: str) -> uuid.UUID:
    # Version/variant bits are stamped so the result passes the v4-shaped validator.
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return uuid.UUID(bytes=digest[:16], version=4)


def generate_deterministic_external_id(source_app: str, entity_type: str, parts: list[str]) -> str:
    _check_namespace(source_app, entity_type)
    seed = "|".join([source_app, entity_type, *(normalize_part(p) for p in parts)])
    return f"{source_app}{SEPARATOR}{entity_type}{SEPARATOR}{deterministic_uuid(seed)}"


def generate_scoped_description_external_id(
    source_app: str,
    entity_type: str,
    parent_external_id: str,
    description: str,
) -> str:
    """Same (parent, description) pair always yields the same id."""
    return generate_deterministic_external_id(
        source_app, entity_type, [parent_external_id, description]
    )


def generate_key_result_external_id(
    source_app: str,
    team_external_id: str,
    objective_external_id: str,
    indicator_external_id: str,
) -> str:
    return generate_deterministic_external_id(
        source_app,
        "keyResult",
        [team_external_id, objective_external_id, indicator_external_id],
    )


def generate_indicator_time_series_external_id(
    source_app: str,
    entity_type: str,
    indicator_external_id: str,
    date: int,
) -> str:
    if entity_type not in ("indicatorValue", "indicatorForecast"):
        raise ValidationError(
            f'Time-series ids are only defined for indicator values and forecasts, got "{entity_type}"',
            field="entityType",
        )
    return generate_deterministic_external_id(
        source_app, entity_type, [indicator_external_id, str(date)]
    )


def parse_external_id(external_id: str) -> ParsedExternalId | None:
    if not isinstance(external_id, str):
        return None
    match = _EXTERNAL_ID_RE.match(external_id)
    if not match:
        return None
    return ParsedExternalId(
        source_app=match.group("source_app"),
        entity_type=match.group("entity_type"),
        uuid=match.group("uuid"),
    )


def extract_source_app(external_id: str) -> str | None:
    parsed = parse_external_id(external_id)
    return parsed.source_app if parsed else None


def extract_entity_type(external_id: str) -> str | None:
    parsed = parse_external_id(external_id)
    return parsed.entity_type if parsed else None


def same_source_app(first: str, second: str) -> bool:
    app = extract_source_app(first)
    return app is not None and app == extract_source_app(second)


def generate_slug(source_app: str, text: str, max_length: int = 50) -> str:
    """Pattern: ``{sourceApp}-{baseSlug}-{suffix}``."""
    budget = max(max_length - len(source_app) - 7, 0)
    base = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")[:budget]
    return f"{source_app}-{base}-{secrets.token_hex(2)}"
