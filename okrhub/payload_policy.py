"""Fields that LinkHub owns and local syncs must never send."""

from __future__ import annotations

from typing import Any

MANAGED_FIELDS: dict[str, frozenset[str]] = {
    "keyResult": frozenset({"weight"}),
    "risk": frozenset({"priority"}),
    "initiative": frozenset({"priority"}),
}


def managed_fields_for(entity_type: str) -> frozenset[str]:
    return MANAGED_FIELDS.get(entity_type, frozenset())


def strip_managed_fields(entity_type: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``payload`` without LinkHub-managed keys.

    An absent key means "leave unchanged" on the LinkHub side.
    """
    managed = managed_fields_for(entity_type)
    return {key: value for key, value in payload.items() if key not in managed}
