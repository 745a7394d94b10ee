"""Base model classes and mixins for OKRHub models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, ClassVar

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_ms(value: datetime | None) -> int | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class Base(DeclarativeBase):
    pass


class UUIDMixin:
    """Adds a UUID primary key."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )


class SyncedEntityMixin:
    """Columns shared by every locally stored OKR entity.

    ``payload_fields`` lists the type-specific attributes that make up the
    snapshot sent to LinkHub, in snake_case.
    """

    entity_type: ClassVar[str]
    payload_fields: ClassVar[tuple[str, ...]] = ()

    external_id: Mapped[str] = mapped_column(String(160), unique=True, index=True)
    source_url: Mapped[str | None] = mapped_column(Text, default=None)
    sync_status: Mapped[str] = mapped_column(
        String(20), default="pending", index=True
    )  # pending/synced/failed
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, nullable=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, nullable=True
    )

    def to_payload(self) -> dict[str, Any]:
        """Full wire snapshot, before the field-ownership policy is applied."""
        payload: dict[str, Any] = {"externalId": self.external_id}
        for name in self.payload_fields:
            value = getattr(self, name)
            if value is not None:
                payload[to_camel(name)] = value
        if self.source_url:
            payload["sourceUrl"] = self.source_url
        payload["createdAt"] = to_epoch_ms(self.created_at)
        if self.updated_at is not None:
            payload["updatedAt"] = to_epoch_ms(self.updated_at)
        return payload


class SluggedMixin:
    slug: Mapped[str] = mapped_column(String(120), index=True)
