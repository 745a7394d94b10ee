"""Outbox queue and sync audit log."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDMixin, utcnow


class SyncQueueItem(Base):
    """One unit of pending replication work.

    Append-only: several rows may exist for the same external id, each
    carrying the snapshot taken at its own enqueue time.
    """

    __tablename__ = "sync_queue"
    __table_args__ = (
        Index("ix_sync_queue_status_created", "status", "created_at"),
        Index("ix_sync_queue_type_status", "entity_type", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(40))
    external_id: Mapped[str] = mapped_column(String(160), index=True)
    payload: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(20), default="pending"
    )  # pending/processing/success/failed
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, nullable=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<SyncQueueItem {self.entity_type} {self.status} attempts={self.attempts}>"


class SyncLogEntry(Base, UUIDMixin):
    """Immutable record of a confirmed LinkHub apply."""

    __tablename__ = "sync_log"

    entity_type: Mapped[str] = mapped_column(String(40), index=True)
    external_id: Mapped[str] = mapped_column(String(160), index=True)
    link_hub_id: Mapped[str | None] = mapped_column(String(160), default=None)
    action: Mapped[str] = mapped_column(String(10))  # create/update
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<SyncLogEntry {self.action} {self.external_id}>"
