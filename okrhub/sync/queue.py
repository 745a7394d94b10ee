"""Outbox queue: append, claim and state transitions for sync entries."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, ValidationError
from ..models import MODELS_BY_ENTITY_TYPE, SyncLogEntry, SyncQueueItem
from ..models.base import utcnow
from ..payload_policy import strip_managed_fields
from ..schemas.sync import IngestResult
from ..signing import canonical_json

logger = logging.getLogger(__name__)

QUEUE_STATUSES = ("pending", "processing", "success", "failed")


async def enqueue(
    db: AsyncSession,
    entity_type: str,
    external_id: str,
    snapshot: dict[str, Any],
) -> SyncQueueItem:
    """Append a pending entry for ``snapshot``.

    Managed fields are stripped here so every enqueue path obeys the
    ownership policy. The caller owns the transaction and must commit.
    """
    filtered = strip_managed_fields(entity_type, snapshot)
    item = SyncQueueItem(
        entity_type=entity_type,
        external_id=external_id,
        payload=canonical_json(filtered).decode("utf-8"),
        status="pending",
        attempts=0,
        created_at=utcnow(),
    )
    db.add(item)
    await db.flush()
    return item


async def get_queue_item(db: AsyncSession, item_id: int) -> SyncQueueItem | None:
    result = await db.execute(select(SyncQueueItem).where(SyncQueueItem.id == item_id))
    return result.scalar_one_or_none()


async def get_pending_sync_items(db: AsyncSession, limit: int = 50) -> list[SyncQueueItem]:
    """Pending entries, oldest first."""
    stmt = (
        select(SyncQueueItem)
        .where(SyncQueueItem.status == "pending")
        .order_by(SyncQueueItem.created_at.asc(), SyncQueueItem.id.asc())
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_queue_items(
    db: AsyncSession,
    status: str | None = None,
    external_id: str | None = None,
    limit: int = 100,
) -> list[SyncQueueItem]:
    stmt = select(SyncQueueItem)
    if status:
        stmt = stmt.where(SyncQueueItem.status == status)
    if external_id:
        stmt = stmt.where(SyncQueueItem.external_id == external_id)
    stmt = stmt.order_by(SyncQueueItem.created_at.asc(), SyncQueueItem.id.asc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def claim_pending_items(db: AsyncSession, limit: int) -> list[SyncQueueItem]:
    """Move up to ``limit`` pending entries to ``processing``.

    Each claim is committed on its own before any network call, so an
    interrupted run leaves the attempt visible instead of re-claimable.
    """
    items = await get_pending_sync_items(db, limit=limit)
    for item in items:
        item.status = "processing"
        item.attempts += 1
        item.last_attempt_at = utcnow()
        item.error_message = None
        await db.commit()
    return items


async def _set_entity_sync_status(
    db: AsyncSession, entity_type: str, external_id: str, sync_status: str
) -> None:
    model = MODELS_BY_ENTITY_TYPE.get(entity_type)
    if model is None:
        return
    result = await db.execute(select(model).where(model.external_id == external_id))
    entity = result.scalar_one_or_none()
    if entity is not None:
        entity.sync_status = sync_status


async def _has_newer_pending(db: AsyncSession, item: SyncQueueItem) -> bool:
    stmt = (
        select(SyncQueueItem.id)
        .where(
            and_(
                SyncQueueItem.entity_type == item.entity_type,
                SyncQueueItem.external_id == item.external_id,
                SyncQueueItem.status == "pending",
                SyncQueueItem.id > item.id,
            )
        )
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.first() is not None


async def _settle_entity(db: AsyncSession, item: SyncQueueItem, sync_status: str) -> None:
    # A newer snapshot still waiting to be sent keeps the row pending.
    if await _has_newer_pending(db, item):
        return
    await _set_entity_sync_status(db, item.entity_type, item.external_id, sync_status)


async def _has_prior_sync(db: AsyncSession, entity_type: str, external_id: str) -> bool:
    stmt = (
        select(SyncLogEntry.id)
        .where(
            and_(
                SyncLogEntry.entity_type == entity_type,
                SyncLogEntry.external_id == external_id,
            )
        )
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.first() is not None


async def mark_item_success(
    db: AsyncSession, item: SyncQueueItem, result: IngestResult
) -> SyncLogEntry:
    action = result.action
    if action is None:
        action = "update" if await _has_prior_sync(db, item.entity_type, item.external_id) else "create"

    item.status = "success"
    item.error_message = None
    entry = SyncLogEntry(
        entity_type=item.entity_type,
        external_id=item.external_id,
        link_hub_id=result.link_hub_id,
        action=action,
        synced_at=utcnow(),
    )
    db.add(entry)
    await _settle_entity(db, item, "synced")
    await db.commit()
    return entry


async def mark_item_failed(db: AsyncSession, item: SyncQueueItem, error: str) -> None:
    item.status = "failed"
    item.error_message = error or "Unknown error"
    await _settle_entity(db, item, "failed")
    await db.commit()


async def resubmit_failed(db: AsyncSession, item_id: int) -> SyncQueueItem:
    """Append a fresh pending entry for a failed one.

    The new entry carries the entity's current local snapshot; entries
    enqueued without a local row reuse the stored payload. The failed
    entry itself is left as it is.
    """
    item = await get_queue_item(db, item_id)
    if item is None:
        raise NotFoundError(f"Sync queue item not found: {item_id}")
    if item.status != "failed":
        raise ValidationError(
            f"Only failed items can be resubmitted; item {item_id} is {item.status}",
            field="status",
        )

    snapshot: dict[str, Any]
    model = MODELS_BY_ENTITY_TYPE.get(item.entity_type)
    entity = None
    if model is not None:
        stmt = select(model).where(model.external_id == item.external_id)
        result = await db.execute(stmt.execution_options(populate_existing=True))
        entity = result.scalar_one_or_none()
    if entity is not None:
        snapshot = entity.to_payload()
        entity.sync_status = "pending"
    else:
        snapshot = json.loads(item.payload)

    new_item = await enqueue(db, item.entity_type, item.external_id, snapshot)
    await db.commit()
    logger.info("Resubmitted sync item %s as %s", item_id, new_item.id)
    return new_item


async def release_stuck_items(db: AsyncSession, older_than_seconds: float = 900) -> int:
    """Fail entries left ``processing`` by an interrupted run."""
    cutoff = utcnow() - timedelta(seconds=older_than_seconds)
    stmt = select(SyncQueueItem).where(
        and_(
            SyncQueueItem.status == "processing",
            SyncQueueItem.last_attempt_at <= cutoff,
        )
    )
    result = await db.execute(stmt)
    items = list(result.scalars().all())
    for item in items:
        item.status = "failed"
        item.error_message = (
            f"Abandoned while processing (claimed at {item.last_attempt_at}); resubmit to retry"
        )
        await _set_entity_sync_status(db, item.entity_type, item.external_id, "failed")
    await db.commit()
    if items:
        logger.warning("Released %d stuck sync items", len(items))
    return len(items)


async def get_sync_log(
    db: AsyncSession,
    external_id: str | None = None,
    entity_type: str | None = None,
    limit: int = 100,
) -> list[SyncLogEntry]:
    stmt = select(SyncLogEntry)
    if external_id:
        stmt = stmt.where(SyncLogEntry.external_id == external_id)
    if entity_type:
        stmt = stmt.where(SyncLogEntry.entity_type == entity_type)
    stmt = stmt.order_by(SyncLogEntry.synced_at.desc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
