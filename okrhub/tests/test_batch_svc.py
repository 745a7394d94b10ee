"""Direct batch inserts."""

from __future__ import annotations

import json

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from okrhub.models import KeyResult, SyncQueueItem
from okrhub.schemas.sync import BatchPayload
from okrhub.services.batch_svc import insert_batch

from .conftest import new_id


@pytest.mark.asyncio
async def test_valid_items_are_queued_without_local_rows(db: AsyncSession):
    kr_id = new_id("keyResult")
    objective_id = new_id("objective")
    batch = {
        "objectives": [{"externalId": objective_id, "title": "Grow"}],
        "keyResults": [{"externalId": kr_id, "objectiveExternalId": objective_id, "weight": 0.3}],
    }

    result = await insert_batch(db, batch)

    assert result.success
    assert result.errors == []
    assert len(result.queue_ids) == 2
    items = (await db.execute(select(SyncQueueItem).order_by(SyncQueueItem.id))).scalars().all()
    assert [(i.entity_type, i.external_id) for i in items] == [
        ("objective", objective_id),
        ("keyResult", kr_id),
    ]
    assert "weight" not in json.loads(items[1].payload)
    assert (await db.execute(select(func.count()).select_from(KeyResult))).scalar_one() == 0


@pytest.mark.asyncio
async def test_invalid_items_are_reported_per_collection(db: AsyncSession):
    good = new_id("risk")
    batch = BatchPayload(
        risks=[
            {"externalId": good, "priority": "high", "description": "d"},
            {"externalId": "not-an-id"},
            {"description": "no id"},
        ],
        teams=[{"externalId": new_id("company"), "name": "mislabelled"}],
    )

    result = await insert_batch(db, batch)

    assert result.success is False
    assert len(result.queue_ids) == 1
    assert len(result.errors) == 3
    assert all(e.startswith(("risks: ", "teams: ")) for e in result.errors)
    assert any('Invalid externalId format: "not-an-id"' in e for e in result.errors)
    assert any("does not name a team" in e for e in result.errors)
    (item,) = (await db.execute(select(SyncQueueItem))).scalars().all()
    assert item.external_id == good
    assert "priority" not in json.loads(item.payload)


@pytest.mark.asyncio
async def test_empty_batch(db: AsyncSession):
    result = await insert_batch(db, BatchPayload())
    assert result.success
    assert result.queue_ids == []


@pytest.mark.asyncio
async def test_malformed_collection_is_reported_not_raised(db: AsyncSession):
    result = await insert_batch(db, {"objectives": [1, 2], "risks": [{"externalId": new_id("risk")}]})

    assert result.success is False
    assert result.queue_ids == []
    assert result.errors
    assert all(e.startswith("objectives.") for e in result.errors)
    assert (await db.execute(select(func.count()).select_from(SyncQueueItem))).scalar_one() == 0
