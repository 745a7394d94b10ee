"""Direct batch insert - queue pre-shaped wire payloads without local rows."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import OKRHubError, ValidationError
from ..external_id import assert_valid_external_id, extract_entity_type
from ..schemas.sync import COLLECTION_KEYS, BatchInsertResult, BatchPayload
from ..sync.queue import enqueue

logger = logging.getLogger(__name__)


def _check_item(entity_type: str, item: Any) -> str:
    if not isinstance(item, dict):
        raise ValidationError("item must be an object", field="item")
    external_id = item.get("externalId")
    assert_valid_external_id(external_id)
    if extract_entity_type(external_id) != entity_type:
        raise ValidationError(
            f'externalId "{external_id}" does not name a {entity_type}',
            field="externalId",
        )
    return external_id


async def insert_batch(
    db: AsyncSession, batch: BatchPayload | dict[str, Any]
) -> BatchInsertResult:
    """Append one pending entry per valid item.

    Invalid items are reported as ``"{collectionKey}: {message}"`` and do
    not stop their siblings. Managed fields are stripped by ``enqueue``.
    """
    if not isinstance(batch, BatchPayload):
        try:
            batch = BatchPayload.model_validate(batch)
        except PydanticValidationError as exc:
            errors = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ]
            logger.info("Batch insert rejected: %s", "; ".join(errors))
            return BatchInsertResult(success=False, errors=errors)
    collections = batch.model_dump(by_alias=True, exclude_none=True)

    queue_ids: list[int] = []
    errors: list[str] = []
    for entity_type, key in COLLECTION_KEYS.items():
        for item in collections.get(key) or []:
            try:
                external_id = _check_item(entity_type, item)
            except OKRHubError as exc:
                errors.append(f"{key}: {exc}")
                continue
            queued = await enqueue(db, entity_type, external_id, item)
            queue_ids.append(queued.id)

    await db.commit()
    if errors:
        logger.info("Batch insert queued %d items, rejected %d", len(queue_ids), len(errors))
    return BatchInsertResult(success=not errors, queue_ids=queue_ids, errors=errors)
