"""Batch processor: drain the outbox into one signed LinkHub call."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotConfiguredError, RemoteRejection, TransportError, ValidationError
from ..models import SyncQueueItem
from ..schemas.sync import COLLECTION_KEYS, BatchIngestResponse, IngestResult, SyncSummary
from ..signing import canonical_json
from .queue import claim_pending_items, mark_item_failed, mark_item_success
from .transport import send_batch

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
MISSING_RESULT_ERROR = "No result for item in LinkHub response"


def build_batch_payload(
    items: list[SyncQueueItem],
) -> tuple[dict[str, list[dict[str, Any]]], list[SyncQueueItem], list[tuple[SyncQueueItem, str]]]:
    """Group stored payloads into LinkHub's collection-keyed batch.

    Returns the batch, the entries it contains, and the entries that could
    not be included together with the reason.
    """
    batch: dict[str, list[dict[str, Any]]] = {}
    included: list[SyncQueueItem] = []
    rejected: list[tuple[SyncQueueItem, str]] = []

    for item in items:
        key = COLLECTION_KEYS.get(item.entity_type)
        if key is None:
            rejected.append((item, f"Unknown entity type: {item.entity_type}"))
            continue
        try:
            payload = json.loads(item.payload)
        except json.JSONDecodeError as exc:
            rejected.append((item, f"Unparseable queue payload: {exc}"))
            continue
        if not isinstance(payload, dict):
            rejected.append((item, "Unparseable queue payload: expected a JSON object"))
            continue
        batch.setdefault(key, []).append(payload)
        included.append(item)

    return batch, included, rejected


def index_results(response: BatchIngestResponse) -> dict[tuple[str, str], IngestResult]:
    return {
        (result.normalized_entity_type, result.external_id): result
        for result in response.results
    }


async def process_sync_queue(
    db: AsyncSession,
    endpoint_url: str,
    api_key_prefix: str,
    signing_secret: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> SyncSummary:
    """Claim, deliver and reconcile one batch of pending entries."""
    if not (endpoint_url and api_key_prefix and signing_secret):
        raise NotConfiguredError(
            "LinkHub connection is not configured: endpoint_url, api_key_prefix "
            "and signing_secret are all required."
        )
    if batch_size < 1:
        raise ValidationError(f"batch_size must be at least 1, got {batch_size}", field="batch_size")

    items = await claim_pending_items(db, batch_size)
    summary = SyncSummary(processed=len(items))
    if not items:
        return summary

    batch, included, rejected = build_batch_payload(items)
    for item, reason in rejected:
        await mark_item_failed(db, item, reason)
        summary.failed += 1

    if included:
        body = canonical_json(batch)
        try:
            response = await send_batch(
                endpoint_url,
                api_key_prefix,
                signing_secret,
                body,
                client=client,
                timeout=timeout,
            )
        except TransportError as exc:
            logger.warning("LinkHub batch delivery failed for %d items: %s", len(included), exc)
            for item in included:
                await mark_item_failed(db, item, f"Transport error: {exc}")
                summary.failed += 1
        else:
            results = index_results(response)
            missing_error = MISSING_RESULT_ERROR
            if response.errors:
                missing_error = f"{MISSING_RESULT_ERROR}: {'; '.join(response.errors)}"

            for item in included:
                result = results.get((item.entity_type, item.external_id))
                if result is None:
                    await mark_item_failed(db, item, missing_error)
                    summary.failed += 1
                    continue
                try:
                    result.raise_for_error()
                except RemoteRejection as exc:
                    await mark_item_failed(db, item, str(exc))
                    summary.failed += 1
                    continue
                await mark_item_success(db, item, result)
                summary.succeeded += 1

    logger.info(
        "Sync batch finished: %d processed, %d succeeded, %d failed",
        summary.processed,
        summary.succeeded,
        summary.failed,
    )
    return summary
