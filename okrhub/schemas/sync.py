"""Sync queue, ingest wire and summary schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import RemoteRejection

# Batch collection key per entity type, in LinkHub's dependency order.
COLLECTION_KEYS: dict[str, str] = {
    "company": "companies",
    "team": "teams",
    "user": "users",
    "indicator": "indicators",
    "objective": "objectives",
    "keyResult": "keyResults",
    "risk": "risks",
    "initiative": "initiatives",
    "milestone": "milestones",
    "indicatorValue": "indicatorValues",
    "indicatorForecast": "indicatorForecasts",
}
ENTITY_TYPE_BY_COLLECTION: dict[str, str] = {v: k for k, v in COLLECTION_KEYS.items()}


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IngestResult(WireModel):
    entity_type: str
    external_id: str
    link_hub_id: str | None = None
    action: Literal["create", "update"] | None = None
    error: str | None = None

    @property
    def normalized_entity_type(self) -> str:
        return ENTITY_TYPE_BY_COLLECTION.get(self.entity_type, self.entity_type)

    def raise_for_error(self) -> None:
        if self.error:
            raise RemoteRejection(self.error, self.normalized_entity_type, self.external_id)


class BatchIngestResponse(WireModel):
    success: bool
    results: list[IngestResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class BatchPayload(WireModel):
    companies: list[dict[str, Any]] | None = None
    teams: list[dict[str, Any]] | None = None
    users: list[dict[str, Any]] | None = None
    indicators: list[dict[str, Any]] | None = None
    objectives: list[dict[str, Any]] | None = None
    key_results: list[dict[str, Any]] | None = None
    risks: list[dict[str, Any]] | None = None
    initiatives: list[dict[str, Any]] | None = None
    milestones: list[dict[str, Any]] | None = None
    indicator_values: list[dict[str, Any]] | None = None
    indicator_forecasts: list[dict[str, Any]] | None = None


class BatchInsertResult(BaseModel):
    success: bool
    queue_ids: list[int] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class SyncSummary(BaseModel):
    processed: int = 0
    succeeded: int = 0
    failed: int = 0


class QueueItemRead(BaseModel):
    id: int
    entity_type: str
    external_id: str
    payload: str
    status: str
    attempts: int
    last_attempt_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SyncLogRead(BaseModel):
    id: uuid.UUID
    entity_type: str
    external_id: str
    link_hub_id: str | None = None
    action: str
    synced_at: datetime

    model_config = {"from_attributes": True}
