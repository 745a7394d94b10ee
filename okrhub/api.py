"""Host-facing facade.

Every public coroutine runs the caller-supplied ``authorize`` hook before it
touches the database, then opens its own session. Secrets for the processor
are taken from the call when given and from settings otherwise.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import httpx
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .config import OKRHubSettings
from .config import settings as default_settings
from .errors import AuthorizationError
from .schemas import entities as s
from .schemas.entities import MutationResult
from .schemas.sync import BatchInsertResult, BatchPayload, SyncSummary
from .services import batch_svc, entity_svc
from .sync import processor, queue

logger = logging.getLogger(__name__)

AuthorizeFn = Callable[[Any, str], Union[None, bool, Awaitable[Optional[bool]]]]
EntityInput = Union[BaseModel, dict]


class OKRHub:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        settings: OKRHubSettings | None = None,
        authorize: AuthorizeFn | None = None,
        source_app: str | None = None,
    ) -> None:
        if session_factory is None:
            from .database import async_session_factory

            session_factory = async_session_factory
        self._session_factory = session_factory
        self.settings = settings or default_settings
        self._authorize_fn = authorize
        self.source_app = source_app or self.settings.source_app

    async def _authorize(self, context: Any, operation: str) -> None:
        if self._authorize_fn is None:
            return
        try:
            outcome = self._authorize_fn(context, operation)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except AuthorizationError:
            logger.info("Authorization rejected %s", operation)
            raise
        except Exception as exc:
            logger.info("Authorization rejected %s: %s", operation, exc)
            raise AuthorizationError(f"Not authorized to {operation}: {exc}") from exc
        if outcome is False:
            raise AuthorizationError(f"Not authorized to {operation}")

    # ── Generic mutations ─────────────────────────────────────────────────

    async def create_entity(
        self, entity_type: str, data: EntityInput, context: Any = None
    ) -> MutationResult:
        await self._authorize(context, f"create_{entity_svc.snake_case(entity_type)}")
        async with self._session_factory() as db:
            return await entity_svc.create_entity(db, entity_type, data, self.source_app)

    async def update_entity(
        self, entity_type: str, external_id: str, data: EntityInput, context: Any = None
    ) -> MutationResult:
        await self._authorize(context, f"update_{entity_svc.snake_case(entity_type)}")
        async with self._session_factory() as db:
            return await entity_svc.update_entity(db, entity_type, external_id, data)

    # ── Typed mutations ───────────────────────────────────────────────────

    async def create_company(self, data: s.CompanyCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("company", data, context)

    async def update_company(self, external_id: str, data: s.CompanyUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("company", external_id, data, context)

    async def create_team(self, data: s.TeamCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("team", data, context)

    async def update_team(self, external_id: str, data: s.TeamUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("team", external_id, data, context)

    async def create_user(self, data: s.UserCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("user", data, context)

    async def update_user(self, external_id: str, data: s.UserUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("user", external_id, data, context)

    async def create_indicator(self, data: s.IndicatorCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("indicator", data, context)

    async def update_indicator(self, external_id: str, data: s.IndicatorUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("indicator", external_id, data, context)

    async def create_indicator_value(self, data: s.IndicatorValueCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("indicatorValue", data, context)

    async def update_indicator_value(self, external_id: str, data: s.IndicatorValueUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("indicatorValue", external_id, data, context)

    async def create_indicator_forecast(self, data: s.IndicatorForecastCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("indicatorForecast", data, context)

    async def update_indicator_forecast(self, external_id: str, data: s.IndicatorForecastUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("indicatorForecast", external_id, data, context)

    async def create_milestone(self, data: s.MilestoneCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("milestone", data, context)

    async def update_milestone(self, external_id: str, data: s.MilestoneUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("milestone", external_id, data, context)

    async def create_objective(self, data: s.ObjectiveCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("objective", data, context)

    async def update_objective(self, external_id: str, data: s.ObjectiveUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("objective", external_id, data, context)

    async def create_key_result(self, data: s.KeyResultCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("keyResult", data, context)

    async def update_key_result(self, external_id: str, data: s.KeyResultUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("keyResult", external_id, data, context)

    async def create_risk(self, data: s.RiskCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("risk", data, context)

    async def update_risk(self, external_id: str, data: s.RiskUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("risk", external_id, data, context)

    async def create_initiative(self, data: s.InitiativeCreate | dict, context: Any = None) -> MutationResult:
        return await self.create_entity("initiative", data, context)

    async def update_initiative(self, external_id: str, data: s.InitiativeUpdate | dict, context: Any = None) -> MutationResult:
        return await self.update_entity("initiative", external_id, data, context)

    # ── Batch and sync ────────────────────────────────────────────────────

    async def insert_batch(
        self, batch: BatchPayload | dict, context: Any = None
    ) -> BatchInsertResult:
        await self._authorize(context, "insert_batch")
        async with self._session_factory() as db:
            return await batch_svc.insert_batch(db, batch)

    async def process_sync_queue(
        self,
        endpoint_url: str | None = None,
        api_key_prefix: str | None = None,
        signing_secret: str | None = None,
        batch_size: int | None = None,
        client: httpx.AsyncClient | None = None,
        context: Any = None,
    ) -> SyncSummary:
        await self._authorize(context, "process_sync_queue")
        async with self._session_factory() as db:
            return await processor.process_sync_queue(
                db,
                endpoint_url or self.settings.endpoint_url,
                api_key_prefix or self.settings.api_key_prefix,
                signing_secret or self.settings.signing_secret,
                batch_size=self.settings.sync_batch_size if batch_size is None else batch_size,
                client=client,
                timeout=self.settings.request_timeout_seconds,
            )

    async def get_pending_sync_items(self, limit: int = 50, context: Any = None):
        await self._authorize(context, "get_pending_sync_items")
        async with self._session_factory() as db:
            return await queue.get_pending_sync_items(db, limit=limit)

    async def get_queue_item(self, item_id: int, context: Any = None):
        await self._authorize(context, "get_queue_item")
        async with self._session_factory() as db:
            return await queue.get_queue_item(db, item_id)

    async def get_sync_log(
        self,
        external_id: str | None = None,
        entity_type: str | None = None,
        limit: int = 100,
        context: Any = None,
    ):
        await self._authorize(context, "get_sync_log")
        async with self._session_factory() as db:
            return await queue.get_sync_log(db, external_id=external_id, entity_type=entity_type, limit=limit)

    async def resubmit_failed(self, item_id: int, context: Any = None):
        await self._authorize(context, "resubmit_failed")
        async with self._session_factory() as db:
            return await queue.resubmit_failed(db, item_id)

    async def release_stuck_items(self, older_than_seconds: float = 900, context: Any = None) -> int:
        await self._authorize(context, "release_stuck_items")
        async with self._session_factory() as db:
            return await queue.release_stuck_items(db, older_than_seconds=older_than_seconds)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_entity(self, entity_type: str, external_id: str, context: Any = None):
        await self._authorize(context, f"get_{entity_svc.snake_case(entity_type)}")
        async with self._session_factory() as db:
            return await entity_svc.get_entity(db, entity_type, external_id)

    async def list_entities(self, entity_type: str, context: Any = None, **filters: Any) -> list:
        await self._authorize(context, f"list_{entity_svc.snake_case(entity_type)}")
        async with self._session_factory() as db:
            return await entity_svc.list_entities(db, entity_type, **filters)

    async def init_db(self) -> None:
        """Create any missing tables on the facade's own database."""
        from .models import Base

        async with self._session_factory() as db:
            conn = await db.connection()
            await conn.run_sync(Base.metadata.create_all)
            await db.commit()
