"""Health and queue inspection routes."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from .. import __version__
from ..database import get_db
from ..schemas.sync import QueueItemRead
from ..security import require_routes_api_key
from ..sync.queue import get_pending_sync_items


def build_router(prefix: str = "/okrhub") -> APIRouter:
    router = APIRouter(prefix=prefix.rstrip("/"), tags=["okrhub"])

    @router.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "version": __version__,
            "timestamp": int(datetime.now(timezone.utc).timestamp() * 1000),
        }

    @router.get(
        "/queue/pending",
        response_model=list[QueueItemRead],
        dependencies=[Depends(require_routes_api_key)],
    )
    async def pending_queue(
        limit: int = Query(50, ge=1, le=500),
        db: AsyncSession = Depends(get_db),
    ):
        return await get_pending_sync_items(db, limit=limit)

    return router
