"""Background worker that drains the sync queue on an interval."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .config import settings
from .database import async_session_factory
from .sync.processor import process_sync_queue

logger = logging.getLogger(__name__)


class SyncWorker:
    """Runs one processor pass per tick while the app is up."""

    def __init__(self) -> None:
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None or not settings.auto_sync_enabled:
            return
        if not settings.sync_configured:
            logger.warning("Auto sync enabled but LinkHub connection is not configured; worker not started")
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name="okrhub-sync-worker")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

    async def run_once(self) -> int:
        async with async_session_factory() as db:
            summary = await process_sync_queue(
                db,
                settings.endpoint_url,
                settings.api_key_prefix,
                settings.signing_secret,
                batch_size=settings.sync_batch_size,
                timeout=settings.request_timeout_seconds,
            )
        return summary.processed

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            processed = 0
            try:
                processed = await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Sync worker loop failed")

            # A full batch means more may be waiting.
            if processed < settings.sync_batch_size:
                await asyncio.sleep(settings.sync_interval_seconds)


sync_worker = SyncWorker()
