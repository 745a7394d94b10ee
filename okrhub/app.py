"""FastAPI application for the OKRHub sync service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .routers.sync import build_router
from .worker import sync_worker


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Auto-create tables for SQLite (local dev)
    if "sqlite" in settings.database_url:
        from .database import create_tables

        await create_tables()
    sync_worker.start()
    yield
    await sync_worker.stop()


app = FastAPI(title=settings.app_title, lifespan=lifespan)
app.include_router(build_router(settings.path_prefix))
