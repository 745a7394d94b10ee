"""Async test fixtures for OKRHub tests using SQLite and a LinkHub stub."""

from __future__ import annotations

import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from okrhub.api import OKRHub
from okrhub.config import OKRHubSettings
from okrhub.database import get_db
from okrhub.external_id import generate_external_id
from okrhub.models import Base
from okrhub.signing import HEADER_SIGNATURE, verify_signature

SOURCE_APP = "testapp"
ENDPOINT_URL = "https://linkhub.test"
API_KEY_PREFIX = "lh_test"
SIGNING_SECRET = "test-signing-secret"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def hub_settings():
    return OKRHubSettings(
        _env_file=None,
        source_app=SOURCE_APP,
        endpoint_url=ENDPOINT_URL,
        api_key_prefix=API_KEY_PREFIX,
        signing_secret=SIGNING_SECRET,
    )


@pytest_asyncio.fixture
async def hub(session_factory, hub_settings):
    return OKRHub(session_factory=session_factory, settings=hub_settings)


@pytest_asyncio.fixture
async def client(engine):
    """HTTPX async test client against the OKRHub app."""
    from okrhub.app import app

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


class LinkHubStub:
    """In-process stand-in for LinkHub's batch ingest endpoint.

    Verifies the request signature, records every batch and answers with one
    result per item. ``reject`` maps external ids to per-item errors and
    ``omit`` drops ids from the response entirely. ``raw_body`` replaces the
    whole 200 response body.
    """

    def __init__(self, signing_secret: str = SIGNING_SECRET) -> None:
        self.signing_secret = signing_secret
        self.requests: list[httpx.Request] = []
        self.batches: list[dict] = []
        self.reject: dict[str, str] = {}
        self.omit: set[str] = set()
        self.status_code = 200
        self.errors: list[str] = []
        self.raise_exc: Exception | None = None
        self.raw_body: str | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.raise_exc is not None:
            raise self.raise_exc
        self.requests.append(request)
        body = request.content
        if not verify_signature(body, request.headers.get(HEADER_SIGNATURE, ""), self.signing_secret):
            return httpx.Response(401, json={"error": "invalid signature"})
        if self.status_code >= 400:
            return httpx.Response(self.status_code, text="upstream unavailable")
        if self.raw_body is not None:
            return httpx.Response(200, text=self.raw_body)

        batch = json.loads(body)
        self.batches.append(batch)
        results = []
        for key, items in batch.items():
            for item in items:
                external_id = item["externalId"]
                if external_id in self.omit:
                    continue
                if external_id in self.reject:
                    results.append(
                        {"entityType": key, "externalId": external_id, "error": self.reject[external_id]}
                    )
                    continue
                results.append(
                    {
                        "entityType": key,
                        "externalId": external_id,
                        "linkHubId": f"lh-{len(results) + 1}",
                        "action": "create",
                    }
                )
        success = not self.reject and not self.omit
        return httpx.Response(200, json={"success": success, "results": results, "errors": self.errors})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def linkhub():
    return LinkHubStub()


@pytest_asyncio.fixture
async def hierarchy(hub):
    """Company, team, indicator and objective created through the facade."""
    company = await hub.create_company({"name": "Acme"})
    team = await hub.create_team({"company_external_id": company.external_id, "name": "Growth"})
    user = await hub.create_user({"email": "owner@acme.test", "name": "Ada"})
    indicator = await hub.create_indicator(
        {
            "company_external_id": company.external_id,
            "description": "Monthly recurring revenue",
            "symbol": "$",
            "periodicity": "monthly",
        }
    )
    objective = await hub.create_objective(
        {
            "title": "Grow revenue",
            "description": "Double MRR this year",
            "team_external_id": team.external_id,
        }
    )
    return {
        "company": company.external_id,
        "team": team.external_id,
        "user": user.external_id,
        "indicator": indicator.external_id,
        "objective": objective.external_id,
    }


def new_id(entity_type: str) -> str:
    return generate_external_id(SOURCE_APP, entity_type)
