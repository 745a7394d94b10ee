"""Facade authorization and settings fallback."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from okrhub.api import OKRHub
from okrhub.config import OKRHubSettings
from okrhub.errors import AuthorizationError, NotConfiguredError, ValidationError
from okrhub.models import Company, SyncQueueItem


async def _count(session_factory, model) -> int:
    async with session_factory() as db:
        return (await db.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_sync_authorize_rejection_has_no_side_effects(session_factory, hub_settings):
    calls = []

    def authorize(context, operation):
        calls.append((context, operation))
        raise PermissionError("read-only user")

    hub = OKRHub(session_factory=session_factory, settings=hub_settings, authorize=authorize)

    with pytest.raises(AuthorizationError, match="read-only user"):
        await hub.create_company({"name": "Acme"}, context={"user": "u1"})

    assert calls == [({"user": "u1"}, "create_company")]
    assert await _count(session_factory, Company) == 0
    assert await _count(session_factory, SyncQueueItem) == 0


@pytest.mark.asyncio
async def test_async_authorize_is_awaited(session_factory, hub_settings):
    seen = []

    async def authorize(context, operation):
        seen.append(operation)

    hub = OKRHub(session_factory=session_factory, settings=hub_settings, authorize=authorize)
    result = await hub.create_company({"name": "Acme"})
    await hub.get_pending_sync_items(limit=5)

    assert result.success
    assert seen == ["create_company", "get_pending_sync_items"]


@pytest.mark.asyncio
async def test_authorize_returning_false_rejects(session_factory, hub_settings):
    hub = OKRHub(
        session_factory=session_factory,
        settings=hub_settings,
        authorize=lambda context, operation: operation != "process_sync_queue",
    )
    with pytest.raises(AuthorizationError):
        await hub.process_sync_queue()


@pytest.mark.asyncio
async def test_authorization_error_propagates_unchanged(session_factory, hub_settings):
    error = AuthorizationError("nope")

    def authorize(context, operation):
        raise error

    hub = OKRHub(session_factory=session_factory, settings=hub_settings, authorize=authorize)
    with pytest.raises(AuthorizationError) as exc_info:
        await hub.insert_batch({})
    assert exc_info.value is error


@pytest.mark.asyncio
async def test_process_without_configuration(session_factory):
    bare = OKRHubSettings(_env_file=None, source_app="testapp", endpoint_url="", api_key_prefix="", signing_secret="")
    hub = OKRHub(session_factory=session_factory, settings=bare)
    await hub.create_company({"name": "Acme"})

    with pytest.raises(NotConfiguredError):
        await hub.process_sync_queue()
    assert len(await hub.get_pending_sync_items()) == 1


@pytest.mark.asyncio
async def test_process_uses_settings_secrets(hub, linkhub):
    await hub.create_company({"name": "Acme"})

    async with linkhub.client() as http:
        summary = await hub.process_sync_queue(client=http)

    assert summary.succeeded == 1
    (log_entry,) = await hub.get_sync_log()
    assert log_entry.entity_type == "company"


@pytest.mark.asyncio
async def test_explicit_batch_size_is_not_replaced_by_settings(hub, linkhub):
    await hub.create_company({"name": "Acme"})

    async with linkhub.client() as http:
        with pytest.raises(ValidationError):
            await hub.process_sync_queue(batch_size=0, client=http)
        with pytest.raises(ValidationError):
            await hub.process_sync_queue(batch_size=-1, client=http)

    assert linkhub.requests == []
    assert len(await hub.get_pending_sync_items()) == 1


@pytest.mark.asyncio
async def test_typed_methods_cover_every_entity(hub, hierarchy):
    kr = await hub.create_key_result(
        {
            "objective_external_id": hierarchy["objective"],
            "indicator_external_id": hierarchy["indicator"],
            "team_external_id": hierarchy["team"],
        }
    )
    risk = await hub.create_risk(
        {
            "description": "Churn",
            "team_external_id": hierarchy["team"],
            "key_result_external_id": kr.external_id,
            "priority": "high",
        }
    )
    initiative = await hub.create_initiative(
        {
            "description": "Win-back campaign",
            "team_external_id": hierarchy["team"],
            "risk_external_id": risk.external_id,
            "assignee_external_id": hierarchy["user"],
            "created_by_external_id": hierarchy["user"],
            "priority": "medium",
        }
    )
    milestone = await hub.create_milestone(
        {"indicator_external_id": hierarchy["indicator"], "description": "10k", "value": 10000}
    )
    value = await hub.create_indicator_value(
        {"indicator_external_id": hierarchy["indicator"], "value": 5, "date": 1700000000000}
    )
    forecast = await hub.create_indicator_forecast(
        {"indicator_external_id": hierarchy["indicator"], "value": 7, "date": 1700000000000}
    )

    for result in (kr, risk, initiative, milestone, value, forecast):
        assert result.success, result.error
    assert value.external_id != forecast.external_id

    updated = await hub.update_initiative(initiative.external_id, {"status": "FINISHED"})
    assert updated.success
    row = await hub.get_entity("initiative", initiative.external_id)
    assert row.status == "FINISHED"
    assert len(await hub.list_entities("milestone")) == 1


@pytest.mark.asyncio
async def test_resubmit_and_release_through_facade(hub, linkhub):
    created = await hub.create_company({"name": "Acme"})
    linkhub.status_code = 500
    async with linkhub.client() as http:
        await hub.process_sync_queue(client=http)

    assert await hub.get_sync_log() == []
    failed = await hub.get_queue_item(created.queue_id)
    assert failed.status == "failed"
    assert failed.error_message.startswith("Transport error: HTTP 500")

    fresh = await hub.resubmit_failed(failed.id)
    assert fresh.status == "pending"
    assert await hub.release_stuck_items(older_than_seconds=0) == 0
