"""CLI commands against a throwaway SQLite file."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from typer.testing import CliRunner

from okrhub import cli
from okrhub.api import OKRHub
from okrhub.config import OKRHubSettings

runner = CliRunner()


@pytest.fixture
def cli_hub(tmp_path, monkeypatch: pytest.MonkeyPatch):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}", poolclass=NullPool)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    hub_settings = OKRHubSettings(
        _env_file=None, source_app="testapp", endpoint_url="", api_key_prefix="", signing_secret=""
    )
    hub = OKRHub(session_factory=factory, settings=hub_settings)
    monkeypatch.setattr(cli, "_hub", lambda: hub)
    result = runner.invoke(cli.app, ["init-db"])
    assert result.exit_code == 0, result.output
    return hub


def test_init_db(cli_hub):
    result = runner.invoke(cli.app, ["init-db"])
    assert result.exit_code == 0
    assert "Database initialized" in result.output


def test_pending_empty(cli_hub):
    result = runner.invoke(cli.app, ["pending"])
    assert result.exit_code == 0
    assert "Pending (0)" in result.output


def test_pending_json(cli_hub):
    result = runner.invoke(cli.app, ["pending", "--json"])
    assert result.exit_code == 0
    assert result.output.strip() == "[]"


def test_process_requires_configuration(cli_hub):
    result = runner.invoke(cli.app, ["process"])
    assert result.exit_code == 1
    assert "not configured" in result.output


def test_resubmit_unknown_entry(cli_hub):
    result = runner.invoke(cli.app, ["resubmit", "42"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_release_stuck_with_nothing_stuck(cli_hub):
    result = runner.invoke(cli.app, ["release-stuck"])
    assert result.exit_code == 0
    assert "No stuck entries" in result.output


def test_log_empty(cli_hub):
    result = runner.invoke(cli.app, ["log"])
    assert result.exit_code == 0
    assert "Sync log (0)" in result.output
