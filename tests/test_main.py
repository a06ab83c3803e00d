"""Tests for logging configuration and async main bootstrap."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest
import structlog

from conftest import FakeMetadataClient, FakeTrendStore, make_page
from moviefinder import main as main_module
from moviefinder.config import FinderSettings
from moviefinder.controllers.search import SearchController
from moviefinder.logging import configure_logging
from moviefinder.services.trending import AppwriteTrendStore


def test_configure_logging_outputs_json(capsys):
    configure_logging(environment="prod")
    logger = structlog.get_logger()
    logger.info("unit-test", foo="bar")
    record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert record["event"] == "unit-test"
    assert record["foo"] == "bar"
    assert record["level"] == "info"


def test_configure_logging_filters_below_settings_level(capsys):
    settings = FinderSettings(_env_file=None, environment="staging", log_level="WARNING")
    configure_logging(settings.log_level, environment=settings.environment)
    logger = structlog.get_logger()
    logger.info("quiet")
    logger.warning("loud")
    lines = capsys.readouterr().out.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["loud"]


def test_configure_logging_uses_console_renderer_in_dev(capsys):
    configure_logging("DEBUG", environment="dev")
    structlog.get_logger().debug("dev-event", foo="bar")
    out = capsys.readouterr().out
    assert "dev-event" in out
    assert not out.lstrip().startswith("{")


@pytest.mark.asyncio
async def test_create_controller_wires_appwrite_backend():
    settings = FinderSettings(
        _env_file=None,
        search={"debounce_ms": 120, "trending_limit": 3},
    )

    async with main_module.create_controller(settings) as controller:
        assert isinstance(controller, SearchController)
        assert isinstance(controller._trend_store, AppwriteTrendStore)
        assert controller._debouncer.delay == pytest.approx(0.12)
        assert controller._trending_limit == 3


@pytest.mark.asyncio
async def test_main_bootstrap_loads_initial_view(monkeypatch):
    settings = FinderSettings(_env_file=None)
    created: list[SearchController] = []

    @asynccontextmanager
    async def fake_create_controller(passed_settings):
        assert passed_settings is settings
        controller = SearchController(FakeMetadataClient(make_page(2)), FakeTrendStore())
        created.append(controller)
        try:
            yield controller
        finally:
            await controller.aclose()

    logged: list[SimpleNamespace] = []

    class _RecordingLogger:
        def info(self, event, **kwargs):
            logged.append(SimpleNamespace(event=event, **kwargs))

    monkeypatch.setattr(main_module, "get_settings", lambda: settings)
    monkeypatch.setattr(main_module, "create_controller", fake_create_controller)
    monkeypatch.setattr(main_module, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(main_module, "logger", _RecordingLogger())

    await main_module.main()

    assert len(created) == 1
    loaded = next(entry for entry in logged if entry.event == "initial_view_loaded")
    assert loaded.status == "success"
    assert loaded.movies == ["Movie 1", "Movie 2"]
    assert loaded.trending == []


@pytest.mark.asyncio
async def test_create_controller_disposes_database_when_schema_fails(monkeypatch):
    disposed: list[bool] = []

    class _Database:
        def __init__(self, settings):
            self.engine = object()

        async def session(self):
            raise AssertionError("session should not be opened")

        async def dispose(self):
            disposed.append(True)

    async def failing_create_schema(engine):
        raise RuntimeError("schema unavailable")

    monkeypatch.setattr(main_module, "Database", _Database)
    monkeypatch.setattr(main_module, "create_schema", failing_create_schema)
    settings = FinderSettings(_env_file=None, trending={"backend": "database"})

    with pytest.raises(RuntimeError, match="schema unavailable"):
        async with main_module.create_controller(settings):
            pass

    assert disposed == [True]
