"""Shared pytest fixtures for database-backed and controller tests."""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from moviefinder.db.base import Base
from moviefinder.db.models import core  # noqa: F401
from moviefinder.domain.models import MovieListResponse, MovieSummary, TrendingEntry


class _AsyncSessionWrapper:
    def __init__(self, sync_session) -> None:
        self._sync = sync_session
        self.commits = 0

    async def execute(self, *args, **kwargs):
        return self._sync.execute(*args, **kwargs)

    async def get(self, *args, **kwargs):
        return self._sync.get(*args, **kwargs)

    def add(self, obj) -> None:
        self._sync.add(obj)

    async def flush(self) -> None:
        self._sync.flush()

    async def commit(self) -> None:
        self.commits += 1
        self._sync.commit()

    async def rollback(self) -> None:
        self._sync.rollback()

    async def close(self) -> None:
        self._sync.close()


@pytest_asyncio.fixture
async def session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sync_session = SessionLocal()
    try:
        yield _AsyncSessionWrapper(sync_session)
    finally:
        sync_session.close()
        engine.dispose()


@pytest.fixture
def session_provider(session):
    @asynccontextmanager
    async def _provider():
        yield session

    return _provider


def make_movie(movie_id: int, title: str | None = None, **extra) -> MovieSummary:
    return MovieSummary(id=movie_id, title=title or f"Movie {movie_id}", **extra)


def make_page(count: int, *, prefix: str = "Movie") -> MovieListResponse:
    return MovieListResponse(
        results=[make_movie(idx, f"{prefix} {idx}") for idx in range(1, count + 1)]
    )


class FakeMetadataClient:
    """Records calls; each call returns the queued outcome (page or exception)."""

    def __init__(self, default: MovieListResponse | Exception | None = None) -> None:
        self.default = default if default is not None else make_page(0)
        self.outcomes: dict[str, MovieListResponse | Exception] = {}
        self.calls: list[tuple[str, str]] = []

    async def search_movies(self, query: str) -> MovieListResponse:
        self.calls.append(("search", query))
        return self._resolve(query)

    async def discover_movies(self) -> MovieListResponse:
        self.calls.append(("discover", ""))
        return self._resolve("")

    def _resolve(self, key: str) -> MovieListResponse:
        outcome = self.outcomes.get(key, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeTrendStore:
    def __init__(self, entries: list[TrendingEntry] | None = None) -> None:
        self.entries = list(entries or [])
        self.increments: list[tuple[str, int]] = []
        self.list_calls = 0
        self.fail_increment = False
        self.fail_list = False

    async def increment_count(self, search_term: str, movie: MovieSummary) -> None:
        if self.fail_increment:
            raise RuntimeError("store offline")
        self.increments.append((search_term, movie.id))

    async def list_top_entries(self, limit: int) -> list[TrendingEntry]:
        self.list_calls += 1
        if self.fail_list:
            raise RuntimeError("store offline")
        return self.entries[:limit]
