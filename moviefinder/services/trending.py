"""Trend counter store: search popularity keyed by search term."""

from __future__ import annotations

import json
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, Protocol

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from moviefinder.config import AppwriteSettings, FinderSettings
from moviefinder.db.models.core import SearchMetric
from moviefinder.domain.models import MovieSummary, TrendingEntry
from moviefinder.logging import logger
from moviefinder.services.exceptions import TrendStoreError
from moviefinder.utils.datetime import utc_now

PosterResolver = Callable[[str | None], str | None]
SessionProvider = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class TrendStore(Protocol):
    async def increment_count(self, search_term: str, movie: MovieSummary) -> None: ...

    async def list_top_entries(self, limit: int) -> list[TrendingEntry]: ...


def _no_poster(poster_path: str | None) -> str | None:
    return None


class AppwriteTrendStore:
    """Counter documents kept in a hosted Appwrite collection.

    Each document carries ``searchTerm``, ``count``, ``movie_id``, ``title``
    and ``poster_url``; the search term is the upsert key.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: AppwriteSettings,
        poster_resolver: PosterResolver | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings
        self._poster_resolver = poster_resolver or _no_poster

    async def increment_count(self, search_term: str, movie: MovieSummary) -> None:
        documents = await self._list_documents(
            [
                _query("equal", "searchTerm", [search_term]),
                _query("limit", values=[1]),
            ]
        )
        if documents:
            document = documents[0]
            count = int(document.get("count") or 0) + 1
            await self._request(
                "PATCH",
                f"{self._documents_url()}/{document['$id']}",
                json={"data": {"count": count}},
            )
            logger.info("trend_count_incremented", search_term=search_term, count=count)
            return

        await self._request(
            "POST",
            self._documents_url(),
            json={
                "documentId": "unique()",
                "data": {
                    "searchTerm": search_term,
                    "count": 1,
                    "movie_id": movie.id,
                    "title": movie.title,
                    "poster_url": self._poster_resolver(movie.poster_path),
                },
            },
        )
        logger.info("trend_record_created", search_term=search_term, movie_id=movie.id)

    async def list_top_entries(self, limit: int) -> list[TrendingEntry]:
        documents = await self._list_documents(
            [
                _query("orderDesc", "count"),
                _query("limit", values=[limit]),
            ]
        )
        entries = [self._to_entry(document) for document in documents]
        return entries[:limit]

    async def _list_documents(self, queries: list[str]) -> list[dict[str, Any]]:
        response = await self._request(
            "GET", self._documents_url(), params={"queries[]": queries}
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise TrendStoreError("Appwrite response is not valid JSON.") from exc
        documents = payload.get("documents") if isinstance(payload, dict) else None
        if not isinstance(documents, list):
            raise TrendStoreError("Appwrite response format is invalid.")
        return documents

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text[:500] if exc.response is not None else str(exc)
            status_code = exc.response.status_code if exc.response is not None else "unknown"
            raise TrendStoreError(f"Appwrite request failed ({status_code}): {detail}") from exc
        except httpx.RequestError as exc:
            raise TrendStoreError(f"Failed to contact Appwrite: {exc}") from exc
        return response

    def _documents_url(self) -> str:
        settings = self._settings
        if not settings.database_id or not settings.collection_id:
            raise TrendStoreError("Appwrite database/collection is not configured.")
        base = str(settings.endpoint).rstrip("/")
        return (
            f"{base}/databases/{settings.database_id}"
            f"/collections/{settings.collection_id}/documents"
        )

    def _headers(self) -> dict[str, str]:
        if not self._settings.project_id:
            raise TrendStoreError("Appwrite project is not configured.")
        headers = {
            "Content-Type": "application/json",
            "X-Appwrite-Project": self._settings.project_id,
        }
        if self._settings.api_key:
            headers["X-Appwrite-Key"] = self._settings.api_key.get_secret_value()
        return headers

    @staticmethod
    def _to_entry(document: dict[str, Any]) -> TrendingEntry:
        try:
            return TrendingEntry(
                search_term=str(document.get("searchTerm") or ""),
                external_id=int(document["movie_id"]),
                title=str(document.get("title") or ""),
                poster_url=document.get("poster_url") or None,
                search_count=int(document.get("count") or 0),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise TrendStoreError(f"Malformed trend document: {document.get('$id')}") from exc


class DatabaseTrendStore:
    """Counter rows in the ``search_metrics`` table."""

    def __init__(
        self,
        session_provider: SessionProvider,
        poster_resolver: PosterResolver | None = None,
    ) -> None:
        self._session_provider = session_provider
        self._poster_resolver = poster_resolver or _no_poster

    async def increment_count(self, search_term: str, movie: MovieSummary) -> None:
        try:
            async with self._session_provider() as session:
                stmt = (
                    select(SearchMetric)
                    .where(SearchMetric.search_term == search_term)
                    .with_for_update()
                )
                result = await session.execute(stmt)
                metric = result.scalar_one_or_none()
                if metric is None:
                    metric = SearchMetric(
                        search_term=search_term,
                        count=0,
                        movie_id=movie.id,
                        title=movie.title,
                        poster_url=self._poster_resolver(movie.poster_path),
                    )
                    session.add(metric)
                metric.count += 1
                metric.updated_at = utc_now()
                await session.flush()
                await session.commit()
                logger.info("trend_count_incremented", search_term=search_term, count=metric.count)
        except SQLAlchemyError as exc:
            raise TrendStoreError(f"Failed to record search '{search_term}': {exc}") from exc

    async def list_top_entries(self, limit: int) -> list[TrendingEntry]:
        try:
            async with self._session_provider() as session:
                stmt = (
                    select(SearchMetric)
                    .order_by(SearchMetric.count.desc(), SearchMetric.updated_at.desc())
                    .limit(limit)
                )
                result = await session.execute(stmt)
                metrics = result.scalars().all()
        except SQLAlchemyError as exc:
            raise TrendStoreError(f"Failed to load trending searches: {exc}") from exc
        return [
            TrendingEntry(
                search_term=metric.search_term,
                external_id=metric.movie_id,
                title=metric.title,
                poster_url=metric.poster_url,
                search_count=metric.count,
            )
            for metric in metrics
        ]


def _query(method: str, attribute: str | None = None, values: list[Any] | None = None) -> str:
    payload: dict[str, Any] = {"method": method}
    if attribute is not None:
        payload["attribute"] = attribute
    if values is not None:
        payload["values"] = values
    return json.dumps(payload, ensure_ascii=False)


def build_trend_store(
    settings: FinderSettings,
    http_client: httpx.AsyncClient,
    *,
    session_provider: SessionProvider | None = None,
    poster_resolver: PosterResolver | None = None,
) -> TrendStore:
    """Select the configured trend store backend."""

    if settings.trending.backend == "database":
        if session_provider is None:
            raise TrendStoreError("Database trend store requires a session provider.")
        return DatabaseTrendStore(session_provider, poster_resolver=poster_resolver)
    return AppwriteTrendStore(
        http_client, settings.trending.appwrite, poster_resolver=poster_resolver
    )


__all__ = [
    "AppwriteTrendStore",
    "DatabaseTrendStore",
    "TrendStore",
    "build_trend_store",
]
