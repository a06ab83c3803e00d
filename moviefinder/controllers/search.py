"""Search-driven list controller: debounced query -> fetch -> view state."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Coroutine, Protocol

from moviefinder.domain.models import (
    ErrorKind,
    MovieListResponse,
    MovieSummary,
    RequestStatus,
    ViewState,
)
from moviefinder.i18n import I18nService
from moviefinder.logging import logger
from moviefinder.services.exceptions import MetadataServiceError
from moviefinder.services.trending import TrendStore
from moviefinder.utils.debounce import Debouncer

DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_TRENDING_LIMIT = 5

StateListener = Callable[[ViewState], None]


class MetadataClient(Protocol):
    async def search_movies(self, query: str) -> MovieListResponse: ...

    async def discover_movies(self) -> MovieListResponse: ...


class SearchController:
    """Owns the view state and is the only writer of it.

    Query changes are debounced; each settled value refreshes the trending
    list and fetches a new result list. Every fetch is tagged with a
    generation number and only the latest generation may write results, so
    a slow response can never overwrite a newer one.
    """

    def __init__(
        self,
        metadata_client: MetadataClient,
        trend_store: TrendStore,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        trending_limit: int = DEFAULT_TRENDING_LIMIT,
        i18n: I18nService | None = None,
        locale: str | None = None,
    ) -> None:
        self._metadata = metadata_client
        self._trend_store = trend_store
        self._trending_limit = trending_limit
        self._i18n = i18n or I18nService()
        self._locale = locale
        self._state = ViewState()
        self._debouncer: Debouncer[str] = Debouncer(debounce_seconds, self._on_query_settled)
        self._listeners: list[StateListener] = []
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> ViewState:
        return self._state.snapshot()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a render hook; returns a callable that removes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def on_query_change(self, text: str) -> None:
        self._state.query = text
        self._debouncer.trigger(text)
        self._notify()

    async def load_initial(self) -> None:
        """Show the current query's view immediately, skipping the debounce."""

        self._debouncer.cancel()
        await self._settle(self._state.query)

    async def fetch(self, query: str) -> None:
        term = query.strip()
        self._state.generation += 1
        generation = self._state.generation
        self._set_status(RequestStatus.loading())
        try:
            if term:
                page = await self._metadata.search_movies(term)
            else:
                page = await self._metadata.discover_movies()
        except MetadataServiceError as exc:
            logger.error(
                "movies_fetch_failed",
                query=term,
                generation=generation,
                status_code=getattr(exc, "status_code", None),
                error=str(exc),
            )
            self._apply_failure(generation, ErrorKind.FETCH_FAILED)
        except Exception:
            logger.exception("movies_fetch_crashed", query=term, generation=generation)
            self._apply_failure(generation, ErrorKind.FETCH_FAILED)
        else:
            self._apply_page(generation, term, page)
        finally:
            if generation == self._state.generation and self._state.status.is_loading:
                self._set_status(RequestStatus.idle())

    async def refresh_trending(self) -> None:
        try:
            entries = await self._trend_store.list_top_entries(self._trending_limit)
        except Exception as exc:
            logger.warning("trending_refresh_failed", error=str(exc))
            return
        self._state.trending = list(entries)[: self._trending_limit]
        self._notify()

    async def wait_idle(self) -> None:
        """Wait until no debounce timer is armed and no background work runs."""

        while self._debouncer.pending or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(self._debouncer.delay)

    async def aclose(self) -> None:
        self._debouncer.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._listeners.clear()

    def _on_query_settled(self, query: str) -> None:
        self._spawn(self._settle(query), name="settle")

    async def _settle(self, query: str) -> None:
        self._state.debounced_query = query
        self._notify()
        self._spawn(self.refresh_trending(), name="trending_refresh")
        await self.fetch(query)

    def _apply_page(self, generation: int, term: str, page: MovieListResponse) -> None:
        if self._is_stale(generation, term):
            return
        if page.failed:
            logger.warning("movies_fetch_rejected", query=term, error=page.error_message)
            self._apply_failure(generation, ErrorKind.PROVIDER_REJECTED, page.error_message)
            return

        results = list(page.results)
        self._state.movies = results
        self._set_status(RequestStatus.success())
        if term and results:
            self._spawn(self._record_search(term, results[0]), name="trend_increment")

    def _apply_failure(
        self, generation: int, kind: ErrorKind, message: str | None = None
    ) -> None:
        if self._is_stale(generation):
            return
        self._state.movies = []
        self._set_status(RequestStatus.error(kind, message or self._message(kind)))

    async def _record_search(self, term: str, movie: MovieSummary) -> None:
        try:
            await self._trend_store.increment_count(term, movie)
        except Exception:
            logger.warning("trend_increment_failed", query=term, movie_id=movie.id, exc_info=True)

    def _is_stale(self, generation: int, term: str | None = None) -> bool:
        if generation == self._state.generation:
            return False
        logger.info(
            "stale_response_discarded",
            query=term,
            generation=generation,
            latest_generation=self._state.generation,
        )
        return True

    def _message(self, kind: ErrorKind) -> str:
        return self._i18n.gettext(f"search.{kind.value}", locale=self._locale)

    def _set_status(self, status: RequestStatus) -> None:
        self._state.status = status
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self._state.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("state_listener_failed")

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> None:
        task = asyncio.create_task(coro, name=f"moviefinder:{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


__all__ = ["MetadataClient", "SearchController", "StateListener"]
