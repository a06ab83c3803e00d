"""Application entrypoint."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from moviefinder.config import FinderSettings, get_settings
from moviefinder.controllers.search import SearchController
from moviefinder.db.base import create_schema
from moviefinder.db.session import Database
from moviefinder.i18n import I18nService
from moviefinder.logging import configure_logging, logger
from moviefinder.services.tmdb import MovieMetadataClient
from moviefinder.services.trending import build_trend_store
from moviefinder.views.cards import build_movie_cards, build_trending_cards


@asynccontextmanager
async def create_controller(
    settings: FinderSettings | None = None,
) -> AsyncIterator[SearchController]:
    """Wire HTTP client, metadata client, trend store and controller."""

    settings = settings or get_settings()
    database: Database | None = None
    async with httpx.AsyncClient() as http_client:
        metadata_client = MovieMetadataClient(http_client, settings.tmdb)
        session_provider = None
        controller: SearchController | None = None
        try:
            if settings.trending.backend == "database":
                database = Database(settings=settings)
                await create_schema(database.engine)
                session_provider = database.session
            trend_store = build_trend_store(
                settings,
                http_client,
                session_provider=session_provider,
                poster_resolver=metadata_client.poster_url,
            )
            controller = SearchController(
                metadata_client,
                trend_store,
                debounce_seconds=settings.search.debounce_seconds,
                trending_limit=settings.search.trending_limit,
                i18n=I18nService(default_locale=settings.default_language),
            )
            yield controller
        finally:
            if controller is not None:
                await controller.aclose()
            if database is not None:
                await database.dispose()


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, environment=settings.environment)
    logger.info(
        "moviefinder_starting",
        environment=settings.environment,
        trend_backend=settings.trending.backend,
    )

    async with create_controller(settings) as controller:
        await controller.load_initial()
        await controller.wait_idle()
        state = controller.state

    i18n = I18nService(default_locale=settings.default_language)
    movie_cards = build_movie_cards(
        state.movies,
        image_base_url=settings.tmdb.image_base_url,
        placeholder_poster=settings.tmdb.placeholder_poster,
        not_available=i18n.gettext("cards.not_available"),
    )
    trending_cards = build_trending_cards(
        state.trending, placeholder_poster=settings.tmdb.placeholder_poster
    )
    logger.info(
        "initial_view_loaded",
        status=state.status.phase.value,
        error=state.status.message,
        movies=[card.title for card in movie_cards],
        trending=[f"{card.rank}. {card.title}" for card in trending_cards],
    )


if __name__ == "__main__":
    asyncio.run(main())
