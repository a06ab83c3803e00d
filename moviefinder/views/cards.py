"""Render-ready card data for result and trending lists."""

from __future__ import annotations

from dataclasses import dataclass

from moviefinder.domain.models import MovieSummary, TrendingEntry
from moviefinder.utils.datetime import release_year

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True, slots=True)
class MovieCard:
    movie_id: int
    title: str
    poster_url: str
    rating: str
    year: str
    language: str

    @classmethod
    def from_summary(
        cls,
        movie: MovieSummary,
        *,
        image_base_url: str,
        placeholder_poster: str,
        not_available: str = NOT_AVAILABLE,
    ) -> MovieCard:
        if movie.poster_path:
            poster_url = f"{image_base_url.rstrip('/')}/{movie.poster_path.lstrip('/')}"
        else:
            poster_url = placeholder_poster
        # TMDB reports unrated titles as 0.
        rating = f"{movie.rating:.1f}" if movie.rating else not_available
        return cls(
            movie_id=movie.id,
            title=movie.title,
            poster_url=poster_url,
            rating=rating,
            year=release_year(movie.release_date) or not_available,
            language=movie.language or not_available,
        )

    @property
    def subtitle(self) -> str:
        return f"{self.rating} • {self.language} • {self.year}"


@dataclass(frozen=True, slots=True)
class TrendingCard:
    rank: int
    title: str
    poster_url: str
    search_term: str

    @classmethod
    def from_entry(cls, entry: TrendingEntry, rank: int, *, placeholder_poster: str) -> TrendingCard:
        return cls(
            rank=rank,
            title=entry.title or entry.search_term,
            poster_url=entry.poster_url or placeholder_poster,
            search_term=entry.search_term,
        )


def build_movie_cards(
    movies: list[MovieSummary],
    *,
    image_base_url: str,
    placeholder_poster: str,
    not_available: str = NOT_AVAILABLE,
) -> list[MovieCard]:
    return [
        MovieCard.from_summary(
            movie,
            image_base_url=image_base_url,
            placeholder_poster=placeholder_poster,
            not_available=not_available,
        )
        for movie in movies
    ]


def build_trending_cards(
    entries: list[TrendingEntry], *, placeholder_poster: str
) -> list[TrendingCard]:
    return [
        TrendingCard.from_entry(entry, rank, placeholder_poster=placeholder_poster)
        for rank, entry in enumerate(entries, start=1)
    ]


__all__ = [
    "MovieCard",
    "NOT_AVAILABLE",
    "TrendingCard",
    "build_movie_cards",
    "build_trending_cards",
]
