"""Pydantic models and view state shared across service/controller layers."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MovieSummary(BaseModel):
    """One entry of a TMDB movie list, reduced to what the views need."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int
    title: str = ""
    poster_path: str | None = None
    release_date: str | None = None
    rating: float | None = Field(default=None, alias="vote_average")
    language: str | None = Field(default=None, alias="original_language")

    @field_validator("poster_path", "release_date", "language", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class MovieListResponse(BaseModel):
    """Body of the search/discover endpoints.

    ``response``/``Error`` are the failure indicator and message some
    proxies of the metadata API return with a 2xx status.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    page: int = 1
    results: list[MovieSummary] = Field(default_factory=list)
    total_pages: int | None = None
    total_results: int | None = None
    response: Any = None
    error_message: str | None = Field(default=None, alias="Error")

    @field_validator("results", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or []

    @property
    def failed(self) -> bool:
        return str(self.response).lower() == "false"


class TrendingEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_term: str
    external_id: int
    title: str = ""
    poster_url: str | None = None
    search_count: int = 0


class RequestPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class ErrorKind(str, Enum):
    FETCH_FAILED = "fetch_failed"
    PROVIDER_REJECTED = "provider_rejected"


@dataclass(frozen=True, slots=True)
class RequestStatus:
    phase: RequestPhase = RequestPhase.IDLE
    message: str | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def idle(cls) -> RequestStatus:
        return cls(RequestPhase.IDLE)

    @classmethod
    def loading(cls) -> RequestStatus:
        return cls(RequestPhase.LOADING)

    @classmethod
    def success(cls) -> RequestStatus:
        return cls(RequestPhase.SUCCESS)

    @classmethod
    def error(cls, kind: ErrorKind, message: str) -> RequestStatus:
        return cls(RequestPhase.ERROR, message=message, error_kind=kind)

    @property
    def is_loading(self) -> bool:
        return self.phase is RequestPhase.LOADING


@dataclass(slots=True)
class ViewState:
    query: str = ""
    debounced_query: str = ""
    movies: list[MovieSummary] = field(default_factory=list)
    trending: list[TrendingEntry] = field(default_factory=list)
    status: RequestStatus = field(default_factory=RequestStatus.idle)
    generation: int = 0

    def snapshot(self) -> ViewState:
        return replace(self, movies=list(self.movies), trending=list(self.trending))


__all__ = [
    "ErrorKind",
    "MovieListResponse",
    "MovieSummary",
    "RequestPhase",
    "RequestStatus",
    "TrendingEntry",
    "ViewState",
]
