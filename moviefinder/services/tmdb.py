"""Read-only client for the TMDB movie metadata API."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import SecretStr, ValidationError

from moviefinder.config import TMDBSettings
from moviefinder.domain.models import MovieListResponse
from moviefinder.logging import logger
from moviefinder.services.exceptions import MetadataHTTPError, MetadataServiceError

DISCOVER_SORT_ORDER = "popularity.desc"


class MovieMetadataClient:
    """Search and discover endpoints, bearer-token authenticated."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: TMDBSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or TMDBSettings()

    async def search_movies(self, query: str, *, page: int = 1) -> MovieListResponse:
        query = query.strip()
        if not query:
            raise MetadataServiceError("Search query must not be empty.")
        return await self._get_movie_list("/search/movie", {"query": query, "page": page})

    async def discover_movies(self, *, page: int = 1) -> MovieListResponse:
        return await self._get_movie_list(
            "/discover/movie", {"sort_by": DISCOVER_SORT_ORDER, "page": page}
        )

    def poster_url(self, poster_path: str | None) -> str | None:
        if not poster_path:
            return None
        return f"{self._settings.image_base_url.rstrip('/')}/{poster_path.lstrip('/')}"

    async def _get_movie_list(self, path: str, params: dict[str, Any]) -> MovieListResponse:
        url = f"{str(self._settings.base_url).rstrip('/')}{path}"
        request_kwargs: dict[str, Any] = {"params": params, "headers": self._headers()}
        if self._settings.request_timeout_seconds is not None:
            request_kwargs["timeout"] = self._settings.request_timeout_seconds

        try:
            response = await self._client.get(url, **request_kwargs)
        except httpx.RequestError as exc:
            raise MetadataServiceError(f"Failed to contact metadata API: {exc}") from exc

        if response.is_error:
            detail = response.text[:500]
            logger.warning(
                "metadata_request_rejected",
                path=path,
                status_code=response.status_code,
                detail=detail,
            )
            raise MetadataHTTPError(response.status_code, detail)

        try:
            payload = response.json()
        except ValueError as exc:
            raise MetadataServiceError("Metadata response is not valid JSON.") from exc
        if not isinstance(payload, dict):
            raise MetadataServiceError("Metadata response format is invalid.")

        try:
            return MovieListResponse.model_validate(payload)
        except ValidationError as exc:
            raise MetadataServiceError(f"Metadata response failed validation: {exc}") from exc

    def _headers(self) -> dict[str, str]:
        token = _read_secret(self._settings.api_token)
        if not token:
            raise MetadataServiceError("TMDB API token is not configured.")
        return {"accept": "application/json", "Authorization": f"Bearer {token}"}


def _read_secret(secret: SecretStr | str | None) -> str | None:
    if not secret:
        return None
    try:
        return secret.get_secret_value()
    except AttributeError:
        return str(secret)


__all__ = ["DISCOVER_SORT_ORDER", "MovieMetadataClient"]
