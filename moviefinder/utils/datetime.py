"""Date helpers for timestamps and TMDB release dates."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time with tzinfo."""

    return datetime.now(timezone.utc)


def release_year(release_date: str | None) -> str | None:
    """Extract the year from a ``YYYY-MM-DD`` release date."""

    if not release_date:
        return None
    year = release_date.split("-", 1)[0].strip()
    return year if len(year) == 4 and year.isdigit() else None


__all__ = ["release_year", "utc_now"]
