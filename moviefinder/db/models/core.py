"""SQLAlchemy models for the self-hosted trend counter store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from moviefinder.db.base import Base
from moviefinder.utils.datetime import utc_now


class SearchMetric(Base):
    __tablename__ = "search_metrics"
    __table_args__ = (UniqueConstraint("search_term", name="uq_search_metrics_search_term"),)

    search_term: Mapped[str] = mapped_column(String(255), nullable=False)
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    movie_id: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    poster_url: Mapped[str | None] = mapped_column(String(512))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )


__all__ = ["SearchMetric"]
