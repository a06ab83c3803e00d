"""Declarative base and schema bootstrap for the trend counter tables."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """Declarative base with default table naming."""

    @declared_attr.directive
    def __tablename__(cls) -> str:  # noqa: N805
        return cls.__name__.lower()

    id: Mapped[int] = mapped_column(primary_key=True)


async def create_schema(engine: AsyncEngine) -> None:
    """Create missing tables; existing ones are left untouched."""

    # Registers the mapped tables on Base.metadata.
    from moviefinder.db.models import core  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = ["Base", "create_schema"]
