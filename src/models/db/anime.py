"""Anime catalog models."""

from __future__ import annotations

import datetime as dt
from enum import StrEnum

from sqlalchemy import (
    Boolean,
    Date,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.db.base import Base, TimestampMixin, UTCDateTime

__all__ = ["Anime", "AnimeSite", "ReleaseSeason"]


class ReleaseSeason(StrEnum):
    """Broadcast season of an anime's premiere."""

    WINTER = "WINTER"
    SPRING = "SPRING"
    SUMMER = "SUMMER"
    FALL = "FALL"

    @classmethod
    def from_month(cls, month: int) -> ReleaseSeason:
        """Return the season a calendar month falls into."""
        if month in (12, 1, 2):
            return cls.WINTER
        if month in (3, 4, 5):
            return cls.SPRING
        if month in (6, 7, 8):
            return cls.SUMMER
        return cls.FALL


class Anime(TimestampMixin, Base):
    """A media title in the catalog."""

    __tablename__ = "anime"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    original_name: Mapped[str | None] = mapped_column(String, nullable=True)
    bdrip: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    nsfw: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    platform: Mapped[str | None] = mapped_column(String, nullable=True)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    release_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    release_season: Mapped[ReleaseSeason | None] = mapped_column(
        Enum(ReleaseSeason, native_enum=False, length=16), nullable=True
    )
    region: Mapped[str | None] = mapped_column(String, nullable=True)

    # Refreshed from external sites
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    episodes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)

    sites: Mapped[list[AnimeSite]] = relationship(
        back_populates="anime",
        cascade="all, delete-orphan",
        order_by="AnimeSite.id",
    )

    def __repr__(self) -> str:
        return f"<Anime:{self.id}:{self.name!r}>"


class AnimeSite(Base):
    """Link between an anime and its record on an external metadata site.

    ``(site_id, site_type)`` is unique across the table, so every external
    record is owned by exactly one anime. A null ``last_update`` means the
    link has never been refreshed.
    """

    __tablename__ = "anime_site"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    site_id: Mapped[str] = mapped_column(String, nullable=False)
    site_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    last_update: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime, nullable=True, index=True
    )

    anime_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("anime.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    anime: Mapped[Anime] = relationship(back_populates="sites")

    __table_args__ = (UniqueConstraint("site_id", "site_type"),)

    def key(self) -> tuple[str, str]:
        """Return the natural key of the link."""
        return (self.site_type, self.site_id)

    def __repr__(self) -> str:
        return f"<AnimeSite:{self.site_type}:{self.site_id}>"
