"""Anime payload schemas shared by the reconciler and the site updaters."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.config.settings import SiteType
from src.models.db.anime import ReleaseSeason

__all__ = ["AnimeInfo", "AnimePayload", "SiteLinkPayload"]


class SiteLinkPayload(BaseModel):
    """Proposed link between a new anime and an external site record."""

    site_id: str
    site_type: str

    @field_validator("site_id", mode="before")
    @classmethod
    def _coerce_site_id(cls, value: object) -> object:
        # Scrapers commonly hand over numeric subject ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("site_type", mode="before")
    @classmethod
    def _normalize_site_type(cls, value: object) -> object:
        # Known sites are normalised to their canonical casing, others kept as-is
        if isinstance(value, str):
            try:
                return SiteType(value).value
            except ValueError:
                return value
        return value

    def key(self) -> tuple[str, str]:
        """Return the natural key of the proposed link."""
        return (self.site_type, self.site_id)

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class AnimePayload(BaseModel):
    """Fields of an anime proposed by the library scraper."""

    name: str = Field(min_length=1)
    original_name: str | None = None
    bdrip: bool = False
    nsfw: bool = False
    platform: str | None = None
    date: dt.date | None = None
    release_year: int | None = None
    release_season: ReleaseSeason | None = None
    region: str | None = None
    sites: list[SiteLinkPayload] = Field(default_factory=list)

    def columns(self) -> dict:
        """Return the values that map onto ``Anime`` columns."""
        return self.model_dump(exclude={"sites"})


class AnimeInfo(BaseModel):
    """Descriptive metadata fetched from an external site.

    Fields left as ``None`` are not known to the site and are not written.
    """

    original_name: str | None = None
    platform: str | None = None
    date: dt.date | None = None
    release_year: int | None = None
    release_season: ReleaseSeason | None = None
    nsfw: bool | None = None
    summary: str | None = None
    episodes: int | None = None
    rating: float | None = None

    def columns(self) -> dict:
        """Return the known values that map onto ``Anime`` columns."""
        return self.model_dump(exclude_none=True)
