"""AniList Models Module."""

import datetime as dt
from enum import StrEnum
from functools import cache
from typing import ClassVar, get_args, get_origin

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

__all__ = ["FuzzyDate", "Media", "MediaFormat", "MediaSeason", "MediaTitle"]


class AniListBaseEnum(StrEnum):
    """Base enum for AniList models."""

    pass


class MediaFormat(AniListBaseEnum):
    """Enum representing media formats (TV, MOVIE, etc)."""

    TV = "TV"
    TV_SHORT = "TV_SHORT"
    MOVIE = "MOVIE"
    SPECIAL = "SPECIAL"
    OVA = "OVA"
    ONA = "ONA"
    MUSIC = "MUSIC"
    MANGA = "MANGA"
    NOVEL = "NOVEL"
    ONE_SHOT = "ONE_SHOT"


class MediaSeason(AniListBaseEnum):
    """Enum representing media seasons (WINTER, SPRING, etc)."""

    WINTER = "WINTER"
    SPRING = "SPRING"
    SUMMER = "SUMMER"
    FALL = "FALL"


class AniListBaseModel(BaseModel):
    """Base class for AniList models representing GraphQL objects.

    Provides camelCase aliasing and GraphQL selection set generation.
    """

    _processed_models: ClassVar[set] = set()

    @classmethod
    @cache
    def model_dump_graphql(cls) -> str:
        """Generate GraphQL query fields for this model.

        Returns:
            str: The GraphQL query fields.
        """
        if cls.__name__ in cls._processed_models:
            return ""

        cls._processed_models.add(cls.__name__)
        graphql_fields = []

        for field_name, field in cls.model_fields.items():
            field_type = (
                get_args(field.annotation)[0]
                if get_origin(field.annotation)
                else field.annotation
            )
            camel_field_name = to_camel(field_name)

            if isinstance(field_type, type) and issubclass(
                field_type, AniListBaseModel
            ):
                nested_fields = field_type.model_dump_graphql()
                if nested_fields:
                    graphql_fields.append(f"{camel_field_name} {{\n{nested_fields}\n}}")
            else:
                graphql_fields.append(camel_field_name)

        cls._processed_models.remove(cls.__name__)
        return "\n".join(graphql_fields)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MediaTitle(AniListBaseModel):
    """Model representing media titles in various languages."""

    romaji: str | None = None
    english: str | None = None
    native: str | None = None

    def __str__(self) -> str:
        """Return the first available title or an empty string."""
        return self.english or self.romaji or self.native or ""


class FuzzyDate(AniListBaseModel):
    """Model representing a fuzzy date (year, month, day may be missing)."""

    year: int | None = None
    month: int | None = None
    day: int | None = None

    def to_date(self) -> dt.date | None:
        """Return the date if every component is known, otherwise ``None``."""
        if self.year is None or self.month is None or self.day is None:
            return None
        try:
            return dt.date(self.year, self.month, self.day)
        except ValueError:
            return None

    def __repr__(self) -> str:
        """Return formatted string representation of the FuzzyDate."""
        return (
            f"{self.year or '????'}-"
            f"{str(self.month).zfill(2) if self.month else '??'}-"
            f"{str(self.day).zfill(2) if self.day else '??'}"
        )


class Media(AniListBaseModel):
    """Model representing a media entry."""

    id: int
    format: MediaFormat | None = None
    season: MediaSeason | None = None
    season_year: int | None = None
    episodes: int | None = None
    is_adult: bool | None = None
    title: MediaTitle | None = None
    start_date: FuzzyDate | None = None
    description: str | None = None
    average_score: int | None = None
