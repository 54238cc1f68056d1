"""Bangumi Models Module."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, field_validator

__all__ = ["Subject", "SubjectRating"]


class SubjectRating(BaseModel):
    """Aggregated user rating of a subject."""

    rank: int | None = None
    total: int | None = None
    score: float | None = None

    model_config = ConfigDict(extra="ignore")


class Subject(BaseModel):
    """A Bangumi subject as returned by ``GET /v0/subjects/{id}``."""

    id: int
    type: int | None = None
    name: str | None = None
    name_cn: str | None = None
    summary: str | None = None
    nsfw: bool | None = None
    platform: str | None = None
    date: dt.date | None = None
    eps: int | None = None
    total_episodes: int | None = None
    rating: SubjectRating | None = None

    @field_validator("name", "name_cn", "summary", "platform", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        # Bangumi sends empty strings for unknown text fields
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: object) -> object:
        if value in ("", "0000-00-00"):
            return None
        return value

    model_config = ConfigDict(extra="ignore")
