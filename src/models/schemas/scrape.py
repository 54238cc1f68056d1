"""Library scrape result schemas.

A scrape result is produced by the library scraper once per scan run and
handed to the reconciler. It is never persisted.
"""

from pydantic import BaseModel, Field

from src.models.schemas.anime import AnimePayload

__all__ = [
    "AnimeRef",
    "ExistingAnimeResult",
    "LibFileRef",
    "LibraryScrapeResult",
    "NewAnimeResult",
]


class LibFileRef(BaseModel):
    """Reference to a scanned file row."""

    id: int


class AnimeRef(BaseModel):
    """Reference to an anime that already exists in the catalog."""

    id: int
    name: str = ""


class NewAnimeResult(BaseModel):
    """A group of files matched to an anime that must be created."""

    anime: AnimePayload
    files: list[LibFileRef] = Field(default_factory=list)

    def file_ids(self) -> list[int]:
        """Return the identifiers of the matched files."""
        return [file.id for file in self.files]


class ExistingAnimeResult(BaseModel):
    """A group of files matched to an anime already in the catalog."""

    anime: AnimeRef
    files: list[LibFileRef] = Field(default_factory=list)

    def file_ids(self) -> list[int]:
        """Return the identifiers of the matched files."""
        return [file.id for file in self.files]


class LibraryScrapeResult(BaseModel):
    """Output of a library scan, split into new and existing catalog matches."""

    new_anime: list[NewAnimeResult] = Field(default_factory=list)
    existing_anime: list[ExistingAnimeResult] = Field(default_factory=list)
