"""Models Initialization Module."""

from src.models.db import (
    Anime,
    AnimeSite,
    Base,
    Housekeeping,
    LibFile,
    Library,
    ReleaseSeason,
)

__all__ = [
    "Anime",
    "AnimeSite",
    "Base",
    "Housekeeping",
    "LibFile",
    "Library",
    "ReleaseSeason",
]
