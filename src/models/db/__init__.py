"""Models for AniShelf database tables."""

from src.models.db.anime import Anime, AnimeSite, ReleaseSeason
from src.models.db.base import Base
from src.models.db.housekeeping import Housekeeping
from src.models.db.library import LibFile, Library

__all__ = [
    "Anime",
    "AnimeSite",
    "Base",
    "Housekeeping",
    "LibFile",
    "Library",
    "ReleaseSeason",
]
