"""AniList anime info updater."""

import re

from src.config.settings import SiteType
from src.core.anilist import AniListClient
from src.core.store import CatalogStore
from src.core.updaters.base import AnimeInfoUpdater
from src.exceptions import ProviderNotFoundError
from src.models.db.anime import ReleaseSeason
from src.models.schemas.anilist import Media
from src.models.schemas.anime import AnimeInfo

__all__ = ["AniListAnimeInfoUpdater"]

_TAG_PATTERN = re.compile(r"<[^>]+>")


class AniListAnimeInfoUpdater(AnimeInfoUpdater):
    """Refreshes anime linked to AniList media entries."""

    site_type = SiteType.ANILIST.value

    def __init__(self, store: CatalogStore, client: AniListClient) -> None:
        """Initialize the updater.

        Args:
            store (CatalogStore): Catalog store that receives refreshed values.
            client (AniListClient): Client used to fetch media entries.
        """
        super().__init__(store)
        self.client = client

    async def fetch_info(self, site_id: str) -> AnimeInfo:
        """Fetch an AniList media entry and map it onto ``AnimeInfo``."""
        if not site_id.isdigit():
            raise ProviderNotFoundError(f"'{site_id}' is not an AniList media ID")

        media = await self.client.get_media(int(site_id))
        return self.to_info(media)

    @staticmethod
    def to_info(media: Media) -> AnimeInfo:
        """Map an AniList media entry onto the catalog's metadata fields."""
        date = media.start_date.to_date() if media.start_date else None

        release_year = media.season_year
        if release_year is None and media.start_date:
            release_year = media.start_date.year

        release_season = ReleaseSeason(media.season) if media.season else None
        if release_season is None and media.start_date and media.start_date.month:
            release_season = ReleaseSeason.from_month(media.start_date.month)

        summary = None
        if media.description:
            summary = _TAG_PATTERN.sub("", media.description).strip() or None

        return AnimeInfo(
            original_name=media.title.native if media.title else None,
            platform=media.format.value if media.format else None,
            date=date,
            release_year=release_year,
            release_season=release_season,
            nsfw=media.is_adult,
            summary=summary,
            episodes=media.episodes,
            # averageScore is out of 100, the catalog keeps a 10 point scale
            rating=media.average_score / 10 if media.average_score else None,
        )

    async def close(self) -> None:
        """Close the underlying client session."""
        await self.client.close()
