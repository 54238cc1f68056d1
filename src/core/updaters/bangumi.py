"""Bangumi anime info updater."""

from src.config.settings import SiteType
from src.core.bangumi import BangumiClient
from src.core.store import CatalogStore
from src.core.updaters.base import AnimeInfoUpdater
from src.exceptions import ProviderNotFoundError
from src.models.db.anime import ReleaseSeason
from src.models.schemas.anime import AnimeInfo
from src.models.schemas.bangumi import Subject

__all__ = ["BangumiAnimeInfoUpdater"]


class BangumiAnimeInfoUpdater(AnimeInfoUpdater):
    """Refreshes anime linked to Bangumi subjects."""

    site_type = SiteType.BANGUMI.value

    def __init__(self, store: CatalogStore, client: BangumiClient) -> None:
        """Initialize the updater.

        Args:
            store (CatalogStore): Catalog store that receives refreshed values.
            client (BangumiClient): Client used to fetch subjects.
        """
        super().__init__(store)
        self.client = client

    async def fetch_info(self, site_id: str) -> AnimeInfo:
        """Fetch a Bangumi subject and map it onto ``AnimeInfo``."""
        if not site_id.isdigit():
            raise ProviderNotFoundError(f"'{site_id}' is not a Bangumi subject ID")

        subject = await self.client.get_subject(int(site_id))
        return self.to_info(subject)

    @staticmethod
    def to_info(subject: Subject) -> AnimeInfo:
        """Map a Bangumi subject onto the catalog's metadata fields."""
        release_year = release_season = None
        if subject.date is not None:
            release_year = subject.date.year
            release_season = ReleaseSeason.from_month(subject.date.month)

        rating = None
        if subject.rating is not None and subject.rating.score:
            rating = subject.rating.score

        return AnimeInfo(
            original_name=subject.name,
            platform=subject.platform,
            date=subject.date,
            release_year=release_year,
            release_season=release_season,
            nsfw=subject.nsfw,
            summary=subject.summary,
            episodes=subject.eps or subject.total_episodes or None,
            rating=rating,
        )

    async def close(self) -> None:
        """Close the underlying client session."""
        await self.client.close()
