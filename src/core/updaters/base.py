"""Base class for per-site anime info updaters."""

from abc import ABC, abstractmethod
from typing import ClassVar

from src import log
from src.core.store import CatalogStore
from src.models.schemas.anime import AnimeInfo

__all__ = ["AnimeInfoUpdater"]


class AnimeInfoUpdater(ABC):
    """Refreshes every anime linked to a record on one external site.

    Subclasses set ``site_type`` and implement ``fetch_info``; writing the
    result to the catalog and stamping the site links is shared.
    """

    site_type: ClassVar[str]

    def __init__(self, store: CatalogStore) -> None:
        """Initialize the updater.

        Args:
            store (CatalogStore): Catalog store that receives refreshed values.
        """
        self.store = store

    @abstractmethod
    async def fetch_info(self, site_id: str) -> AnimeInfo:
        """Fetch current metadata for a record on this site.

        Raises:
            ProviderError: If the site cannot provide the record.
        """
        ...

    async def update_relation_animes(self, site_id: str) -> int:
        """Refresh all anime linked to ``site_id`` on this site.

        Args:
            site_id (str): Identifier of the record on the site.

        Returns:
            int: Number of anime updated.

        Raises:
            ProviderError: If fetching the record fails.
            CatalogError: If no anime is linked or the values are rejected.
        """
        info = await self.fetch_info(site_id)
        count = self.store.apply_site_info(site_id, self.site_type, info)
        log.debug(
            f"Refreshed {count} anime from $$'{self.site_type} {site_id}'$$ "
            f"$${{fields: {sorted(info.columns())}}}$$"
        )
        return count

    async def close(self) -> None:
        """Release any network resources held by the updater."""
        return None

    def __repr__(self) -> str:
        """Return a short representation naming the site."""
        return f"<{self.__class__.__name__}:{self.site_type}>"
