"""Per-site anime info updaters and their registry."""

from collections.abc import Iterator

from src import log
from src.config.settings import AniShelfConfig, SiteType
from src.core.anilist import AniListClient
from src.core.bangumi import BangumiClient
from src.core.store import CatalogStore
from src.core.updaters.anilist import AniListAnimeInfoUpdater
from src.core.updaters.bangumi import BangumiAnimeInfoUpdater
from src.core.updaters.base import AnimeInfoUpdater

__all__ = [
    "AniListAnimeInfoUpdater",
    "AnimeInfoUpdater",
    "BangumiAnimeInfoUpdater",
    "UpdaterRegistry",
    "build_updater_registry",
]


class UpdaterRegistry:
    """Maps site tags to the updater responsible for them.

    Lookups for tags without a registered updater return ``None`` so callers
    can skip the link instead of failing.
    """

    def __init__(self, updaters: list[AnimeInfoUpdater] | None = None) -> None:
        """Initialize the registry.

        Args:
            updaters (list[AnimeInfoUpdater] | None): Updaters to register.
        """
        self._updaters: dict[str, AnimeInfoUpdater] = {}
        for updater in updaters or []:
            self.register(updater)

    def register(self, updater: AnimeInfoUpdater) -> None:
        """Register an updater under its site tag, replacing any previous one."""
        if updater.site_type in self._updaters:
            log.warning(
                f"Replacing updater for $$'{updater.site_type}'$$ with {updater!r}"
            )
        self._updaters[updater.site_type] = updater

    def get(self, site_type: str) -> AnimeInfoUpdater | None:
        """Return the updater for a site tag, or ``None`` if there is none."""
        return self._updaters.get(site_type)

    def tags(self) -> list[str]:
        """Return the registered site tags in registration order."""
        return list(self._updaters)

    async def close(self) -> None:
        """Close every registered updater."""
        for updater in self._updaters.values():
            await updater.close()

    def __contains__(self, site_type: object) -> bool:
        return site_type in self._updaters

    def __iter__(self) -> Iterator[AnimeInfoUpdater]:
        return iter(self._updaters.values())

    def __len__(self) -> int:
        return len(self._updaters)


def build_updater_registry(
    config: AniShelfConfig, store: CatalogStore
) -> UpdaterRegistry:
    """Create updaters for every enabled site.

    Args:
        config (AniShelfConfig): Application configuration.
        store (CatalogStore): Catalog store shared by the updaters.

    Returns:
        UpdaterRegistry: Registry holding one updater per enabled site.
    """
    registry = UpdaterRegistry()

    for site in config.enabled_sites:
        match site:
            case SiteType.BANGUMI:
                token = config.bangumi.token
                client = BangumiClient(
                    user_agent=config.bangumi.user_agent,
                    token=token.get_secret_value() if token else None,
                )
                registry.register(BangumiAnimeInfoUpdater(store, client))
            case SiteType.ANILIST:
                token = config.anilist.token
                registry.register(
                    AniListAnimeInfoUpdater(
                        store,
                        AniListClient(token.get_secret_value() if token else None),
                    )
                )

    log.info(f"Registered updaters for $${{sites: {registry.tags()}}}$$")
    return registry
