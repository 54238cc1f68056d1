"""Staleness-driven metadata refresh."""

from datetime import datetime

from src import log
from src.core.store import CatalogStore
from src.core.updaters import UpdaterRegistry
from src.exceptions import CatalogError, ProviderError
from src.models.db.anime import Anime, AnimeSite
from src.models.db.base import as_utc
from src.models.reports import RefreshOutcome, RefreshReport, RefreshStatus

__all__ = ["InfoRefresher", "is_stale"]


def is_stale(site: AnimeSite, before: datetime) -> bool:
    """Return whether a site link needs refreshing at the cutoff ``before``.

    A link that was never refreshed is always stale. Otherwise it is stale
    when its last refresh happened at or before the cutoff.
    """
    if site.last_update is None:
        return True
    return as_utc(site.last_update) <= as_utc(before)


def stale_links(animes: list[Anime], before: datetime) -> list[AnimeSite]:
    """Flatten the stale links of ``animes``, one per ``(site_type, site_id)``.

    Order of first appearance is kept.
    """
    seen: set[tuple[str, str]] = set()
    links: list[AnimeSite] = []
    for anime in animes:
        for site in anime.sites:
            if not is_stale(site, before) or site.key() in seen:
                continue
            seen.add(site.key())
            links.append(site)
    return links


class InfoRefresher:
    """Finds stale site links and hands each one to its site's updater.

    Links are dispatched one at a time. A provider or catalog failure on one
    link is recorded and the scan moves on to the next link. Links whose site
    has no registered updater are skipped. The refresher itself never stamps
    ``last_update``; that is the updater's job.
    """

    def __init__(self, store: CatalogStore, registry: UpdaterRegistry) -> None:
        """Initialize the refresher.

        Args:
            store (CatalogStore): Catalog store used to find stale links.
            registry (UpdaterRegistry): Updaters keyed by site tag.
        """
        self.store = store
        self.registry = registry

    async def scan(self, before: datetime) -> RefreshReport:
        """Refresh every site link that is stale at ``before``.

        Args:
            before (datetime): Cutoff; links last refreshed after it are left alone.

        Returns:
            RefreshReport: One outcome per distinct stale link.
        """
        report = RefreshReport(before=before)

        animes = self.store.find_anime_with_stale_sites(before)
        links = stale_links(animes, before)
        log.info(
            f"Found {len(links)} stale site link(s) across {len(animes)} anime "
            f"$${{before: {before.isoformat()}}}$$"
        )

        for site in links:
            report.outcomes.append(await self._dispatch(site))

        log.success(f"Metadata refresh completed: {report}")
        return report

    async def _dispatch(self, site: AnimeSite) -> RefreshOutcome:
        outcome = RefreshOutcome(
            site_type=site.site_type,
            site_id=site.site_id,
            status=RefreshStatus.SKIPPED,
        )

        updater = self.registry.get(site.site_type)
        if updater is None:
            log.debug(
                f"No updater registered for $$'{site.site_type}'$$, skipping "
                f"$${{site_id: {site.site_id}}}$$"
            )
            return outcome

        try:
            await updater.update_relation_animes(site.site_id)
        except (ProviderError, CatalogError) as e:
            log.error(
                f"Failed to refresh $$'{site.site_type} {site.site_id}'$$: {e}"
            )
            outcome.status = RefreshStatus.FAILED
            outcome.error = str(e)
            return outcome

        outcome.status = RefreshStatus.REFRESHED
        return outcome
