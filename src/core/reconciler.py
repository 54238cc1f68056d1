"""Applies library scrape results to the anime catalog."""

from src import log
from src.core.store import CatalogStore
from src.exceptions import CatalogError
from src.models.reports import ReconcileOutcome, ReconcileReport, ReconcileStatus
from src.models.schemas.scrape import (
    ExistingAnimeResult,
    LibraryScrapeResult,
    NewAnimeResult,
)

__all__ = ["AnimeReconciler"]


class AnimeReconciler:
    """Creates anime, attaches site links and associates files from a scrape.

    Items are applied one at a time and independently of each other: a
    failure is recorded on that item's outcome and the batch moves on. There
    is no rollback across items. Errors other than ``CatalogError`` (such as
    the database being unreachable) are not caught and end the run.
    """

    def __init__(self, store: CatalogStore) -> None:
        """Initialize the reconciler.

        Args:
            store (CatalogStore): Catalog store to write to.
        """
        self.store = store

    def apply_library_scraper_result(
        self, result: LibraryScrapeResult
    ) -> ReconcileReport:
        """Apply a whole scrape result, new anime first, then existing ones.

        Args:
            result (LibraryScrapeResult): Output of the library scraper.

        Returns:
            ReconcileReport: One outcome per input item, in input order.
        """
        log.info(
            f"Applying scrape result $${{new: {len(result.new_anime)}, "
            f"existing: {len(result.existing_anime)}}}$$"
        )

        report = ReconcileReport()
        for item in result.new_anime:
            report.outcomes.append(self.apply_new_anime(item))
        for item in result.existing_anime:
            report.outcomes.append(self.apply_existing_anime(item))

        if report.failed:
            log.warning(f"Scrape result applied with failures: {report}")
        else:
            log.success(f"Scrape result applied: {report}")
        return report

    def apply_new_anime(self, item: NewAnimeResult) -> ReconcileOutcome:
        """Create an anime, attach its site links and associate its files.

        Args:
            item (NewAnimeResult): Proposed anime with site links and files.

        Returns:
            ReconcileOutcome: ``CREATED``, ``PARTIAL`` when some site links could
                not be attached, or ``FAILED`` when nothing was applied.
        """
        name = item.anime.name
        file_ids = item.file_ids()
        outcome = ReconcileOutcome(
            kind="new",
            name=name,
            status=ReconcileStatus.FAILED,
            files_requested=len(file_ids),
        )

        try:
            anime = self.store.create_anime(item.anime)
        except CatalogError as e:
            log.error(f"Failed to create anime $$'{name}'$$: {e}")
            outcome.error = str(e)
            return outcome

        outcome.anime_id = anime.id
        log.info(f"Created anime $$'{name}'$$ $${{anime_id: {anime.id}}}$$")

        for site in item.anime.sites:
            try:
                self.store.upsert_site_link(site.site_id, site.site_type, anime.id)
            except CatalogError as e:
                log.warning(
                    f"Failed to link $$'{name}'$$ to {site.site_type} "
                    f"{site.site_id}: {e}"
                )
                outcome.site_errors.append(f"{site.site_type} {site.site_id}: {e}")
                continue
            log.debug(f"$$'{name}'$$ -> {site.site_type} {site.site_id}")

        try:
            outcome.files_updated = self._reassign_files(name, file_ids, anime.id)
        except CatalogError as e:
            log.error(f"Failed to associate files with $$'{name}'$$: {e}")
            outcome.error = str(e)

        # The anime exists at this point, so the item is never reported as failed
        if outcome.site_errors or outcome.error:
            outcome.status = ReconcileStatus.PARTIAL
        else:
            outcome.status = ReconcileStatus.CREATED
        return outcome

    def apply_existing_anime(self, item: ExistingAnimeResult) -> ReconcileOutcome:
        """Associate files with an anime that is already in the catalog.

        Args:
            item (ExistingAnimeResult): Existing anime reference and files.

        Returns:
            ReconcileOutcome: ``LINKED`` or ``FAILED``.
        """
        name = item.anime.name or str(item.anime.id)
        file_ids = item.file_ids()
        outcome = ReconcileOutcome(
            kind="existing",
            name=name,
            status=ReconcileStatus.FAILED,
            anime_id=item.anime.id,
            files_requested=len(file_ids),
        )

        try:
            outcome.files_updated = self._reassign_files(name, file_ids, item.anime.id)
        except CatalogError as e:
            log.error(f"Failed to link files to existing anime $$'{name}'$$: {e}")
            outcome.error = str(e)
            return outcome

        outcome.status = ReconcileStatus.LINKED
        return outcome

    def _reassign_files(self, name: str, file_ids: list[int], anime_id: int) -> int:
        count = self.store.bulk_reassign_files(file_ids, anime_id)
        if count < len(file_ids):
            log.debug(
                f"$$'{name}'$$ associated with {count} of {len(file_ids)} file(s); "
                "the rest were removed or already associated"
            )
        else:
            log.debug(f"$$'{name}'$$ associated with {count} file(s)")
        return count
