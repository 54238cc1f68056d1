"""Tests for applying library scrape results."""

import pytest
from sqlalchemy.exc import OperationalError

from src.core.reconciler import AnimeReconciler
from src.core.store import CatalogStore
from src.exceptions import SiteLinkError
from src.models.reports import ReconcileStatus
from src.models.schemas.scrape import LibraryScrapeResult


@pytest.fixture
def reconciler(store: CatalogStore) -> AnimeReconciler:
    """Return a reconciler writing to the in-memory store."""
    return AnimeReconciler(store)


def _new_item(name: str, file_ids: list[int] | None = None, sites=None) -> dict:
    return {
        "anime": {"name": name, "sites": sites or []},
        "files": [{"id": file_id} for file_id in file_ids or []],
    }


def test_new_anime_with_site_and_files(
    reconciler: AnimeReconciler, store: CatalogStore, make_files, file_owners
) -> None:
    """A new anime is created, linked and given its files."""
    file_ids = make_files("Show A - 01.mkv", "Show A - 02.mkv")
    result = LibraryScrapeResult.model_validate(
        {
            "new_anime": [
                _new_item(
                    "Show A",
                    file_ids,
                    sites=[{"site_id": 123, "site_type": "Bangumi"}],
                )
            ]
        }
    )

    report = reconciler.apply_library_scraper_result(result)

    (outcome,) = report.outcomes
    assert outcome.status == ReconcileStatus.CREATED
    assert outcome.files_updated == 2
    anime = store.get_anime(outcome.anime_id)
    assert anime.name == "Show A"
    assert [site.key() for site in anime.sites] == [("Bangumi", "123")]
    assert anime.sites[0].last_update is None
    assert set(file_owners(file_ids).values()) == {anime.id}
    assert report.created == 1
    assert report.files_updated == 2


def test_duplicate_in_batch_does_not_stop_others(
    reconciler: AnimeReconciler, make_anime
) -> None:
    """One conflicting item in ten leaves the other nine created."""
    make_anime("Show 4")
    result = LibraryScrapeResult.model_validate(
        {"new_anime": [_new_item(f"Show {i}") for i in range(10)]}
    )

    report = reconciler.apply_library_scraper_result(result)

    assert report.created == 9
    assert report.failed == 1
    failed = [o for o in report.outcomes if not o.ok]
    assert [o.name for o in failed] == ["Show 4"]
    assert failed[0].error
    assert [o.name for o in report.outcomes] == [f"Show {i}" for i in range(10)]


def test_site_link_owned_elsewhere_is_left_alone(
    reconciler: AnimeReconciler, store: CatalogStore, make_anime
) -> None:
    """Proposing a link that already belongs to another anime keeps its owner."""
    owner = make_anime("Original")
    store.upsert_site_link("123", "Bangumi", owner.id)
    result = LibraryScrapeResult.model_validate(
        {
            "new_anime": [
                _new_item("Copy", sites=[{"site_id": "123", "site_type": "Bangumi"}])
            ]
        }
    )

    (outcome,) = reconciler.apply_library_scraper_result(result).outcomes

    assert outcome.status == ReconcileStatus.CREATED
    assert [a.name for a in store.find_anime_by_site("123", "Bangumi")] == [
        "Original"
    ]
    assert store.get_anime(outcome.anime_id).sites == []


def test_site_link_failure_marks_partial(
    reconciler: AnimeReconciler,
    store: CatalogStore,
    make_files,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A failing site link keeps the anime and still associates its files."""
    file_ids = make_files("ep01.mkv")

    def fail(site_id, site_type, anime_id):
        raise SiteLinkError("boom")

    monkeypatch.setattr(store, "upsert_site_link", fail)
    result = LibraryScrapeResult.model_validate(
        {
            "new_anime": [
                _new_item(
                    "Show A",
                    file_ids,
                    sites=[{"site_id": "1", "site_type": "Bangumi"}],
                )
            ]
        }
    )

    report = reconciler.apply_library_scraper_result(result)

    (outcome,) = report.outcomes
    assert outcome.status == ReconcileStatus.PARTIAL
    assert outcome.ok
    assert outcome.files_updated == 1
    assert len(outcome.site_errors) == 1
    assert report.created == 1


def test_existing_anime_reassignment_is_idempotent(
    reconciler: AnimeReconciler, make_anime, make_files
) -> None:
    """Applying the same existing anime twice updates zero files the second time."""
    anime = make_anime("Show A")
    file_ids = make_files("ep01.mkv", "ep02.mkv")
    result = LibraryScrapeResult.model_validate(
        {
            "existing_anime": [
                {
                    "anime": {"id": anime.id, "name": "Show A"},
                    "files": [{"id": file_id} for file_id in file_ids],
                }
            ]
        }
    )

    first = reconciler.apply_library_scraper_result(result)
    second = reconciler.apply_library_scraper_result(result)

    assert first.outcomes[0].status == ReconcileStatus.LINKED
    assert first.files_updated == 2
    assert second.outcomes[0].status == ReconcileStatus.LINKED
    assert second.files_updated == 0


def test_existing_anime_missing_fails_item_only(
    reconciler: AnimeReconciler, make_anime, make_files
) -> None:
    """Files pointed at a missing anime fail that item and nothing else."""
    anime = make_anime("Show A")
    good = make_files("a.mkv")
    bad = make_files("b.mkv")
    result = LibraryScrapeResult.model_validate(
        {
            "existing_anime": [
                {"anime": {"id": 999}, "files": [{"id": bad[0]}]},
                {"anime": {"id": anime.id}, "files": [{"id": good[0]}]},
            ]
        }
    )

    report = reconciler.apply_library_scraper_result(result)

    assert [o.status for o in report.outcomes] == [
        ReconcileStatus.FAILED,
        ReconcileStatus.LINKED,
    ]
    assert report.outcomes[0].name == "999"


def test_new_anime_applied_before_existing(
    reconciler: AnimeReconciler, make_anime
) -> None:
    """New anime are processed before existing ones regardless of input order."""
    anime = make_anime("Existing")
    result = LibraryScrapeResult.model_validate(
        {
            "existing_anime": [{"anime": {"id": anime.id, "name": "Existing"}}],
            "new_anime": [_new_item("Fresh")],
        }
    )

    report = reconciler.apply_library_scraper_result(result)

    assert [o.kind for o in report.outcomes] == ["new", "existing"]


def test_empty_result(reconciler: AnimeReconciler) -> None:
    """An empty scrape result produces an empty report."""
    report = reconciler.apply_library_scraper_result(LibraryScrapeResult())

    assert report.outcomes == []
    assert str(report) == "0 created, 0 linked, 0 failed, 0 files updated"


def test_database_errors_propagate(
    reconciler: AnimeReconciler,
    store: CatalogStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Errors outside the catalog error family end the run."""

    def unreachable(payload):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(store, "create_anime", unreachable)
    result = LibraryScrapeResult.model_validate({"new_anime": [_new_item("Show A")]})

    with pytest.raises(OperationalError):
        reconciler.apply_library_scraper_result(result)
