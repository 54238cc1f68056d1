"""Tests for the refresh scheduler."""

import asyncio
import types

import pytest
from sqlalchemy.exc import OperationalError

import main
from src.config.settings import AniShelfConfig
from src.core.refresh import InfoRefresher
from src.core.sched import LAST_REFRESH_KEY, SchedulerClient
from src.core.store import CatalogStore
from src.core.updaters import UpdaterRegistry
from src.exceptions import SchedulerError


class CountingRefresher(InfoRefresher):
    """Refresher that records the cutoffs it was asked to scan."""

    def __init__(self, store: CatalogStore, error: Exception | None = None):
        super().__init__(store, UpdaterRegistry())
        self.cutoffs = []
        self.error = error

    async def scan(self, before):
        self.cutoffs.append(before)
        if self.error is not None:
            raise self.error
        return await super().scan(before)


@pytest.mark.asyncio
async def test_single_run_when_interval_is_zero(store: CatalogStore) -> None:
    """An interval of 0 runs one refresh and completes."""
    refresher = CountingRefresher(store)
    scheduler = SchedulerClient(AniShelfConfig(refresh_interval=0), refresher)

    await scheduler.start()
    await asyncio.wait_for(scheduler.wait_for_completion(), 1)

    assert len(refresher.cutoffs) == 1
    assert not scheduler.is_running
    assert store.get_state(LAST_REFRESH_KEY) is not None
    assert scheduler.last_refreshed is not None


@pytest.mark.asyncio
async def test_cutoff_uses_stale_after(store: CatalogStore) -> None:
    """The cutoff lies stale_after seconds in the past."""
    refresher = CountingRefresher(store)
    scheduler = SchedulerClient(
        AniShelfConfig(refresh_interval=0, stale_after=3600), refresher
    )

    await scheduler.trigger_refresh()

    (cutoff,) = refresher.cutoffs
    elapsed = scheduler.last_refreshed - cutoff
    assert 3600 <= elapsed.total_seconds() < 3660


@pytest.mark.asyncio
async def test_failed_refresh_is_contained(store: CatalogStore) -> None:
    """A failing cycle is logged and does not record a completed refresh."""
    refresher = CountingRefresher(store, error=RuntimeError("scan exploded"))
    scheduler = SchedulerClient(AniShelfConfig(refresh_interval=0), refresher)

    assert await scheduler.refresh() is None
    assert store.get_state(LAST_REFRESH_KEY) is None


@pytest.mark.asyncio
async def test_periodic_loop_runs_and_stops(store: CatalogStore) -> None:
    """The periodic loop refreshes on start and stops on request."""
    refresher = CountingRefresher(store)
    scheduler = SchedulerClient(
        AniShelfConfig(refresh_interval=3600, refresh_on_start=True), refresher
    )

    await scheduler.start()
    assert scheduler.is_running
    for _ in range(50):
        if refresher.cutoffs:
            break
        await asyncio.sleep(0.01)

    scheduler.request_shutdown()
    await asyncio.wait_for(scheduler.wait_for_completion(), 1)
    await scheduler.stop()

    assert len(refresher.cutoffs) == 1
    assert not scheduler.is_running


@pytest.mark.asyncio
async def test_refresh_on_start_disabled(store: CatalogStore) -> None:
    """Without refresh_on_start the first cycle waits for the interval."""
    refresher = CountingRefresher(store)
    scheduler = SchedulerClient(
        AniShelfConfig(refresh_interval=3600, refresh_on_start=False), refresher
    )

    await scheduler.start()
    await asyncio.sleep(0.05)
    await scheduler.stop()

    assert refresher.cutoffs == []


@pytest.mark.asyncio
async def test_trigger_after_stop_raises(store: CatalogStore) -> None:
    """A stopped scheduler refuses manual refreshes."""
    scheduler = SchedulerClient(AniShelfConfig(), CountingRefresher(store))

    await scheduler.stop()

    with pytest.raises(SchedulerError):
        await scheduler.trigger_refresh()


def _unreachable_database() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("unable to open database file"))


@pytest.mark.asyncio
async def test_single_run_propagates_fatal_error(store: CatalogStore) -> None:
    """A database failure during a single run ends the run with that error."""
    refresher = CountingRefresher(store, error=_unreachable_database())
    scheduler = SchedulerClient(AniShelfConfig(refresh_interval=0), refresher)

    with pytest.raises(OperationalError):
        await scheduler.start()

    assert scheduler.stop_event.is_set()
    assert store.get_state(LAST_REFRESH_KEY) is None


@pytest.mark.asyncio
async def test_run_once_exits_nonzero_on_fatal_error(
    session_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """``--once`` reports a failed exit code when the refresh cannot finish."""

    class UnreachableRefresher(CountingRefresher):
        def __init__(self, store, registry):
            super().__init__(store, error=_unreachable_database())

    monkeypatch.setattr(
        main, "db", lambda: types.SimpleNamespace(session_factory=session_factory)
    )
    monkeypatch.setattr(main, "InfoRefresher", UnreachableRefresher)

    assert await main.run(main.parse_args(["--once"])) == 1
