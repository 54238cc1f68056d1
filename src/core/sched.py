"""Scheduler Module."""

import asyncio
import contextlib
from datetime import UTC, datetime, timedelta

from tzlocal import get_localzone

from src import log
from src.config.settings import AniShelfConfig
from src.core.refresh import InfoRefresher
from src.exceptions import SchedulerError
from src.models.reports import RefreshReport

__all__ = ["SchedulerClient"]

LAST_REFRESH_KEY = "last_info_refresh"


class SchedulerClient:
    """Runs the metadata refresh periodically until asked to stop.

    Each cycle refreshes site links that were not updated within the
    configured ``stale_after`` window. With a ``refresh_interval`` of 0 a
    single cycle runs and the scheduler stops by itself.
    """

    def __init__(self, config: AniShelfConfig, refresher: InfoRefresher) -> None:
        """Initialize the scheduler.

        Args:
            config (AniShelfConfig): Application configuration.
            refresher (InfoRefresher): Refresher invoked on every cycle.
        """
        self.config = config
        self.refresher = refresher
        self.stop_event = asyncio.Event()

        self._running = False
        self._stopped = False
        self._refresh_lock = asyncio.Lock()
        self._current_task: asyncio.Task | None = None
        self._loop_task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        """Return whether the scheduler is currently running."""
        return self._running

    @property
    def last_refreshed(self) -> datetime | None:
        """Return when the last refresh cycle completed, if ever."""
        value = self.refresher.store.get_state(LAST_REFRESH_KEY)
        return datetime.fromisoformat(value) if value else None

    def request_shutdown(self) -> None:
        """Request application shutdown from external callers."""
        if not self.stop_event.is_set():
            self.stop_event.set()

    async def refresh(self, propagate: bool = False) -> RefreshReport | None:
        """Run a single refresh cycle with error handling.

        Args:
            propagate (bool): Re-raise errors that end the cycle instead of
                logging them.

        Returns:
            RefreshReport | None: The cycle's report, or ``None`` if it failed.
        """
        async with self._refresh_lock:
            before = datetime.now(UTC) - timedelta(seconds=self.config.stale_after)
            try:
                self._current_task = asyncio.create_task(self.refresher.scan(before))
                report = await self._current_task
            except asyncio.CancelledError:
                if self._current_task and not self._current_task.done():
                    log.info("Cancelling refresh task...")
                    self._current_task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await self._current_task
                raise
            except Exception:
                if propagate:
                    raise
                log.error("Refresh error", exc_info=True)
                return None
            finally:
                self._current_task = None

            self.refresher.store.set_state(
                LAST_REFRESH_KEY, datetime.now(UTC).isoformat()
            )
            return report

    async def trigger_refresh(self) -> RefreshReport | None:
        """Manually trigger a refresh cycle outside of the schedule.

        Raises:
            SchedulerError: If the scheduler has already been stopped.
        """
        if self._stopped:
            raise SchedulerError("Cannot refresh after the scheduler was stopped")
        log.info("Manually triggering metadata refresh")
        return await self.refresh()

    async def start(self) -> None:
        """Start the scheduler.

        Raises:
            Exception: Any error that ends a single run (refresh interval 0).
        """
        if self._running:
            return

        if self.config.refresh_interval == 0:
            log.info("Refresh interval is 0, running a single refresh before exiting")
            try:
                await self.refresh(propagate=True)
            finally:
                self.stop_event.set()
            return

        self._running = True
        log.info(
            f"Starting scheduler $${{refresh_interval: "
            f"{self.config.refresh_interval}s, stale_after: "
            f"{self.config.stale_after}s}}$$"
        )
        self._loop_task = asyncio.create_task(self._periodic_loop())

    async def stop(self) -> None:
        """Stop the scheduler and close the site updaters."""
        if self._running:
            log.info("Stopping scheduler")
        self._running = False
        self._stopped = True
        self.stop_event.set()

        for task in (self._current_task, self._loop_task):
            if task and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._loop_task = None

        await self.refresher.registry.close()
        log.info("Scheduler stopped")

    async def wait_for_completion(self) -> None:
        """Wait for the scheduler to complete or be stopped."""
        try:
            await self.stop_event.wait()
        except asyncio.CancelledError:
            log.info("Scheduler wait interrupted")
            raise

    async def _periodic_loop(self) -> None:
        """Handle periodic refreshes."""
        interval = self.config.refresh_interval
        run_now = self.config.refresh_on_start

        while self._running and not self.stop_event.is_set():
            try:
                if run_now:
                    await self.refresh()
                run_now = True

                next_run = datetime.now(UTC) + timedelta(seconds=interval)
                log.info(
                    "Next metadata refresh scheduled for: "
                    f"{next_run.astimezone(get_localzone())}"
                )
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self.stop_event.wait(), interval)
            except asyncio.CancelledError:
                log.debug("Periodic refresh cancelled")
                break
            except Exception:
                log.error("Periodic refresh error", exc_info=True)
                await asyncio.sleep(10)
