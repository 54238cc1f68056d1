"""AniShelf Main Application."""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from pydantic import ValidationError

from src import ANISHELF_HEADER, log
from src.config.database import db
from src.config.settings import get_config
from src.core import (
    AnimeReconciler,
    CatalogStore,
    InfoRefresher,
    SchedulerClient,
    build_updater_registry,
)
from src.models.schemas.scrape import LibraryScrapeResult


def _setup_signal_handlers_for_scheduler(scheduler: SchedulerClient) -> None:
    """Install SIGINT/SIGTERM handlers that request scheduler shutdown."""
    loop = asyncio.get_running_loop()

    def _on_signal(sig):
        name = signal.Signals(sig).name if sig else "UNKNOWN"
        log.info(f"AniShelf: Received {name} signal, initiating graceful shutdown...")
        scheduler.request_shutdown()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda s=sig: _on_signal(s))
        except NotImplementedError:
            # Fallback for environments that don't support add_signal_handler
            signal.signal(sig, lambda s, f: _on_signal(s))


def apply_scrape_file(store: CatalogStore, path: Path) -> int:
    """Apply a scrape result stored as JSON.

    Args:
        store (CatalogStore): Catalog store to write to.
        path (Path): JSON file holding a ``LibraryScrapeResult``.

    Returns:
        int: Exit code (0 if every item was applied, 1 otherwise)
    """
    try:
        result = LibraryScrapeResult.model_validate_json(path.read_bytes())
    except OSError as e:
        log.error(f"AniShelf: Could not read scrape result $$'{path}'$$: {e}")
        return 1
    except ValidationError as e:
        log.error(f"AniShelf: Invalid scrape result $$'{path}'$$: {e}")
        return 1

    report = AnimeReconciler(store).apply_library_scraper_result(result)
    return 1 if report.failed else 0


async def run(args: argparse.Namespace) -> int:
    """Main application entry point.

    Applies a scrape result when one is given, otherwise runs the refresh
    scheduler until shutdown.

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    scheduler: SchedulerClient | None = None

    ret = 0
    try:
        log.info("\n" + ANISHELF_HEADER)
        config = get_config()
        log.info(f"AniShelf: {config}")

        store = CatalogStore(db().session_factory)

        if args.apply is not None:
            return apply_scrape_file(store, args.apply)

        if args.once:
            config = config.model_copy(update={"refresh_interval": 0})

        refresher = InfoRefresher(store, build_updater_registry(config, store))
        scheduler = SchedulerClient(config, refresher)
        _setup_signal_handlers_for_scheduler(scheduler)

        await scheduler.start()
        await scheduler.wait_for_completion()
    except KeyboardInterrupt:
        log.info("AniShelf: Keyboard interrupt received, shutting down...")
    except ValidationError as e:
        log.error(f"AniShelf: Configuration validation error: {e}")
        return 1
    except OSError as e:
        log.error(f"AniShelf: File system error: {e}")
        return 1
    except asyncio.CancelledError:
        log.info("AniShelf: Application cancelled")
        return 0
    except Exception as e:
        log.error(f"AniShelf: Unexpected application error: {e}", exc_info=True)
        return 1
    finally:
        if scheduler:
            log.info("AniShelf: Shutting down application...")
            try:
                await scheduler.stop()
                log.success("AniShelf: Application shutdown complete")
            except asyncio.CancelledError:
                log.info("AniShelf: Shutdown cancelled")
                ret = 1
            except Exception as e:
                log.error(f"AniShelf: Error during shutdown: {e}", exc_info=True)
                ret = 1
    return ret


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="anishelf",
        description="Anime catalog reconciliation and metadata refresh",
    )
    parser.add_argument(
        "--apply",
        type=Path,
        metavar="FILE",
        help="apply a library scrape result (JSON) to the catalog and exit",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="run a single metadata refresh and exit",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv (list[str] | None): Command-line arguments.

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        log.info("AniShelf: Application interrupted")
        return 0
    except Exception as e:
        log.error(f"AniShelf: Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
