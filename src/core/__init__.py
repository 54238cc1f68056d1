"""Core Module Initialization."""

from src.core.store import CatalogStore

from src.core.library import LibraryReader  # isort:skip
from src.core.reconciler import AnimeReconciler
from src.core.updaters import UpdaterRegistry, build_updater_registry
from src.core.refresh import InfoRefresher, is_stale
from src.core.sched import SchedulerClient

__all__ = [
    "AnimeReconciler",
    "CatalogStore",
    "InfoRefresher",
    "LibraryReader",
    "SchedulerClient",
    "UpdaterRegistry",
    "build_updater_registry",
    "is_stale",
]
