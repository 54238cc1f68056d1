"""Per-item outcomes and batch reports for reconciliation and refresh runs."""

from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

__all__ = [
    "ReconcileOutcome",
    "ReconcileReport",
    "ReconcileStatus",
    "RefreshOutcome",
    "RefreshReport",
    "RefreshStatus",
]


class ReconcileStatus(StrEnum):
    """Result of applying a single scrape result item."""

    CREATED = "created"  # New anime created with every site link attached
    PARTIAL = "partial"  # New anime created but some site links failed
    LINKED = "linked"  # Files associated with an existing anime
    FAILED = "failed"  # Nothing applied for this item


class RefreshStatus(StrEnum):
    """Result of dispatching a single stale site link."""

    REFRESHED = "refreshed"
    SKIPPED = "skipped"  # No updater registered for the site type
    FAILED = "failed"


class ReconcileOutcome(BaseModel):
    """What happened to one ``new_anime``/``existing_anime`` item."""

    kind: Literal["new", "existing"]
    name: str
    status: ReconcileStatus
    anime_id: int | None = None
    files_requested: int = 0
    files_updated: int = 0
    site_errors: list[str] = Field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the item was applied, possibly partially."""
        return self.status != ReconcileStatus.FAILED


class ReconcileReport(BaseModel):
    """Aggregated outcomes of one scrape result batch."""

    outcomes: list[ReconcileOutcome] = Field(default_factory=list)

    def _count(self, *statuses: ReconcileStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status in statuses)

    @property
    def created(self) -> int:
        """Number of anime created by the batch."""
        return self._count(ReconcileStatus.CREATED, ReconcileStatus.PARTIAL)

    @property
    def linked(self) -> int:
        """Number of existing anime that received files."""
        return self._count(ReconcileStatus.LINKED)

    @property
    def failed(self) -> int:
        """Number of items that could not be applied."""
        return self._count(ReconcileStatus.FAILED)

    @property
    def files_updated(self) -> int:
        """Total number of file rows reassigned by the batch."""
        return sum(outcome.files_updated for outcome in self.outcomes)

    def __str__(self) -> str:
        return (
            f"{self.created} created, {self.linked} linked, {self.failed} failed, "
            f"{self.files_updated} files updated"
        )


class RefreshOutcome(BaseModel):
    """What happened to one stale site link."""

    site_type: str
    site_id: str
    status: RefreshStatus
    error: str | None = None


class RefreshReport(BaseModel):
    """Aggregated outcomes of one staleness scan."""

    before: datetime
    outcomes: list[RefreshOutcome] = Field(default_factory=list)

    def _count(self, status: RefreshStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def refreshed(self) -> int:
        """Number of links refreshed by their site updater."""
        return self._count(RefreshStatus.REFRESHED)

    @property
    def skipped(self) -> int:
        """Number of links without a registered updater."""
        return self._count(RefreshStatus.SKIPPED)

    @property
    def failed(self) -> int:
        """Number of links whose updater raised."""
        return self._count(RefreshStatus.FAILED)

    def __str__(self) -> str:
        return (
            f"{self.refreshed} refreshed, {self.skipped} skipped, "
            f"{self.failed} failed"
        )
