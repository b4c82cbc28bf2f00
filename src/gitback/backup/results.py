"""Result objects for backup operations.

Structured results provide consistent interfaces for monitoring,
error handling, and CLI output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ItemKind(StrEnum):
    """Kind of item being backed up."""

    REPOSITORY = "repository"
    GIST = "gist"


class OutcomeStatus(StrEnum):
    """Terminal status of one item."""

    SUCCESS = "success"
    FAILED = "failed"


class ExportAction(StrEnum):
    """What the exporter did (or would have done) with an item."""

    CLONED = "cloned"
    UPDATED = "updated"
    EXPORTED = "exported"
    CANCELLED = "cancelled"
    NONE = "none"


CANCELLED_REASON = "cancelled"


@dataclass
class BackupOutcome:
    """Outcome of backing up a single repository or gist."""

    name: str
    """Display name of the item (full name or gist id)."""

    kind: ItemKind
    """Repository or gist."""

    status: OutcomeStatus
    """Success or Failed."""

    action: ExportAction = ExportAction.NONE
    """What was done to the item."""

    reason: str | None = None
    """Failure reason (None on success)."""

    @property
    def success(self) -> bool:
        """Check if the item was backed up."""
        return self.status is OutcomeStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "status": self.status.value,
            "action": self.action.value,
        }
        if self.reason is not None:
            result["reason"] = self.reason
        return result

    @classmethod
    def succeeded(cls, name: str, kind: ItemKind, action: ExportAction) -> BackupOutcome:
        """Create a result for a successfully exported item."""
        return cls(name=name, kind=kind, status=OutcomeStatus.SUCCESS, action=action)

    @classmethod
    def failed(
        cls,
        name: str,
        kind: ItemKind,
        reason: str,
        action: ExportAction = ExportAction.NONE,
    ) -> BackupOutcome:
        """Create a result for an item that could not be exported."""
        return cls(name=name, kind=kind, status=OutcomeStatus.FAILED, action=action, reason=reason)

    @classmethod
    def cancelled(cls, name: str, kind: ItemKind) -> BackupOutcome:
        """Create a result for an item never dispatched because of cancellation."""
        return cls.failed(name, kind, CANCELLED_REASON, action=ExportAction.CANCELLED)


@dataclass
class PhaseResult:
    """Aggregated outcomes of one backup phase (repositories or gists)."""

    kind: ItemKind
    """Kind of item processed in this phase."""

    outcomes: list[BackupOutcome] = field(default_factory=list)
    """One outcome per listed item."""

    duration_seconds: float = 0.0
    """Time taken for the phase."""

    skipped: bool = False
    """True if the phase did not run (disabled or cancelled beforehand)."""

    @property
    def total(self) -> int:
        """Number of items handed to the worker pool."""
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        """Number of items backed up."""
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        """Number of items that failed (cancelled items included)."""
        return self.total - self.succeeded

    @property
    def cancelled(self) -> int:
        """Number of items never dispatched because of cancellation."""
        return sum(1 for o in self.outcomes if o.action is ExportAction.CANCELLED)

    @property
    def failed_items(self) -> list[BackupOutcome]:
        """Outcomes of failed items, in listing order."""
        return [o for o in self.outcomes if not o.success]

    def count_action(self, action: ExportAction) -> int:
        """Number of successful items with the given action."""
        return sum(1 for o in self.outcomes if o.success and o.action is action)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "skipped": self.skipped,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "duration_seconds": round(self.duration_seconds, 2),
            "failures": [{"name": o.name, "reason": o.reason} for o in self.failed_items],
        }


@dataclass
class BackupReport:
    """Result of a complete backup run.

    Aggregates both phases. Individual failures are reported here rather
    than raised.
    """

    username: str
    """Account that was backed up."""

    repositories: PhaseResult = field(
        default_factory=lambda: PhaseResult(kind=ItemKind.REPOSITORY)
    )
    """Repository phase result."""

    gists: PhaseResult = field(default_factory=lambda: PhaseResult(kind=ItemKind.GIST, skipped=True))
    """Gist phase result."""

    cancelled: bool = False
    """True if the run was cancelled before all items were dispatched."""

    duration_seconds: float = 0.0
    """Total time taken."""

    @property
    def total_succeeded(self) -> int:
        """Items backed up across both phases."""
        return self.repositories.succeeded + self.gists.succeeded

    @property
    def total_failed(self) -> int:
        """Items failed across both phases."""
        return self.repositories.failed + self.gists.failed

    @property
    def outcomes(self) -> list[BackupOutcome]:
        """All outcomes, repositories first."""
        return [*self.repositories.outcomes, *self.gists.outcomes]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": {
                "username": self.username,
                "total_succeeded": self.total_succeeded,
                "total_failed": self.total_failed,
                "cancelled": self.cancelled,
                "duration_seconds": round(self.duration_seconds, 2),
            },
            "repositories": self.repositories.to_dict(),
            "gists": self.gists.to_dict(),
        }
